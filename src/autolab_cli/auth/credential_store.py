"""Persistent token storage for the one user set up on this machine.

Tokens live in ``~/.local/share/autolab/credentials/tokens.json`` (XDG) or
the platform-equivalent directory. The file is written atomically with
``0o600`` permissions via :func:`~autolab_cli.config._atomic_write`, so the
secrets are never world-readable, even momentarily.

Both tokens pass through a :class:`~autolab_cli.auth.codec.TokenCodec` on
the way in and out.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from autolab_cli.auth.codec import TokenCodec
from autolab_cli.config import _atomic_write, get_data_dir
from autolab_cli.models import TokenPair

_TOKENS_FILENAME = "tokens.json"


class StoredTokens(BaseModel):
    """On-disk representation of a token pair (values already encoded)."""

    access_token: str = Field(description="Encoded access token")
    refresh_token: str = Field(description="Encoded refresh token")
    saved_at: Optional[datetime] = Field(
        default=None, description="When the pair was written (UTC)"
    )


def _credentials_dir() -> Path:
    """Return the credentials directory, creating it if needed."""
    path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path


class CredentialStore:
    """Read/write the stored token pair.

    Args:
        codec: Applied to each token before writing and after reading.
        path: Override for the token file location.

    Example::

        store = CredentialStore(PassthroughCodec(key, iv))
        store.save(TokenPair(access_token="at", refresh_token="rt"))
        assert store.load().access_token == "at"
    """

    def __init__(self, codec: TokenCodec, path: Optional[Path] = None) -> None:
        self._codec = codec
        self._path = path or _credentials_dir() / _TOKENS_FILENAME

    @property
    def path(self) -> Path:
        """The filesystem path of the token file."""
        return self._path

    def save(self, tokens: TokenPair) -> None:
        """Persist *tokens* atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        stored = StoredTokens(
            access_token=self._codec.encrypt(tokens.access_token),
            refresh_token=self._codec.encrypt(tokens.refresh_token),
            saved_at=datetime.now(timezone.utc),
        )
        text = json.dumps(stored.model_dump(mode="json"), indent=2) + "\n"
        _atomic_write(self._path, text, mode=0o600)

    def load(self) -> Optional[TokenPair]:
        """Load the stored pair.

        Returns:
            The decoded :class:`~autolab_cli.models.TokenPair`, or ``None``
            if no user is set up or the file cannot be parsed.
        """
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            stored = StoredTokens.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError):
            return None
        if not stored.access_token or not stored.refresh_token:
            return None
        return TokenPair(
            access_token=self._codec.decrypt(stored.access_token),
            refresh_token=self._codec.decrypt(stored.refresh_token),
        )

    def clear(self) -> None:
        """Delete the token file. No-op when it does not exist."""
        if self._path.is_file():
            self._path.unlink()
