"""The one live client session of a process.

A :class:`Session` holds the OAuth application identity, the current token
pair, and the scratch state of an in-progress device flow. It is created by
the command layer and passed explicitly to the token manager, the request
orchestrator, and the REST facade.
"""

from __future__ import annotations

import threading
from typing import Optional

from autolab_cli.models import TokenPair


class Session:
    """Client identity plus mutable token state.

    Tokens are replaced wholesale: both set or both empty. Reads and writes
    go through a lock so a refresh never exposes a half-updated pair.

    Args:
        client_id: OAuth application id.
        client_secret: OAuth application secret.
        redirect_uri: Redirect URI registered for the application.
        api_version: REST API version used to build ``/api/v{n}`` paths.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str = "",
        api_version: int = 1,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.api_version = api_version
        self.device_flow_device_code = ""
        self.device_flow_user_code = ""
        self._lock = threading.RLock()
        self._access_token = ""
        self._refresh_token = ""

    # ------------------------------------------------------------------ #
    # Tokens
    # ------------------------------------------------------------------ #

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        """Replace the token pair.

        Raises:
            ValueError: If exactly one of the tokens is empty.
        """
        if bool(access_token) != bool(refresh_token):
            raise ValueError("access_token and refresh_token must be set together")
        with self._lock:
            self._access_token = access_token
            self._refresh_token = refresh_token

    def tokens(self) -> Optional[TokenPair]:
        """The current pair, or ``None`` when unauthenticated."""
        with self._lock:
            if not self._access_token:
                return None
            return TokenPair(
                access_token=self._access_token, refresh_token=self._refresh_token
            )

    @property
    def access_token(self) -> str:
        with self._lock:
            return self._access_token

    @property
    def refresh_token(self) -> str:
        with self._lock:
            return self._refresh_token

    @property
    def is_authenticated(self) -> bool:
        with self._lock:
            return bool(self._access_token)

    def clear_tokens(self) -> None:
        with self._lock:
            self._access_token = ""
            self._refresh_token = ""

    # ------------------------------------------------------------------ #
    # Device flow scratch state
    # ------------------------------------------------------------------ #

    @property
    def device_flow_pending(self) -> bool:
        return bool(self.device_flow_device_code)

    def clear_device_flow(self) -> None:
        self.device_flow_device_code = ""
        self.device_flow_user_code = ""
