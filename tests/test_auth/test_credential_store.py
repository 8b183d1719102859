"""Tests for the token store and codec."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path

import pytest

from autolab_cli.auth.codec import PassthroughCodec
from autolab_cli.auth.credential_store import CredentialStore, StoredTokens
from autolab_cli.exceptions import ConfigError
from autolab_cli.models import TokenPair

KEY = "0123456789abcdef0123456789abcdef"
IV = "0123456789abcdef"


class ReversingCodec:
    """Codec that visibly transforms values, to check both directions are applied."""

    def encrypt(self, plaintext: str) -> str:
        return plaintext[::-1]

    def decrypt(self, ciphertext: str) -> str:
        return ciphertext[::-1]


@pytest.fixture()
def store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CredentialStore:
    """Create a CredentialStore that writes to a temp directory."""
    monkeypatch.setattr(
        "autolab_cli.auth.credential_store.get_data_dir",
        lambda: tmp_path,
    )
    return CredentialStore(PassthroughCodec(KEY, IV))


class TestPassthroughCodec:
    def test_identity(self) -> None:
        codec = PassthroughCodec(KEY, IV)
        assert codec.encrypt("secret") == "secret"
        assert codec.decrypt("secret") == "secret"

    def test_rejects_short_key(self) -> None:
        with pytest.raises(ConfigError, match="32"):
            PassthroughCodec("short", IV)

    def test_rejects_bad_iv(self) -> None:
        with pytest.raises(ConfigError, match="16"):
            PassthroughCodec(KEY, IV + "x")


class TestCredentialStore:
    def test_default_path(self, store: CredentialStore, tmp_path: Path) -> None:
        assert store.path == tmp_path / "credentials" / "tokens.json"

    def test_load_returns_none_when_no_file(self, store: CredentialStore) -> None:
        assert store.load() is None

    def test_save_and_load(self, store: CredentialStore) -> None:
        store.save(TokenPair(access_token="at", refresh_token="rt"))
        assert store.load() == TokenPair(access_token="at", refresh_token="rt")

    def test_file_permissions(self, store: CredentialStore) -> None:
        store.save(TokenPair(access_token="at", refresh_token="rt"))
        mode = stat.S_IMODE(os.stat(store.path).st_mode)
        assert mode == 0o600

    def test_codec_applied_on_disk(self, tmp_path: Path) -> None:
        store = CredentialStore(ReversingCodec(), path=tmp_path / "tokens.json")
        store.save(TokenPair(access_token="abc", refresh_token="xyz"))

        on_disk = StoredTokens.model_validate(json.loads(store.path.read_text()))
        assert on_disk.access_token == "cba"
        assert on_disk.refresh_token == "zyx"
        assert store.load() == TokenPair(access_token="abc", refresh_token="xyz")

    def test_corrupt_file_loads_as_none(self, store: CredentialStore) -> None:
        store.path.write_text("{not json")
        assert store.load() is None

    def test_half_empty_pair_loads_as_none(self, store: CredentialStore) -> None:
        store.path.write_text(json.dumps({"access_token": "at", "refresh_token": ""}))
        assert store.load() is None

    def test_clear(self, store: CredentialStore) -> None:
        store.save(TokenPair(access_token="at", refresh_token="rt"))
        store.clear()
        assert not store.path.exists()
        store.clear()
