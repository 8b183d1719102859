"""Tests for autolab_cli.config: XDG paths, atomic writes, precedence and credentials."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from autolab_cli.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    load_global_config,
    resolve_client_credentials,
    resolve_config,
    resolve_credential,
    save_global_config,
)
from autolab_cli.exceptions import ConfigError
from autolab_cli.models import GlobalConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("autolab_cli.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
        path = get_config_dir()
        assert path == tmp_path / "cfg" / "autolab"
        assert path.is_dir()

    def test_data_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("autolab_cli.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
        assert get_data_dir() == tmp_path / "data" / "autolab"

    def test_fallback_layout(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("autolab_cli.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".autolab"
        assert get_data_dir() == tmp_path / ".autolab" / "data"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "test.txt"
        _atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_success(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "content")
        assert list(tmp_path.iterdir()) == [target]

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("autolab_cli.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []

    def test_mode_applied(self, tmp_path: Path) -> None:
        target = tmp_path / "secret.json"
        _atomic_write(target, "{}", mode=0o600)
        assert target.stat().st_mode & 0o777 == 0o600


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        cfg = load_global_config()
        assert cfg == GlobalConfig()
        assert cfg.api_version == 1
        assert cfg.device_flow_timeout == 300

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = GlobalConfig(
            base_url="https://autolab.example.edu",
            client_id_source="env:MY_ID",
            device_flow_timeout=60,
        )
        save_global_config(original)
        assert load_global_config() == original

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        path = isolated_config / "config" / "autolab" / "config.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{invalid json!!!", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "config" / "autolab" / "config.json", {"request": "not-a-dict"}
        )
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_env_overrides_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_global_config(GlobalConfig(base_url="https://file.example.edu"))
        monkeypatch.setenv("AUTOLAB_BASE_URL", "https://env.example.edu")
        assert resolve_config().base_url == "https://env.example.edu"

    def test_trailing_slash_stripped(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(base_url="https://autolab.example.edu/"))
        assert resolve_config().base_url == "https://autolab.example.edu"

    def test_client_env_vars_become_sources(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AUTOLAB_CLIENT_ID", "the-id")
        monkeypatch.setenv("AUTOLAB_CLIENT_SECRET", "the-secret")
        config = resolve_config()
        assert config.client_id_source == "env:AUTOLAB_CLIENT_ID"
        assert resolve_client_credentials(config) == ("the-id", "the-secret")

    def test_file_is_not_modified(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_global_config(GlobalConfig())
        monkeypatch.setenv("AUTOLAB_BASE_URL", "https://env.example.edu")
        resolve_config()
        assert load_global_config().base_url == GlobalConfig().base_url

    def test_missing_client_id(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="client id"):
            resolve_client_credentials(resolve_config())

    def test_secret_is_optional(self) -> None:
        config = GlobalConfig(client_id_source="literal-id")
        assert resolve_client_credentials(config) == ("literal-id", "")


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_TOKEN", "secret123")
        assert resolve_credential("env:MY_TOKEN") == "secret123"

    def test_env_source_missing_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        with pytest.raises(ConfigError, match="not set"):
            resolve_credential("env:NONEXISTENT_VAR")

    def test_file_source(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "secret.txt"
        cred_file.write_text("  my-client-secret  \n", encoding="utf-8")
        assert resolve_credential(f"file:{cred_file}") == "my-client-secret"

    def test_file_source_missing_raises(self) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential("file:/nonexistent/path/secret.txt")

    def test_prompt_source_non_tty_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: False)
        with pytest.raises(ConfigError, match="not a TTY"):
            resolve_credential("prompt")

    def test_literal_value(self) -> None:
        assert resolve_credential("abc123") == "abc123"
