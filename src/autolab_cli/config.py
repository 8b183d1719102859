"""Where autolab-cli keeps its files, and how settings are resolved.

Files live in two per-user directories: settings (``config.json``) in the
config directory, tokens and crash logs in the data directory. Linux and
the BSDs follow the XDG base directory spec; everything else uses
``~/.autolab``.

Effective settings come from, in order: ``AUTOLAB_*`` environment
variables, ``config.json``, then the :class:`~autolab_cli.models.GlobalConfig`
defaults. The OAuth client id and secret are not stored directly but as
source descriptors that :func:`resolve_credential` reads on demand.
"""

from __future__ import annotations

import contextlib
import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Callable, Optional

from autolab_cli.exceptions import ConfigError
from autolab_cli.models import GlobalConfig

_APP_NAME = "autolab"
_CONFIG_FILENAME = "config.json"

ENV_BASE_URL = "AUTOLAB_BASE_URL"
ENV_CLIENT_ID = "AUTOLAB_CLIENT_ID"
ENV_CLIENT_SECRET = "AUTOLAB_CLIENT_SECRET"


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str, fallback: str) -> Path:
    """Resolve one of the app's directories and make sure it exists.

    *xdg_default* is relative to the home directory and used when
    *xdg_var* is unset or empty; *fallback* is relative to ``~/.autolab``
    on platforms without XDG.
    """
    if _is_xdg_platform():
        root = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(root) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/autolab``, or ``~/.autolab`` without XDG."""
    return _app_dir("XDG_CONFIG_HOME", ".config", "")


def get_data_dir() -> Path:
    """``$XDG_DATA_HOME/autolab``, or ``~/.autolab/data`` without XDG."""
    return _app_dir("XDG_DATA_HOME", ".local/share", "data")


def _atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Replace *path* with *data* so readers never see a half-written file.

    The text goes to a hidden sibling file which is synced and then renamed
    over *path*. *mode* is set on the sibling before any data is written,
    so secrets never exist with looser permissions.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            if mode is not None:
                os.chmod(tmp_name, mode)
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


def _config_file() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Read ``config.json``; defaults when the file does not exist.

    Raises:
        ConfigError: The file is not JSON or does not match
            :class:`~autolab_cli.models.GlobalConfig`.
    """
    path = _config_file()
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    _atomic_write(_config_file(), json.dumps(config.model_dump(mode="json"), indent=2) + "\n")


def resolve_config() -> GlobalConfig:
    """Settings in effect for this run, with environment overrides applied.

    ``AUTOLAB_BASE_URL`` replaces the server URL. ``AUTOLAB_CLIENT_ID`` and
    ``AUTOLAB_CLIENT_SECRET`` become ``env:`` credential sources. The base
    URL never ends with a slash. ``config.json`` itself is left untouched.
    """
    stored = load_global_config()
    overrides: dict[str, str] = {
        "base_url": (os.environ.get(ENV_BASE_URL) or stored.base_url).rstrip("/")
    }
    if os.environ.get(ENV_CLIENT_ID):
        overrides["client_id_source"] = f"env:{ENV_CLIENT_ID}"
    if os.environ.get(ENV_CLIENT_SECRET):
        overrides["client_secret_source"] = f"env:{ENV_CLIENT_SECRET}"
    return stored.model_copy(update=overrides)


def resolve_client_credentials(config: GlobalConfig) -> tuple[str, str]:
    """``(client_id, client_secret)``; the secret is empty when no source is set.

    Raises:
        ConfigError: There is no client id source, or a source cannot be read.
    """
    if not config.client_id_source:
        raise ConfigError(
            "No OAuth client id configured. Set AUTOLAB_CLIENT_ID or run "
            "'autolab config set client_id_source env:VAR'"
        )
    secret_source = config.client_secret_source
    return (
        resolve_credential(config.client_id_source),
        resolve_credential(secret_source) if secret_source else "",
    )


# ---------------------------------------------------------------------------
# Credential sources
# ---------------------------------------------------------------------------


def _from_env(name: str) -> str:
    if name not in os.environ:
        raise ConfigError(f"Environment variable '{name}' is not set (source: env:{name})")
    return os.environ[name]


def _from_file(location: str) -> str:
    path = Path(location).expanduser()
    if not path.is_file():
        raise ConfigError(f"Credential file not found: {path} (source: file:{location})")
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc


_PREFIXED_SOURCES: dict[str, Callable[[str], str]] = {
    "env:": _from_env,
    "file:": _from_file,
}


def resolve_credential(source: str) -> str:
    """Turn a credential source descriptor into the credential.

    ``env:NAME`` reads an environment variable, ``file:PATH`` reads a file
    (surrounding whitespace dropped), ``prompt`` asks on the terminal, and
    any other string is the credential itself.

    Raises:
        ConfigError: The variable is unset, the file is missing or
            unreadable, or ``prompt`` is used without a terminal.
    """
    for prefix, reader in _PREFIXED_SOURCES.items():
        if source.startswith(prefix):
            return reader(source[len(prefix):])

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for credentials: stdin is not a TTY (source: prompt)")
        return getpass.getpass("Enter credential: ")
    return source
