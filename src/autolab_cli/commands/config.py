"""``autolab config``: inspect and edit the stored :class:`GlobalConfig`."""

from __future__ import annotations

from typing import Optional

import typer
from pydantic import BaseModel, ValidationError

from autolab_cli.exceptions import InvalidUsageError
from autolab_cli.models import GlobalConfig, OutputConfig, RequestConfig
from autolab_cli.output import info, print_record, success

config_app = typer.Typer(no_args_is_help=True)

# Settings grouped under a dotted prefix, e.g. ``request.timeout``.
_SECTIONS: dict[str, type[BaseModel]] = {"request": RequestConfig, "output": OutputConfig}


def _lookup(key: str) -> tuple[Optional[str], str]:
    """Split *key* into its section (``None`` for top level) and field name."""
    section, _, name = key.rpartition(".")
    if not section:
        if name in GlobalConfig.model_fields and name not in _SECTIONS:
            return None, name
    elif section in _SECTIONS and name in _SECTIONS[section].model_fields:
        return section, name

    known = [n for n in GlobalConfig.model_fields if n not in _SECTIONS]
    for prefix, model in _SECTIONS.items():
        known.extend(f"{prefix}.{n}" for n in model.model_fields)
    raise InvalidUsageError(f"Unknown config key: {key}. Known keys: {', '.join(known)}")


@config_app.command("show")
def config_show() -> None:
    """Print every setting, nested sections as dotted keys.

    Example::

        autolab config show
        autolab --json config show
    """
    from autolab_cli.config import get_config_dir, load_global_config

    info(f"Config directory: {get_config_dir()}")
    print_record(load_global_config().model_dump(mode="json"), title="Configuration")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Setting name, e.g. 'base_url' or 'request.timeout'."),
    value: str = typer.Argument(help="New value."),
) -> None:
    """Change one setting.

    The value is converted by the setting's own type, so ``request.verify_ssl``
    accepts ``true``/``false``/``yes``/``no`` and ``output.format`` only
    accepts ``auto``, ``json``, ``plain`` or ``rich``.

    Example::

        autolab config set base_url https://autolab.example.edu
        autolab config set client_id_source env:MY_CLIENT_ID
        autolab config set request.timeout 60
    """
    from autolab_cli.config import load_global_config, save_global_config

    section, name = _lookup(key)
    config = load_global_config()

    try:
        if section is None:
            updated = GlobalConfig.model_validate({**config.model_dump(), name: value})
        else:
            current: BaseModel = getattr(config, section)
            part = type(current).model_validate({**current.model_dump(), name: value})
            updated = config.model_copy(update={section: part})
    except ValidationError as exc:
        reason = exc.errors()[0]["msg"]
        raise InvalidUsageError(f"Invalid value for {key}: {value!r} ({reason})") from exc

    save_global_config(updated)
    stored = getattr(updated if section is None else getattr(updated, section), name)
    success(f"Set {key} = {stored}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Do not ask for confirmation."),
) -> None:
    """Overwrite the stored settings with the defaults."""
    from autolab_cli.config import save_global_config

    if not force and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
