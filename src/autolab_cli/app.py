"""Typer application and CLI entry point for autolab-cli.

This module builds the top-level Typer application, registers the built-in
commands, and exposes :func:`main`, the console-script entry point declared
in ``pyproject.toml``. :func:`main` installs a SIGINT handler, invokes the
app, and maps :class:`~autolab_cli.exceptions.AutolabError` to its exit
code. Any other exception is written to a crash log under the data
directory.

See Also:
    :mod:`autolab_cli.config`: Configuration resolution.
    :mod:`autolab_cli.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import TYPE_CHECKING, Any

import typer

from autolab_cli import __version__
from autolab_cli.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED

if TYPE_CHECKING:
    from autolab_cli.output import OutputFormat


app = typer.Typer(
    name="autolab",
    help="Command-line client for the Autolab course management service.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from autolab_cli.commands.account import setup_command  # noqa: E402
from autolab_cli.commands.assessment import (  # noqa: E402
    download_command,
    feedback_command,
    scores_command,
    submit_command,
)
from autolab_cli.commands.config import config_app  # noqa: E402
from autolab_cli.commands.courses import (  # noqa: E402
    assessments_command,
    courses_command,
    problems_command,
    status_command,
)

app.command("setup")(setup_command)
app.command("status")(status_command)
app.command("courses")(courses_command)
app.command("assessments")(assessments_command)
app.command("asmts", hidden=True)(assessments_command)
app.command("problems")(problems_command)
app.command("download")(download_command)
app.command("submit")(submit_command)
app.command("scores")(scores_command)
app.command("feedback")(feedback_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"autolab-cli {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    ``--json`` and ``--plain`` pick the output format; without either flag
    the ``output.format`` stored in the config file applies. ``ctx.obj`` is
    always a dict so tests can hand commands an HTTP transport.
    """
    from autolab_cli.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = _configured_format()

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    ctx.ensure_object(dict)


def _configured_format() -> OutputFormat:
    """Output format saved with ``autolab config set output.format``.

    An unreadable config file falls back to ``auto`` here; commands that
    load the config report the :class:`~autolab_cli.exceptions.ConfigError`
    themselves, and ``config reset`` can still repair the file.
    """
    from autolab_cli.config import load_global_config
    from autolab_cli.exceptions import ConfigError
    from autolab_cli.output import OutputFormat

    try:
        return OutputFormat(load_global_config().output.format)
    except ConfigError:
        return OutputFormat.AUTO


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from autolab_cli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``autolab`` console script.

    :class:`~autolab_cli.exceptions.AutolabError` instances cause a clean
    exit with the error's ``exit_code``; an invalid token additionally
    suggests re-running ``autolab setup``. All other exceptions produce a
    crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from autolab_cli.exceptions import AutolabError, InvalidTokenError
        from autolab_cli.output import error, suggest

        if isinstance(exc, AutolabError):
            error(str(exc))
            if isinstance(exc, InvalidTokenError):
                suggest("Please run 'autolab setup -f' to reset your account")
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
