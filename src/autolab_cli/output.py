"""Terminal rendering for autolab-cli.

Everything a command prints goes through one :class:`OutputManager`:

* tables, key/value records, score grids and feedback text go to **stdout**;
* progress, attachment reports, errors and debug traces go to **stderr**,
  so ``autolab --plain scores | cut -f2`` only ever sees data.

``--json`` and ``--plain`` choose the stdout format; without them the
``output.format`` config value applies, where ``auto`` means Rich tables on
a terminal and tab-separated text when piped. ``--no-color``, ``NO_COLOR``
and ``TERM=dumb`` strip markup from both streams.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Container, Iterator, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from autolab_cli.models import Attachment, AttachmentFormat, Problem, Submission


class OutputFormat(str, Enum):
    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` (set to anything, even empty) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def _flatten(record: dict[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    for key, value in record.items():
        if isinstance(value, dict):
            yield from _flatten(value, f"{prefix}{key}.")
        else:
            yield f"{prefix}{key}", value


def format_score(value: Optional[float]) -> str:
    return "--" if value is None else f"{value:.1f}"


class OutputManager:
    """Writes command results and diagnostics in the active format.

    Args:
        format: Requested stdout format; ``AUTO`` is resolved immediately.
        no_color: Disable markup even on a terminal.
        quiet: Drop progress and success messages (errors still print).
        verbose: Print ``debug`` traces.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self.no_color = no_color or _should_disable_color()
        self.quiet = quiet
        self.verbose = verbose
        if format == OutputFormat.AUTO:
            format = OutputFormat.RICH if _is_tty() and not self.no_color else OutputFormat.PLAIN
        self.format = format
        self._out = Console(file=sys.stdout, no_color=self.no_color)
        self._err = Console(file=sys.stderr, no_color=self.no_color, highlight=False)

    # -- stdout ------------------------------------------------------------

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def _dump(self, data: Any) -> None:
        self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    def print_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        title: Optional[str] = None,
        numeric: Container[int] = (),
    ) -> None:
        """One header row plus data rows.

        JSON output is a list of ``{header: cell}`` objects and plain output
        is one tab-separated line per row, header first. Columns whose index
        is in *numeric* are right-aligned in a Rich table.
        """
        if self.format == OutputFormat.JSON:
            self._dump([dict(zip(headers, row)) for row in rows])
            return
        if self.format == OutputFormat.PLAIN:
            for line in (headers, *rows):
                self.print_data("\t".join(line))
            return

        table = Table(title=title, header_style="bold cyan")
        for index, header in enumerate(headers):
            table.add_column(escape(header), justify="right" if index in numeric else "left")
        for row in rows:
            table.add_row(*(escape(cell) for cell in row))
        self._out.print(table)

    def print_record(self, record: dict[str, Any], title: Optional[str] = None) -> None:
        """A single key/value record such as ``status`` or ``config show``.

        Nested sections are flattened to dotted keys (``request.timeout``)
        everywhere except JSON, which keeps the nesting.
        """
        if self.format == OutputFormat.JSON:
            self._dump(record)
            return

        pairs = [(key, "" if value is None else str(value)) for key, value in _flatten(record)]
        if self.format == OutputFormat.PLAIN:
            for key, value in pairs:
                self.print_data(f"{key}\t{value}")
            return

        table = Table(title=title, show_header=False, box=None)
        table.add_column(style="bold")
        table.add_column()
        for key, value in pairs:
            table.add_row(escape(key), escape(value))
        self._out.print(table)

    def print_scores(
        self,
        problems: Sequence[Problem],
        submissions: Sequence[Submission],
        title: Optional[str] = None,
    ) -> None:
        """Score grid: a row per submission version, a column per problem.

        A problem's column header carries its maximum score when the server
        reports one; an ungraded problem shows ``--``.
        """
        headers = ["version"] + [
            p.name if p.max_score is None else f"{p.name} ({p.max_score:.1f})" for p in problems
        ]
        rows = [
            [str(s.version), *(format_score(s.scores.get(p.name)) for p in problems)]
            for s in submissions
        ]
        self.print_table(headers, rows, title=title, numeric=range(len(headers)))

    # -- stderr ------------------------------------------------------------

    def _emit(self, message: str, style: Optional[str] = None, label: str = "") -> None:
        line = f"{label}{message}"
        if self.no_color:
            print(line, file=sys.stderr, flush=True)
        elif style:
            self._err.print(f"[{style}]{escape(line)}[/{style}]")
        else:
            self._err.print(escape(line))

    def info(self, message: str) -> None:
        if not self.quiet:
            self._emit(message)

    def success(self, message: str) -> None:
        if not self.quiet:
            self._emit(message, "green")

    def suggest(self, message: str) -> None:
        if not self.quiet:
            self._emit(message, "dim", "→ ")

    def error(self, message: str) -> None:
        self._emit(message, "bold red", "Error: ")

    def debug(self, message: str) -> None:
        if self.verbose:
            self._emit(message, "dim", "[debug] ")

    def report_attachment(self, kind: str, attachment: Attachment) -> None:
        """Say what ``download`` got for the handout or writeup."""
        if attachment.format == AttachmentFormat.FILE:
            name = attachment.path.name if attachment.path else kind
            self.info(f"{kind.capitalize()} saved as {name}")
        elif attachment.format == AttachmentFormat.URL:
            self.info(f"{kind.capitalize()} is online at {attachment.url}")
        else:
            self.info(f"Assessment has no {kind}")


# ---------------------------------------------------------------------------
# Process-wide instance, installed by the root callback
# ---------------------------------------------------------------------------

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(manager: OutputManager) -> None:
    global _output
    _output = manager


def reset_output() -> None:
    global _output
    _output = None


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title=title)


def print_record(record: dict[str, Any], title: Optional[str] = None) -> None:
    get_output().print_record(record, title=title)


def print_scores(
    problems: Sequence[Problem], submissions: Sequence[Submission], title: Optional[str] = None
) -> None:
    get_output().print_scores(problems, submissions, title=title)


def report_attachment(kind: str, attachment: Attachment) -> None:
    get_output().report_attachment(kind, attachment)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
