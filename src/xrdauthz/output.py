"""Terminal output for the xrdauthz CLI.

Data (effective URLs, settings, listings, file content) goes to **stdout**;
every diagnostic goes to **stderr**, so ``xrdauthz cat URL > file`` and
``xrdauthz --json token | jq`` stay clean.

Rendering is chosen once per run by :class:`Reporter`:

* ``--json`` -- JSON documents, one per call.
* ``--plain`` -- tab-separated lines, the default when stdout is not a TTY.
* otherwise -- Rich tables and highlighted JSON.

Colour is disabled by ``--no-color``, ``NO_COLOR`` (any value) or
``TERM=dumb``. :func:`~xrdauthz.app.main_callback` installs the reporter
with :func:`set_reporter`; commands use the module-level helpers.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How data is rendered on stdout."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# level -> (plain prefix, rich markup prefix, shown when quiet)
_LEVELS: dict[str, tuple[str, str, bool]] = {
    "info": ("", "", False),
    "warning": ("Warning: ", "[yellow]Warning:[/yellow] ", True),
    "error": ("Error: ", "[bold red]Error:[/bold red] ", True),
}


def _stdout_is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _color_disabled_by_env() -> bool:
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


class Reporter:
    """Write CLI data and diagnostics for one run.

    Args:
        format: Requested format; ``AUTO`` becomes ``RICH`` on a colour TTY
            and ``PLAIN`` otherwise.
        no_color: Force colour off.
        quiet: Drop info messages. Warnings and errors remain.
        verbose: Show :meth:`debug` messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self.no_color = no_color or _color_disabled_by_env()
        self.quiet = quiet
        self.verbose = verbose
        if format == OutputFormat.AUTO:
            rich_ok = _stdout_is_tty() and not self.no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self.format = format
        self._out = Console(
            file=sys.stdout,
            no_color=self.no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._err = Console(file=sys.stderr, no_color=self.no_color, stderr=True)

    # --- stdout ---

    def line(self, text: str) -> None:
        """Write *text* and a newline to stdout, unformatted."""
        print(text, file=sys.stdout, flush=True)

    def record(self, data: Any) -> None:
        """Write a mapping, list, or scalar in the active format."""
        if self.format == OutputFormat.JSON:
            self.line(_to_json(data))
        elif self.format == OutputFormat.RICH:
            if isinstance(data, (dict, list)):
                self._out.print(Syntax(_to_json(data), "json", word_wrap=True))
            else:
                self._out.print(str(data), markup=False)
        elif isinstance(data, dict):
            for key, value in data.items():
                self.line(f"{key}\t{value}")
        elif isinstance(data, list):
            for item in data:
                self.line(str(item))
        else:
            self.line(str(data))

    def rows(
        self, columns: list[str], rows: list[list[str]], title: Optional[str] = None
    ) -> None:
        """Write tabular data: JSON objects, TSV lines, or a Rich table."""
        if self.format == OutputFormat.JSON:
            self.line(_to_json([dict(zip(columns, row)) for row in rows]))
            return
        if self.format == OutputFormat.PLAIN:
            for row in rows:
                self.line("\t".join(row))
            return
        table = Table(*columns, title=title, header_style="bold cyan")
        for row in rows:
            table.add_row(*row)
        self._out.print(table)

    def raw(self, data: bytes) -> None:
        """Write file content to stdout byte for byte."""
        buffer = getattr(sys.stdout, "buffer", None)
        if buffer is None:
            sys.stdout.write(data.decode("utf-8", errors="replace"))
            sys.stdout.flush()
        else:
            buffer.write(data)
            buffer.flush()

    # --- stderr ---

    def say(self, level: str, message: str) -> None:
        """Write a diagnostic at *level* (``info``, ``warning`` or ``error``)."""
        plain, markup, always = _LEVELS[level]
        if self.quiet and not always:
            return
        if self.no_color:
            print(f"{plain}{message}", file=sys.stderr, flush=True)
            return
        self._err.print(f"{markup}{escape(message)}")

    def debug(self, message: str) -> None:
        if not self.verbose:
            return
        if self.no_color:
            print(f"[debug] {message}", file=sys.stderr, flush=True)
        else:
            self._err.print(f"[dim]\\[debug] {escape(message)}[/dim]")


_reporter: Optional[Reporter] = None


def get_reporter() -> Reporter:
    """Return the installed :class:`Reporter`, creating a default one if needed."""
    global _reporter
    if _reporter is None:
        _reporter = Reporter()
    return _reporter


def set_reporter(reporter: Reporter) -> None:
    global _reporter
    _reporter = reporter


def reset_reporter() -> None:
    """Drop the installed reporter. Tests call this between CliRunner runs."""
    global _reporter
    _reporter = None


def record(data: Any) -> None:
    get_reporter().record(data)


def line(text: str) -> None:
    get_reporter().line(text)


def rows(columns: list[str], data: list[list[str]], title: Optional[str] = None) -> None:
    get_reporter().rows(columns, data, title)


def raw(data: bytes) -> None:
    get_reporter().raw(data)


def info(message: str) -> None:
    get_reporter().say("info", message)


def warning(message: str) -> None:
    get_reporter().say("warning", message)


def error(message: str) -> None:
    get_reporter().say("error", message)


def debug(message: str) -> None:
    get_reporter().debug(message)
