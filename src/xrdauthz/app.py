"""Typer application and console entry point for xrdauthz.

The CLI is a diagnostic companion to the plugin. ``url`` and ``token`` show
what a URL turns into and where its credential comes from; ``config`` shows
the settings snapshot; ``stat``, ``ls`` and ``cat`` push one operation
through the same :func:`~xrdauthz.plugin.factory.get_plugin` factory a host
application would load.

:func:`main` is the ``xrdauthz`` console script. An escaping
:class:`~xrdauthz.exceptions.AuthzError` becomes its ``exit_code``; any
other exception leaves a traceback under ``<data dir>/logs/``.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, NoReturn

import typer

from xrdauthz import __version__
from xrdauthz.exit_codes import EXIT_GENERIC_FAILURE

EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="xrdauthz",
    help="Bearer-token authorization and cache redirection for XRootD and HTTP URLs.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"xrdauthz {__version__}")
        raise typer.Exit()


def _log_level(verbose: bool) -> int:
    """DEBUG with ``--verbose``; else ``XRDAUTHZ_LOG_LEVEL``; else WARNING."""
    from xrdauthz.config import get_log_level

    if verbose:
        return logging.DEBUG
    level = logging.getLevelName(get_log_level() or "WARNING")
    return level if isinstance(level, int) else logging.WARNING


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Print the version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="Render data as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Render data as TSV."),
    no_color: bool = typer.Option(False, "--no-color", help="Never use colour."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Hide informational messages."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug messages and log at DEBUG level."
    ),
) -> None:
    """Set up reporting and library logging for the sub-command."""
    from xrdauthz.output import OutputFormat, Reporter, set_reporter

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO
    set_reporter(Reporter(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    logging.basicConfig(
        level=_log_level(verbose),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


_registered = False


def register_commands() -> None:
    """Attach the sub-commands to :data:`app` (once)."""
    global _registered
    if _registered:
        return
    from xrdauthz.commands.config import config_command
    from xrdauthz.commands.fs import cat_command, ls_command, stat_command
    from xrdauthz.commands.token import token_command, url_command

    for name, command in (
        ("url", url_command),
        ("token", token_command),
        ("config", config_command),
        ("stat", stat_command),
        ("ls", ls_command),
        ("cat", cat_command),
    ):
        app.command(name)(command)
    _registered = True


def _interrupted(*_: Any) -> NoReturn:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(EXIT_INTERRUPTED)


def _save_traceback() -> Path:
    """Write the exception being handled to a timestamped crash log."""
    from xrdauthz.config import get_data_dir

    log_dir = get_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    path.write_text(traceback.format_exc())
    return path


def main() -> None:
    """Run the CLI.

    Raises:
        SystemExit: Always; with the command's exit code, an
            :class:`~xrdauthz.exceptions.AuthzError`'s ``exit_code``, or 1
            after writing a crash log.
    """
    signal.signal(signal.SIGINT, _interrupted)
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        _interrupted()
    except Exception as exc:
        from xrdauthz.exceptions import AuthzError
        from xrdauthz.output import error

        if isinstance(exc, AuthzError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error. Traceback saved to {_save_traceback()}")
        sys.exit(EXIT_GENERIC_FAILURE)
