"""Filesystem commands -- one remote operation through the plugin.

``stat``, ``ls`` and ``cat`` go through :func:`~xrdauthz.plugin.factory.get_plugin`
exactly like an application would, so they exercise proxy substitution,
token injection and backend selection end to end.
"""

from __future__ import annotations

import errno
from typing import Any

import typer

from xrdauthz.exit_codes import EXIT_NOT_FOUND, EXIT_OPERATION_FAILED
from xrdauthz.models import StatInfo
from xrdauthz.output import error, raw, record, rows
from xrdauthz.plugin.factory import get_plugin
from xrdauthz.status import DirListFlags, OpenFlags
from xrdauthz.url import parse_url


def _check(status: Any, what: str) -> None:
    """Exit with a mapped code if *status* reports an error."""
    if status.ok:
        return
    error(f"{what} failed: {status.message}")
    code = EXIT_NOT_FOUND if getattr(status, "errno", 0) == errno.ENOENT else EXIT_OPERATION_FAILED
    raise typer.Exit(code=code)


def _remote_path(url: str) -> str:
    return "/" + parse_url(url).path.lstrip("/")


def _is_dir(info: Any) -> bool:
    return bool(getattr(info, "flags", 0) & StatInfo.IS_DIR)


def stat_command(url: str = typer.Argument(help="Remote file or directory URL.")) -> None:
    """Show metadata for a remote path.

    Example::

        xrdauthz stat root://xcache//store/file.root
    """
    fs = get_plugin().create_filesystem(url)
    path = _remote_path(url)
    status, info = fs.stat(path)
    _check(status, f"stat {path}")
    record(
        {
            "path": path,
            "size": info.size,
            "type": "dir" if _is_dir(info) else "file",
            "modtime": str(getattr(info, "modtime", "") or ""),
        }
    )


def ls_command(url: str = typer.Argument(help="Remote directory URL.")) -> None:
    """List a remote directory.

    Example::

        xrdauthz ls davs://xcache:1094//store/user/
    """
    fs = get_plugin().create_filesystem(url)
    path = _remote_path(url)
    status, listing = fs.dirlist(path, DirListFlags.STAT)
    _check(status, f"ls {path}")

    entries = []
    for entry in listing:
        info = entry.statinfo
        entries.append(
            [
                entry.name,
                str(info.size) if info is not None else "",
                "dir" if info is not None and _is_dir(info) else "file",
            ]
        )
    rows(["name", "size", "type"], entries, title=path)


def cat_command(url: str = typer.Argument(help="Remote file URL.")) -> None:
    """Write a remote file's content to stdout.

    Example::

        xrdauthz cat https://xcache//store/notes.txt > notes.txt
    """
    handle = get_plugin().create_file(url)
    status, _ = handle.open(url, OpenFlags.READ)
    _check(status, "open")
    try:
        status, data = handle.read(0, 0)
        _check(status, "read")
        raw(data or b"")
    finally:
        handle.close()
