"""Config command -- view the effective settings.

Settings come from the environment only; this command shows the snapshot
:func:`~xrdauthz.config.load_settings` builds, plus the scheme-to-backend
table, so a user can see what a URL will be rewritten to before opening it.
"""

from __future__ import annotations

from xrdauthz.output import record, warning


def config_command() -> None:
    """Show the effective settings and backends.

    Example::

        xrdauthz config
        xrdauthz --json config
    """
    from xrdauthz.backends.manager import create_default_manager
    from xrdauthz.config import load_settings
    from xrdauthz.url import parse_port

    settings = load_settings()
    if settings.proxy_port is not None and parse_port(settings.proxy_port) is None:
        warning(f"XCACHE_PORT={settings.proxy_port!r} is not a valid port and is ignored")

    data = settings.model_dump(mode="json")
    data["backends"] = create_default_manager().list_schemes()
    record(data)
