"""Built-in CLI commands for xrdauthz.

Each module exposes functions that :func:`xrdauthz.app.main` registers on
the root Typer application:

- ``token`` -- ``url`` and ``token``: show the effective URL and where the
  credential comes from.
- ``config`` -- ``config``: show the effective settings.
- ``fs`` -- ``stat``, ``ls``, ``cat``: run one operation through the plugin.
"""
