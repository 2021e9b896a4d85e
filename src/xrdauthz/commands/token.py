"""Token commands -- inspect URL customization and token discovery.

``xrdauthz url URL`` prints the effective URL exactly as the plugin would
use it (with the credential masked unless ``--show-token`` is given), and
``xrdauthz token`` reports which source supplied the bearer token.
"""

from __future__ import annotations

import typer

from xrdauthz.exit_codes import EXIT_AUTH_FAILURE
from xrdauthz.output import debug, info, line, record, warning


def url_command(
    url: str = typer.Argument(help="URL the application would open."),
    show_token: bool = typer.Option(
        False, "--show-token", help="Print the credential instead of masking it."
    ),
) -> None:
    """Print the effective URL for URL.

    Example::

        xrdauthz url root://xcache//store/file.root
    """
    from xrdauthz.config import load_settings
    from xrdauthz.url import UrlCustomizer, redact_url

    settings = load_settings()
    debug(
        f"Placeholder host {settings.placeholder_host!r}, "
        f"proxy {settings.proxy_host or 'not set'}"
    )
    effective = UrlCustomizer(settings).customize(url)
    line(effective if show_token else redact_url(effective, settings.authz_param))


def token_command(
    show: bool = typer.Option(False, "--show", help="Print the full token."),
) -> None:
    """Report where the bearer token is found.

    Exits with code 3 when no source provides a token.

    Example::

        xrdauthz token
        xrdauthz --json token
    """
    from xrdauthz.auth.discovery import TokenDiscovery
    from xrdauthz.config import load_settings

    settings = load_settings()
    discovery = TokenDiscovery(settings)
    found = discovery.discover_with_source()
    if not found.found:
        checked = [settings.token_env, settings.token_file_env]
        name = discovery.well_known_name()
        if name is not None:
            checked.append(f"${settings.runtime_dir_env}/{name}")
            checked.append(str(settings.fallback_dir / name))
        warning("No bearer token found")
        info(f"Checked {', '.join(checked)}")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)

    record(
        {
            "source": found.source.value,
            "location": found.location,
            "length": len(found.value),
            "token": found.value if show else found.masked(),
        }
    )
