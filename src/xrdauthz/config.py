"""Settings resolution from the process environment, plus XDG paths.

This module handles the configuration surface of xrdauthz:

* **Settings snapshot** -- :func:`load_settings` reads the deployment
  variables once (``XCACHE_HOST``, ``XCACHE_PORT``,
  ``XRDAUTHZ_PLACEHOLDER_HOST``) and returns a frozen
  :class:`~xrdauthz.models.AuthzSettings`. The snapshot is passed by
  reference into the customizer and discovery objects instead of having
  them consult ``os.environ`` deep in the call path.
* **Live credential variables** -- ``BEARER_TOKEN``, ``BEARER_TOKEN_FILE``
  and ``XDG_RUNTIME_DIR`` are *not* snapshotted; only their names are.
  :class:`~xrdauthz.auth.discovery.TokenDiscovery` reads them on every call
  so a rotated token is picked up without a restart.
* **Directory layout** -- :func:`get_data_dir` for crash logs, XDG compliant
  on Linux/BSD and ``~/.xrdauthz/`` elsewhere.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from xrdauthz.exceptions import ConfigError
from xrdauthz.models import AuthzSettings

logger = logging.getLogger(__name__)

_APP_NAME = "xrdauthz"

ENV_PROXY_HOST = "XCACHE_HOST"
ENV_PROXY_PORT = "XCACHE_PORT"
ENV_PLACEHOLDER_HOST = "XRDAUTHZ_PLACEHOLDER_HOST"
ENV_LOG_LEVEL = "XRDAUTHZ_LOG_LEVEL"


# --- Settings ---


def load_settings(
    environ: Optional[Mapping[str, str]] = None, **overrides: Any
) -> AuthzSettings:
    """Build the settings snapshot from the environment.

    Empty variables are treated as unset, so ``XCACHE_HOST=`` does not turn
    every placeholder URL into a host-less one.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ``.
        **overrides: Field values that take precedence over the environment
            (used by tests and by the CLI).

    Returns:
        A frozen :class:`~xrdauthz.models.AuthzSettings`.

    Raises:
        ConfigError: If an override fails validation.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}

    proxy_host = env.get(ENV_PROXY_HOST, "")
    if proxy_host:
        values["proxy_host"] = proxy_host
    proxy_port = env.get(ENV_PROXY_PORT, "")
    if proxy_port:
        values["proxy_port"] = proxy_port
    placeholder = env.get(ENV_PLACEHOLDER_HOST, "")
    if placeholder:
        values["placeholder_host"] = placeholder

    values.update(overrides)
    try:
        settings = AuthzSettings.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid xrdauthz settings: {exc}") from exc

    logger.debug(
        "Loaded settings: placeholder=%s proxy=%s:%s",
        settings.placeholder_host,
        settings.proxy_host,
        settings.proxy_port,
    )
    return settings


def get_log_level(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the upper-cased ``XRDAUTHZ_LOG_LEVEL`` value, or ``None`` if unset."""
    env = os.environ if environ is None else environ
    level = env.get(ENV_LOG_LEVEL, "").strip()
    return level.upper() or None


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory spec (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/xrdauthz/`` (default
    ``~/.local/share/xrdauthz/``). Elsewhere: ``~/.xrdauthz/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path
