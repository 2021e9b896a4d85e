"""Handle factory -- the object a host runtime obtains from the plugin.

:class:`AuthzFactory` hands out forwarding handles:

* :meth:`AuthzFactory.create_file` builds a new :class:`AuthzFile` on every
  call; its URL is customized each time it is opened.
* :meth:`AuthzFactory.create_filesystem` builds one :class:`AuthzFileSystem`
  on the first call, customizing that call's URL, and returns the very same
  object on every later call regardless of the URL passed. A factory is
  bound to a single filesystem target for its whole life.

:func:`get_plugin` is the loader-facing entry point: it snapshots the
settings from the environment and returns a ready factory.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from xrdauthz.backends.manager import BackendManager, create_default_manager
from xrdauthz.config import load_settings
from xrdauthz.models import AuthzSettings
from xrdauthz.plugin.handles import AuthzFile, AuthzFileSystem
from xrdauthz.url import UrlCustomizer, redact_url

logger = logging.getLogger(__name__)


class AuthzFactory:
    """Create customizing file and filesystem handles.

    Args:
        settings: Static configuration. Defaults to
            :func:`~xrdauthz.config.load_settings` on the process environment.
        backends: Scheme-to-backend registry. Defaults to the built-in
            backends plus any discovered through entry points.
        customizer: URL customizer. Defaults to one built on *settings*.

    Example::

        factory = AuthzFactory()
        fs = factory.create_filesystem("root://xcache//")
        status, listing = fs.dirlist("/store/user")
    """

    def __init__(
        self,
        settings: Optional[AuthzSettings] = None,
        backends: Optional[BackendManager] = None,
        customizer: Optional[UrlCustomizer] = None,
    ) -> None:
        self._settings = settings if settings is not None else load_settings()
        self._backends = backends if backends is not None else create_default_manager()
        self._customizer = (
            customizer if customizer is not None else UrlCustomizer(self._settings)
        )
        self._filesystem: Optional[AuthzFileSystem] = None
        self._filesystem_lock = threading.Lock()

    @property
    def settings(self) -> AuthzSettings:
        return self._settings

    @property
    def customizer(self) -> UrlCustomizer:
        return self._customizer

    @property
    def backends(self) -> BackendManager:
        return self._backends

    def create_file(self, url: str) -> AuthzFile:
        """Return a new file handle for *url*.

        *url* only selects the backend; the handle customizes whatever URL
        it is later opened with.

        Raises:
            UrlError: If *url* cannot be parsed.
            BackendError: If no backend handles its scheme.
        """
        backend = self._backends.for_url(url)
        return AuthzFile(backend.new_file(), self._customizer)

    def create_filesystem(self, url: str) -> AuthzFileSystem:
        """Return this factory's filesystem handle, creating it on first use.

        Only the first call's *url* matters. Creation is serialized so that
        concurrent first calls still produce exactly one handle. Errors from
        the backend propagate unchanged and leave the slot empty.

        Raises:
            UrlError: If the first *url* cannot be parsed.
            BackendError: If no backend handles its scheme.
        """
        filesystem = self._filesystem
        if filesystem is not None:
            self._log_ignored(url, filesystem)
            return filesystem

        with self._filesystem_lock:
            if self._filesystem is None:
                effective = self._customizer.customize(url)
                backend = self._backends.for_url(effective)
                self._filesystem = AuthzFileSystem(
                    backend.new_filesystem(effective), effective
                )
                logger.debug(
                    "Created %s filesystem for %s", backend.name, redact_url(effective)
                )
            else:
                self._log_ignored(url, self._filesystem)
            return self._filesystem

    @staticmethod
    def _log_ignored(url: str, filesystem: AuthzFileSystem) -> None:
        logger.debug(
            "Reusing filesystem for %s; ignoring %s",
            redact_url(filesystem.url),
            redact_url(url),
        )


def get_plugin(arg: Any = None) -> AuthzFactory:
    """Entry point for host runtimes loading xrdauthz as a client plugin.

    Args:
        arg: Loader-specific argument; unused.

    Returns:
        A new :class:`AuthzFactory` configured from the environment.
    """
    return AuthzFactory()
