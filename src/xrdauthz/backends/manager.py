"""Backend registry -- discovery and scheme-based selection.

:class:`BackendManager` maps URL schemes to :class:`~xrdauthz.backends.base.Backend`
instances. The built-in backends are registered by
:func:`create_default_manager`; third-party packages add more through the
``xrdauthz.backends`` entry-point group.
"""

from __future__ import annotations

import importlib.metadata
import logging

from xrdauthz.backends.base import Backend
from xrdauthz.exceptions import BackendError, UrlError
from xrdauthz.url import parse_url

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "xrdauthz.backends"
"""The entry-point group name used for backend discovery."""


class BackendManager:
    """Registry and dispatcher for client backends.

    Example::

        manager = BackendManager()
        manager.register(HTTPBackend())
        backend = manager.for_url("https://host//store/file")
    """

    def __init__(self) -> None:
        self._backends: dict[str, Backend] = {}
        self._schemes: dict[str, Backend] = {}

    def register(self, backend: Backend) -> None:
        """Register *backend* for each of its schemes.

        A later registration for the same scheme replaces the earlier one.
        """
        self._backends[backend.name] = backend
        for scheme in backend.schemes:
            previous = self._schemes.get(scheme)
            if previous is not None and previous is not backend:
                logger.debug(
                    "Scheme '%s' moves from backend '%s' to '%s'",
                    scheme,
                    previous.name,
                    backend.name,
                )
            self._schemes[scheme] = backend

    def discover(self) -> list[str]:
        """Load backends registered under :data:`ENTRY_POINT_GROUP`.

        Returns:
            Names of the backends that loaded. Failures are logged as
            warnings and skipped.
        """
        loaded: list[str] = []
        entry_points = importlib.metadata.entry_points()
        if hasattr(entry_points, "select"):
            eps = entry_points.select(group=ENTRY_POINT_GROUP)
        else:
            eps = entry_points.get(ENTRY_POINT_GROUP, [])  # type: ignore[union-attr]

        for ep in eps:
            if ep.name in self._backends:
                continue
            try:
                backend_cls = ep.load()
                self.register(backend_cls())
                loaded.append(ep.name)
            except Exception as exc:
                logger.warning("Failed to load backend '%s': %s", ep.name, exc)
        return loaded

    def get_backend(self, name: str) -> Backend:
        """Return the backend registered as *name*.

        Raises:
            BackendError: If no such backend is registered.
        """
        try:
            return self._backends[name]
        except KeyError:
            raise BackendError(f"Backend '{name}' is not registered") from None

    def for_scheme(self, scheme: str) -> Backend:
        """Return the backend serving *scheme*.

        Raises:
            BackendError: If no backend handles the scheme.
        """
        backend = self._schemes.get(scheme.lower())
        if backend is None:
            available = ", ".join(sorted(self._schemes)) or "(none)"
            raise BackendError(
                f"No backend handles scheme '{scheme}'. Available schemes: {available}"
            )
        return backend

    def for_url(self, url: str) -> Backend:
        """Return the backend serving the scheme of *url*.

        Raises:
            UrlError: If *url* cannot be parsed.
            BackendError: If no backend handles its scheme.
        """
        return self.for_scheme(parse_url(url).scheme)

    def list_schemes(self) -> dict[str, str]:
        """Return a ``{scheme: backend name}`` mapping, sorted by scheme."""
        return {scheme: self._schemes[scheme].name for scheme in sorted(self._schemes)}


def create_default_manager(discover: bool = True) -> BackendManager:
    """Create a :class:`BackendManager` with the built-in backends.

    - ``xrootd`` -- ``root://``, ``roots://``, ``xroot://``, ``xroots://``
      through the ``XRootD`` Python bindings.
    - ``http`` -- ``http://``, ``https://``, ``dav://``, ``davs://`` through
      httpx.

    Args:
        discover: Also load third-party backends from entry points.
    """
    from xrdauthz.backends.http import HTTPBackend
    from xrdauthz.backends.xrootd import XRootDBackend

    manager = BackendManager()
    manager.register(XRootDBackend())
    manager.register(HTTPBackend())
    if discover:
        manager.discover()
    return manager
