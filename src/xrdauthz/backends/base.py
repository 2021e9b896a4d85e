"""Abstract base class for client backends.

A backend produces the underlying file and filesystem objects that the
forwarding handles in :mod:`xrdauthz.plugin.handles` delegate to. It
declares the URL schemes it serves; the
:class:`~xrdauthz.backends.manager.BackendManager` picks a backend by the
scheme of the URL being opened.

To add a backend, subclass :class:`Backend` and register it under the
``xrdauthz.backends`` entry-point group::

    [project.entry-points."xrdauthz.backends"]
    s3 = "my_package.backend:S3Backend"
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Backend(ABC):
    """Factory for underlying client objects."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used for registration and logging (e.g. ``"http"``)."""
        ...

    @property
    @abstractmethod
    def schemes(self) -> tuple[str, ...]:
        """Lower-case URL schemes this backend handles."""
        ...

    @abstractmethod
    def new_file(self) -> Any:
        """Return a fresh, unopened file object."""
        ...

    @abstractmethod
    def new_filesystem(self, url: str) -> Any:
        """Return a filesystem object bound to the effective *url*."""
        ...
