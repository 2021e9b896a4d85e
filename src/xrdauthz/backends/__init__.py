"""Client backends -- the objects the forwarding handles delegate to.

Key classes:

* :class:`Backend` -- abstract base for a backend.
* :class:`BackendManager` -- scheme-to-backend registry with entry-point
  discovery.
* :class:`XRootDBackend` -- ``root://`` through the ``XRootD`` bindings.
* :class:`HTTPBackend` -- ``https://`` / ``davs://`` through httpx.
"""

from xrdauthz.backends.base import Backend
from xrdauthz.backends.http import HTTPBackend
from xrdauthz.backends.manager import BackendManager, create_default_manager
from xrdauthz.backends.xrootd import XRootDBackend

__all__ = [
    "Backend",
    "BackendManager",
    "HTTPBackend",
    "XRootDBackend",
    "create_default_manager",
]
