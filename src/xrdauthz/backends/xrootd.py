"""Backend for the native XRootD protocol.

Objects come straight from the ``XRootD.client`` Python bindings (the
``xrootd`` distribution, installed with the ``xrootd`` extra). The bindings
are imported on first use so that the rest of the package works on hosts
where only the HTTP door is reachable.
"""

from __future__ import annotations

import importlib
import logging
from types import ModuleType
from typing import Any

from xrdauthz.backends.base import Backend
from xrdauthz.exceptions import BackendError

logger = logging.getLogger(__name__)


def _client_module() -> ModuleType:
    try:
        return importlib.import_module("XRootD.client")
    except ImportError as exc:
        raise BackendError(
            "The XRootD Python bindings are not installed; "
            "install 'xrdauthz[xrootd]' to open root:// URLs"
        ) from exc


class XRootDBackend(Backend):
    """Create ``XRootD.client.File`` and ``FileSystem`` objects."""

    @property
    def name(self) -> str:
        return "xrootd"

    @property
    def schemes(self) -> tuple[str, ...]:
        return ("root", "roots", "xroot", "xroots")

    def new_file(self) -> Any:
        return _client_module().File()

    def new_filesystem(self, url: str) -> Any:
        logger.debug("Creating XRootD filesystem object")
        return _client_module().FileSystem(url)
