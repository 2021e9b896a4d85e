"""Base classes for file and filesystem plugins.

A plugin handle stands in for the client's own ``File`` / ``FileSystem``
objects. The method names and signatures follow the ``XRootD.client``
Python bindings, so a handle can be used wherever those objects are:
every data operation takes optional ``timeout`` and ``callback`` arguments
and returns a ``(status, response)`` tuple.

Every method has a default implementation that reports
``errNotImplemented``, so a subclass only overrides what it supports.

Example:
    Minimal read-only plugin::

        class ReadOnlyFile(FilePlugin):
            def read(self, offset=0, size=0, timeout=0, callback=None):
                return Status.success(), b""
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from xrdauthz.status import not_implemented

Callback = Optional[Callable[..., Any]]
Result = tuple[Any, Any]


class FilePlugin:
    """Interface of a file handle. Defaults report "not implemented"."""

    def open(
        self, url: str, flags: int = 0, mode: int = 0, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return not_implemented(), None

    def close(self, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def stat(self, force: bool = False, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def read(
        self, offset: int = 0, size: int = 0, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return not_implemented(), None

    def write(
        self,
        buffer: bytes,
        offset: int = 0,
        size: int = 0,
        timeout: int = 0,
        callback: Callback = None,
    ) -> Result:
        return not_implemented(), None

    def sync(self, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def truncate(self, size: int, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def vector_read(
        self, chunks: list[tuple[int, int]], timeout: int = 0, callback: Callback = None
    ) -> Result:
        return not_implemented(), None

    def fcntl(self, arg: bytes, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def visa(self, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def is_open(self) -> bool:
        return False

    def set_property(self, name: str, value: str) -> bool:
        return False

    def get_property(self, name: str) -> Optional[str]:
        return None


class FileSystemPlugin:
    """Interface of a filesystem handle. Defaults report "not implemented"."""

    def locate(self, path: str, flags: int, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def deeplocate(
        self, path: str, flags: int, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return not_implemented(), None

    def mv(self, source: str, target: str, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def query(
        self, querycode: int, arg: str, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return not_implemented(), None

    def truncate(self, path: str, size: int, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def rm(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def mkdir(
        self,
        path: str,
        flags: int = 0,
        mode: int = 0,
        timeout: int = 0,
        callback: Callback = None,
    ) -> Result:
        return not_implemented(), None

    def rmdir(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def chmod(self, path: str, mode: int, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def ping(self, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def stat(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def statvfs(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def protocol(self, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def dirlist(
        self, path: str, flags: int = 0, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return not_implemented(), None

    def sendinfo(self, info: str, timeout: int = 0, callback: Callback = None) -> Result:
        return not_implemented(), None

    def prepare(
        self,
        files: list[str],
        flags: int,
        priority: int = 0,
        timeout: int = 0,
        callback: Callback = None,
    ) -> Result:
        return not_implemented(), None

    def set_property(self, name: str, value: str) -> bool:
        return False

    def get_property(self, name: str) -> Optional[str]:
        return None
