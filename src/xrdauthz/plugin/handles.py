"""Forwarding handles that apply URL customization.

:class:`AuthzFile` and :class:`AuthzFileSystem` wrap an underlying client
object and pass every call through with identical arguments, returning the
underlying result untouched. The only behaviour they add is URL
customization: a file rewrites the URL given to :meth:`AuthzFile.open`, a
filesystem is built on an already customized URL by
:class:`~xrdauthz.plugin.factory.AuthzFactory`.
"""

from __future__ import annotations

from typing import Any, Optional

from xrdauthz.plugin.base import Callback, FilePlugin, FileSystemPlugin, Result
from xrdauthz.url import UrlCustomizer


class AuthzFile(FilePlugin):
    """File handle that customizes its URL at open time.

    Args:
        file: The underlying file object (``XRootD.client.File``, an HTTP
            backend file, or a test double).
        customizer: Computes the effective URL for :meth:`open`.
    """

    def __init__(self, file: Any, customizer: UrlCustomizer) -> None:
        self._file = file
        self._customizer = customizer

    @property
    def wrapped(self) -> Any:
        """The underlying file object."""
        return self._file

    def open(
        self, url: str, flags: int = 0, mode: int = 0, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return self._file.open(self._customizer.customize(url), flags, mode, timeout, callback)

    def close(self, timeout: int = 0, callback: Callback = None) -> Result:
        return self._file.close(timeout, callback)

    def stat(self, force: bool = False, timeout: int = 0, callback: Callback = None) -> Result:
        return self._file.stat(force, timeout, callback)

    def read(
        self, offset: int = 0, size: int = 0, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return self._file.read(offset, size, timeout, callback)

    def write(
        self,
        buffer: bytes,
        offset: int = 0,
        size: int = 0,
        timeout: int = 0,
        callback: Callback = None,
    ) -> Result:
        return self._file.write(buffer, offset, size, timeout, callback)

    def sync(self, timeout: int = 0, callback: Callback = None) -> Result:
        return self._file.sync(timeout, callback)

    def truncate(self, size: int, timeout: int = 0, callback: Callback = None) -> Result:
        return self._file.truncate(size, timeout, callback)

    def vector_read(
        self, chunks: list[tuple[int, int]], timeout: int = 0, callback: Callback = None
    ) -> Result:
        return self._file.vector_read(chunks, timeout, callback)

    def fcntl(self, arg: bytes, timeout: int = 0, callback: Callback = None) -> Result:
        return self._file.fcntl(arg, timeout, callback)

    def visa(self, timeout: int = 0, callback: Callback = None) -> Result:
        return self._file.visa(timeout, callback)

    def is_open(self) -> bool:
        return self._file.is_open()

    def set_property(self, name: str, value: str) -> bool:
        return self._file.set_property(name, value)

    def get_property(self, name: str) -> Optional[str]:
        return self._file.get_property(name)


class AuthzFileSystem(FileSystemPlugin):
    """Filesystem handle bound to one effective URL.

    Args:
        filesystem: The underlying filesystem object, already constructed on
            *url*.
        url: The effective (customized) URL the filesystem was built on.
    """

    def __init__(self, filesystem: Any, url: str) -> None:
        self._fs = filesystem
        self._url = url

    @property
    def url(self) -> str:
        """The effective URL this handle is bound to."""
        return self._url

    @property
    def wrapped(self) -> Any:
        """The underlying filesystem object."""
        return self._fs

    def locate(self, path: str, flags: int, timeout: int = 0, callback: Callback = None) -> Result:
        return self._fs.locate(path, flags, timeout, callback)

    def deeplocate(
        self, path: str, flags: int, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return self._fs.deeplocate(path, flags, timeout, callback)

    def mv(self, source: str, target: str, timeout: int = 0, callback: Callback = None) -> Result:
        return self._fs.mv(source, target, timeout, callback)

    def query(
        self, querycode: int, arg: str, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return self._fs.query(querycode, arg, timeout, callback)

    def truncate(self, path: str, size: int, timeout: int = 0, callback: Callback = None) -> Result:
        return self._fs.truncate(path, size, timeout, callback)

    def rm(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        return self._fs.rm(path, timeout, callback)

    def mkdir(
        self,
        path: str,
        flags: int = 0,
        mode: int = 0,
        timeout: int = 0,
        callback: Callback = None,
    ) -> Result:
        return self._fs.mkdir(path, flags, mode, timeout, callback)

    def rmdir(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        return self._fs.rmdir(path, timeout, callback)

    def chmod(self, path: str, mode: int, timeout: int = 0, callback: Callback = None) -> Result:
        return self._fs.chmod(path, mode, timeout, callback)

    def ping(self, timeout: int = 0, callback: Callback = None) -> Result:
        return self._fs.ping(timeout, callback)

    def stat(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        return self._fs.stat(path, timeout, callback)

    def statvfs(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        return self._fs.statvfs(path, timeout, callback)

    def protocol(self, timeout: int = 0, callback: Callback = None) -> Result:
        return self._fs.protocol(timeout, callback)

    def dirlist(
        self, path: str, flags: int = 0, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return self._fs.dirlist(path, flags, timeout, callback)

    def sendinfo(self, info: str, timeout: int = 0, callback: Callback = None) -> Result:
        return self._fs.sendinfo(info, timeout, callback)

    def prepare(
        self,
        files: list[str],
        flags: int,
        priority: int = 0,
        timeout: int = 0,
        callback: Callback = None,
    ) -> Result:
        return self._fs.prepare(files, flags, priority, timeout, callback)

    def set_property(self, name: str, value: str) -> bool:
        return self._fs.set_property(name, value)

    def get_property(self, name: str) -> Optional[str]:
        return self._fs.get_property(name)
