"""Backend for the HTTP/WebDAV door of XRootD servers and caches.

:class:`HTTPFile` and :class:`HTTPFileSystem` implement the same method
surface as the ``XRootD.client`` objects on top of :class:`httpx.Client`,
returning ``(Status, response)`` tuples with the response models from
:mod:`xrdauthz.models`.

The effective URL's query string, including the ``authz`` credential, is
sent verbatim on every request; nothing is re-encoded. ``dav://`` and
``davs://`` are mapped to ``http://`` and ``https://``.

Operation mapping:

* ``open`` / ``stat`` -- ``HEAD`` (``PROPFIND Depth: 0`` for ``FileSystem.stat``)
* ``read`` / ``vector_read`` -- ``GET`` with a ``Range`` header
* ``write`` / ``truncate`` -- staged locally, uploaded with ``PUT`` on
  ``sync`` or ``close``
* ``dirlist`` -- ``PROPFIND Depth: 1``
* ``mv`` -- ``MOVE``; ``rm`` / ``rmdir`` -- ``DELETE``; ``mkdir`` -- ``MKCOL``
* ``ping`` -- ``OPTIONS``

Everything else reports ``errNotSupported``. Transport failures become
``errOSError`` statuses; there are no retries at this layer.
"""

from __future__ import annotations

import errno
import logging
import posixpath
import xml.etree.ElementTree as ET
from dataclasses import replace
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Optional
from urllib.parse import unquote, urlsplit

import httpx

from xrdauthz.backends.base import Backend
from xrdauthz.models import (
    ChunkInfo,
    DirEntry,
    DirectoryList,
    StatInfo,
    VectorReadInfo,
)
from xrdauthz.plugin.base import Callback, FilePlugin, FileSystemPlugin, Result
from xrdauthz.status import (
    ERR_ERROR_RESPONSE,
    ERR_INVALID_OP,
    ERR_OS_ERROR,
    DirListFlags,
    MkDirFlags,
    OpenFlags,
    Status,
    not_supported,
)
from xrdauthz.url import XrdUrl, parse_url

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], httpx.Client]

_SCHEME_MAP = {"http": "http", "https": "https", "dav": "http", "davs": "https"}

_HTTP_ERRNO = {
    401: errno.EACCES,
    403: errno.EACCES,
    404: errno.ENOENT,
    405: errno.EPERM,
    409: errno.ENOENT,
    412: errno.EEXIST,
    507: errno.ENOSPC,
}

_DAV = "{DAV:}"
_PROPFIND_BODY = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<D:propfind xmlns:D="DAV:"><D:prop>'
    "<D:resourcetype/><D:getcontentlength/><D:getlastmodified/>"
    "</D:prop></D:propfind>"
)

_WRITE_FLAGS = OpenFlags.NEW | OpenFlags.DELETE | OpenFlags.UPDATE | OpenFlags.WRITE


def _http_url(url: str) -> XrdUrl:
    parsed = parse_url(url)
    parsed.scheme = _SCHEME_MAP.get(parsed.scheme.lower(), parsed.scheme)
    return parsed


def _timeout(timeout: int) -> Any:
    return timeout if timeout else httpx.USE_CLIENT_DEFAULT


def _finish(status: Status, response: Any, callback: Callback) -> Result:
    if callback is not None:
        callback(status, response, None)
    return status, response


def _error_status(response: httpx.Response) -> Status:
    code = response.status_code
    return Status.failure(
        ERR_ERROR_RESPONSE,
        f"HTTP {code} {response.reason_phrase}".rstrip(),
        errno=_HTTP_ERRNO.get(code, errno.EIO),
    )


def _transport_status(exc: httpx.HTTPError) -> Status:
    logger.debug("HTTP transport failure: %s", exc)
    return Status.failure(ERR_OS_ERROR, str(exc) or type(exc).__name__, errno=errno.EIO)


def _parse_modtime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


def _stat_from_headers(response: httpx.Response) -> StatInfo:
    length = response.headers.get("content-length", "0")
    return StatInfo(
        size=int(length) if length.isdigit() else 0,
        flags=StatInfo.IS_READABLE,
        modtime=_parse_modtime(response.headers.get("last-modified")),
        id=response.headers.get("etag", ""),
    )


def _parse_multistatus(body: bytes) -> list[tuple[str, StatInfo]]:
    """Return ``(path, statinfo)`` for every ``<D:response>`` in a PROPFIND reply."""
    entries: list[tuple[str, StatInfo]] = []
    root = ET.fromstring(body)
    for node in root.iter(f"{_DAV}response"):
        href = node.findtext(f"{_DAV}href", default="")
        path = unquote(urlsplit(href).path)
        prop = node.find(f".//{_DAV}prop")
        is_dir = prop is not None and prop.find(f"{_DAV}resourcetype/{_DAV}collection") is not None
        length = prop.findtext(f"{_DAV}getcontentlength", default="0") if prop is not None else "0"
        modified = prop.findtext(f"{_DAV}getlastmodified") if prop is not None else None
        flags = StatInfo.IS_READABLE | (StatInfo.IS_DIR if is_dir else 0)
        entries.append(
            (
                path,
                StatInfo(
                    size=int(length) if length.strip().isdigit() else 0,
                    flags=flags,
                    modtime=_parse_modtime(modified),
                ),
            )
        )
    return entries


class HTTPFile(FilePlugin):
    """One remote file accessed over HTTP.

    Args:
        client_factory: Returns a new :class:`httpx.Client`; called on open.
    """

    def __init__(self, client_factory: ClientFactory) -> None:
        self._client_factory = client_factory
        self._client: Optional[httpx.Client] = None
        self._url: Optional[XrdUrl] = None
        self._buffer: Optional[bytearray] = None
        self._dirty = False
        self._properties: dict[str, str] = {}

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def open(
        self, url: str, flags: int = 0, mode: int = 0, timeout: int = 0, callback: Callback = None
    ) -> Result:
        if self._client is not None:
            return _finish(
                Status.failure(ERR_INVALID_OP, "File is already open"), None, callback
            )

        target = _http_url(url)
        client = self._client_factory()
        flags = OpenFlags(flags)
        try:
            if flags & _WRITE_FLAGS:
                status = self._open_for_write(client, target, flags, timeout)
            else:
                response = client.head(target.geturl(), timeout=_timeout(timeout))
                status = Status.success() if response.is_success else _error_status(response)
        except httpx.HTTPError as exc:
            status = _transport_status(exc)

        if not status.ok:
            client.close()
            self._buffer = None
            return _finish(status, None, callback)

        self._client = client
        self._url = target
        self._properties = {"LastURL": url, "DataServer": target.hostid}
        logger.debug("Opened %s://%s%s", target.scheme, target.hostid, target.path)
        return _finish(status, None, callback)

    def _open_for_write(
        self, client: httpx.Client, target: XrdUrl, flags: OpenFlags, timeout: int
    ) -> Status:
        self._buffer = bytearray()
        self._dirty = bool(flags & (OpenFlags.NEW | OpenFlags.DELETE))
        if flags & OpenFlags.DELETE:
            return Status.success()

        if flags & OpenFlags.NEW:
            response = client.head(target.geturl(), timeout=_timeout(timeout))
            if response.is_success:
                return Status.failure(
                    ERR_ERROR_RESPONSE, "File already exists", errno=errno.EEXIST
                )
            return Status.success()

        response = client.get(target.geturl(), timeout=_timeout(timeout))
        if not response.is_success:
            return _error_status(response)
        self._buffer.extend(response.content)
        return Status.success()

    def close(self, timeout: int = 0, callback: Callback = None) -> Result:
        if self._client is None:
            return _finish(Status.failure(ERR_INVALID_OP, "File is not open"), None, callback)
        status, _ = self.sync(timeout)
        self._client.close()
        self._client = None
        self._buffer = None
        self._dirty = False
        return _finish(status, None, callback)

    def is_open(self) -> bool:
        return self._client is not None

    # ------------------------------------------------------------------ #
    # Data operations
    # ------------------------------------------------------------------ #

    def stat(self, force: bool = False, timeout: int = 0, callback: Callback = None) -> Result:
        if self._client is None or self._url is None:
            return _finish(Status.failure(ERR_INVALID_OP, "File is not open"), None, callback)
        if self._buffer is not None:
            info = StatInfo(
                size=len(self._buffer), flags=StatInfo.IS_READABLE | StatInfo.IS_WRITABLE
            )
            return _finish(Status.success(), info, callback)
        try:
            response = self._client.head(self._url.geturl(), timeout=_timeout(timeout))
        except httpx.HTTPError as exc:
            return _finish(_transport_status(exc), None, callback)
        if not response.is_success:
            return _finish(_error_status(response), None, callback)
        return _finish(Status.success(), _stat_from_headers(response), callback)

    def read(
        self, offset: int = 0, size: int = 0, timeout: int = 0, callback: Callback = None
    ) -> Result:
        status, data = self._read_range(offset, size, timeout)
        return _finish(status, data, callback)

    def _read_range(self, offset: int, size: int, timeout: int) -> tuple[Status, Optional[bytes]]:
        if self._client is None or self._url is None:
            return Status.failure(ERR_INVALID_OP, "File is not open"), None
        if self._buffer is not None:
            end = len(self._buffer) if not size else offset + size
            return Status.success(), bytes(self._buffer[offset:end])

        last = f"{offset + size - 1}" if size else ""
        headers = {"Range": f"bytes={offset}-{last}"}
        try:
            response = self._client.get(
                self._url.geturl(), headers=headers, timeout=_timeout(timeout)
            )
        except httpx.HTTPError as exc:
            return _transport_status(exc), None
        if response.status_code == 416:
            return Status.success(), b""
        if not response.is_success:
            return _error_status(response), None
        if response.status_code == 206:
            return Status.success(), response.content
        # Server ignored the Range header and sent the whole body.
        end = None if not size else offset + size
        return Status.success(), response.content[offset:end]

    def vector_read(
        self, chunks: list[tuple[int, int]], timeout: int = 0, callback: Callback = None
    ) -> Result:
        result = VectorReadInfo()
        for offset, length in chunks:
            status, data = self._read_range(offset, length, timeout)
            if not status.ok:
                return _finish(status, None, callback)
            data = data or b""
            result.chunks.append(ChunkInfo(offset=offset, length=len(data), buffer=data))
            result.size += len(data)
        return _finish(Status.success(), result, callback)

    def write(
        self,
        buffer: bytes,
        offset: int = 0,
        size: int = 0,
        timeout: int = 0,
        callback: Callback = None,
    ) -> Result:
        if self._buffer is None:
            return _finish(
                Status.failure(ERR_INVALID_OP, "File is not open for writing"), None, callback
            )
        data = buffer[:size] if size else buffer
        end = offset + len(data)
        if len(self._buffer) < offset:
            self._buffer.extend(b"\0" * (offset - len(self._buffer)))
        self._buffer[offset:end] = data
        self._dirty = True
        return _finish(Status.success(), None, callback)

    def truncate(self, size: int, timeout: int = 0, callback: Callback = None) -> Result:
        if self._buffer is None:
            return _finish(
                Status.failure(ERR_INVALID_OP, "File is not open for writing"), None, callback
            )
        if size < len(self._buffer):
            del self._buffer[size:]
        else:
            self._buffer.extend(b"\0" * (size - len(self._buffer)))
        self._dirty = True
        return _finish(Status.success(), None, callback)

    def sync(self, timeout: int = 0, callback: Callback = None) -> Result:
        if self._client is None or self._url is None:
            return _finish(Status.failure(ERR_INVALID_OP, "File is not open"), None, callback)
        if not self._dirty or self._buffer is None:
            return _finish(Status.success(), None, callback)
        try:
            response = self._client.put(
                self._url.geturl(), content=bytes(self._buffer), timeout=_timeout(timeout)
            )
        except httpx.HTTPError as exc:
            return _finish(_transport_status(exc), None, callback)
        if not response.is_success:
            return _finish(_error_status(response), None, callback)
        self._dirty = False
        return _finish(Status.success(), None, callback)

    def fcntl(self, arg: bytes, timeout: int = 0, callback: Callback = None) -> Result:
        return _finish(not_supported("fcntl"), None, callback)

    def visa(self, timeout: int = 0, callback: Callback = None) -> Result:
        return _finish(not_supported("visa"), None, callback)

    def set_property(self, name: str, value: str) -> bool:
        self._properties[name] = value
        return True

    def get_property(self, name: str) -> Optional[str]:
        return self._properties.get(name)


class HTTPFileSystem(FileSystemPlugin):
    """Namespace operations against one HTTP endpoint.

    Args:
        url: Effective URL of the endpoint; its query (with ``authz``) is
            attached to every request.
        client_factory: Returns the :class:`httpx.Client` used for all
            requests, created on first use.
    """

    def __init__(self, url: str, client_factory: ClientFactory) -> None:
        self._base = _http_url(url)
        self._client_factory = client_factory
        self._client: Optional[httpx.Client] = None
        self._properties: dict[str, str] = {}

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def _url_for(self, path: str, with_params: bool = True) -> str:
        params = self._base.params if with_params else {}
        return replace(self._base, path="/" + path.lstrip("/"), params=dict(params)).geturl()

    def _request(
        self, method: str, path: str, timeout: int, **kwargs: Any
    ) -> tuple[Status, Optional[httpx.Response]]:
        try:
            response = self._http().request(
                method, self._url_for(path), timeout=_timeout(timeout), **kwargs
            )
        except httpx.HTTPError as exc:
            return _transport_status(exc), None
        if not response.is_success:
            return _error_status(response), response
        return Status.success(), response

    def stat(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        status, response = self._request(
            "PROPFIND", path, timeout, headers={"Depth": "0"}, content=_PROPFIND_BODY
        )
        if not status.ok or response is None:
            return _finish(status, None, callback)
        try:
            entries = _parse_multistatus(response.content)
        except ET.ParseError as exc:
            return _finish(
                Status.failure(ERR_ERROR_RESPONSE, f"Malformed PROPFIND reply: {exc}"),
                None,
                callback,
            )
        info = entries[0][1] if entries else StatInfo()
        return _finish(Status.success(), info, callback)

    def dirlist(
        self, path: str, flags: int = 0, timeout: int = 0, callback: Callback = None
    ) -> Result:
        status, response = self._request(
            "PROPFIND", path, timeout, headers={"Depth": "1"}, content=_PROPFIND_BODY
        )
        if not status.ok or response is None:
            return _finish(status, None, callback)
        try:
            entries = _parse_multistatus(response.content)
        except ET.ParseError as exc:
            return _finish(
                Status.failure(ERR_ERROR_RESPONSE, f"Malformed PROPFIND reply: {exc}"),
                None,
                callback,
            )

        parent = "/" + path.strip("/")
        with_stat = bool(DirListFlags(flags) & DirListFlags.STAT)
        listing = DirectoryList(parent=parent)
        for entry_path, info in entries:
            if "/" + entry_path.strip("/") == parent:
                continue
            listing.dirlist.append(
                DirEntry(
                    name=posixpath.basename(entry_path.rstrip("/")),
                    hostaddr=self._base.hostid,
                    statinfo=info if with_stat else None,
                )
            )
        listing.size = len(listing.dirlist)
        return _finish(Status.success(), listing, callback)

    def mv(self, source: str, target: str, timeout: int = 0, callback: Callback = None) -> Result:
        destination = self._url_for(target, with_params=False)
        status, _ = self._request(
            "MOVE", source, timeout, headers={"Destination": destination, "Overwrite": "F"}
        )
        return _finish(status, None, callback)

    def rm(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        status, _ = self._request("DELETE", path, timeout)
        return _finish(status, None, callback)

    def rmdir(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        status, _ = self._request("DELETE", path.rstrip("/") + "/", timeout)
        return _finish(status, None, callback)

    def mkdir(
        self,
        path: str,
        flags: int = 0,
        mode: int = 0,
        timeout: int = 0,
        callback: Callback = None,
    ) -> Result:
        targets = [path]
        if MkDirFlags(flags) & MkDirFlags.MAKEPATH:
            parts = [p for p in path.split("/") if p]
            targets = ["/" + "/".join(parts[: i + 1]) for i in range(len(parts))]

        status = Status.success()
        for index, target in enumerate(targets):
            status, response = self._request("MKCOL", target.rstrip("/") + "/", timeout)
            last = index == len(targets) - 1
            # 405: the collection already exists, fine for intermediate components.
            if not status.ok and not last and response is not None and response.status_code == 405:
                status = Status.success()
                continue
            if not status.ok:
                break
        return _finish(status, None, callback)

    def ping(self, timeout: int = 0, callback: Callback = None) -> Result:
        status, _ = self._request("OPTIONS", self._base.path or "/", timeout)
        return _finish(status, None, callback)

    def locate(self, path: str, flags: int, timeout: int = 0, callback: Callback = None) -> Result:
        return _finish(not_supported("locate"), None, callback)

    def deeplocate(
        self, path: str, flags: int, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return _finish(not_supported("deeplocate"), None, callback)

    def query(
        self, querycode: int, arg: str, timeout: int = 0, callback: Callback = None
    ) -> Result:
        return _finish(not_supported("query"), None, callback)

    def truncate(self, path: str, size: int, timeout: int = 0, callback: Callback = None) -> Result:
        return _finish(not_supported("truncate"), None, callback)

    def chmod(self, path: str, mode: int, timeout: int = 0, callback: Callback = None) -> Result:
        return _finish(not_supported("chmod"), None, callback)

    def statvfs(self, path: str, timeout: int = 0, callback: Callback = None) -> Result:
        return _finish(not_supported("statvfs"), None, callback)

    def protocol(self, timeout: int = 0, callback: Callback = None) -> Result:
        return _finish(not_supported("protocol"), None, callback)

    def sendinfo(self, info: str, timeout: int = 0, callback: Callback = None) -> Result:
        return _finish(not_supported("sendinfo"), None, callback)

    def prepare(
        self,
        files: list[str],
        flags: int,
        priority: int = 0,
        timeout: int = 0,
        callback: Callback = None,
    ) -> Result:
        return _finish(not_supported("prepare"), None, callback)

    def set_property(self, name: str, value: str) -> bool:
        self._properties[name] = value
        return True

    def get_property(self, name: str) -> Optional[str]:
        return self._properties.get(name)


class HTTPBackend(Backend):
    """Create :class:`HTTPFile` and :class:`HTTPFileSystem` objects.

    Args:
        client_factory: Returns a configured :class:`httpx.Client`. Defaults
            to a client with *timeout* seconds, TLS verification per
            *verify*, and redirect following (XRootD doors redirect to data
            servers).
        timeout: Default request timeout in seconds.
        verify: TLS verification setting passed to httpx.
    """

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        timeout: float = 30.0,
        verify: Any = True,
    ) -> None:
        if client_factory is None:

            def client_factory() -> httpx.Client:
                return httpx.Client(timeout=timeout, verify=verify, follow_redirects=True)

        self._client_factory = client_factory

    @property
    def name(self) -> str:
        return "http"

    @property
    def schemes(self) -> tuple[str, ...]:
        return tuple(_SCHEME_MAP)

    def new_file(self) -> HTTPFile:
        return HTTPFile(self._client_factory)

    def new_filesystem(self, url: str) -> HTTPFileSystem:
        return HTTPFileSystem(url, self._client_factory)
