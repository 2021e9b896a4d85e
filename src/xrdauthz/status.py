"""Operation status codes and flag values shared by the handles and backends.

The values follow the XRootD client's ``XRootDStatus`` so that a caller can
treat a status from :class:`~xrdauthz.backends.http.HTTPBackend` exactly
like one coming straight from the ``XRootD.client`` bindings.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel

ST_OK = 0
"""The operation succeeded."""

ST_ERROR = 1
"""The operation failed; see ``code`` and ``errno``."""

ERR_NONE = 0
ERR_INVALID_OP = 3
ERR_INVALID_ARGS = 9
ERR_OS_ERROR = 12
ERR_NOT_SUPPORTED = 13
ERR_NOT_IMPLEMENTED = 15
ERR_ERROR_RESPONSE = 400


class Status(BaseModel):
    """Result status of a forwarded operation.

    Attributes:
        status: :data:`ST_OK` or :data:`ST_ERROR`.
        code: Client error code (``ERR_*``).
        errno: Server or OS errno, ``0`` when not applicable.
        message: Human-readable description.
    """

    status: int = ST_OK
    code: int = ERR_NONE
    errno: int = 0
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == ST_OK

    @property
    def error(self) -> bool:
        return self.status == ST_ERROR

    @classmethod
    def success(cls) -> Status:
        return cls()

    @classmethod
    def failure(cls, code: int, message: str = "", errno: int = 0) -> Status:
        return cls(status=ST_ERROR, code=code, errno=errno, message=message)

    def __str__(self) -> str:
        if self.ok:
            return "[SUCCESS] "
        return f"[ERROR] {self.message}".rstrip()


def not_implemented() -> Status:
    """Status returned by plugin methods a subclass does not override."""
    return Status.failure(ERR_NOT_IMPLEMENTED, "Operation not implemented")


def not_supported(operation: str) -> Status:
    """Status for operations a backend cannot express."""
    return Status.failure(ERR_NOT_SUPPORTED, f"Operation not supported: {operation}")


class OpenFlags(enum.IntFlag):
    """File open flags, bit-compatible with ``XRootD.client.flags.OpenFlags``."""

    NONE = 0
    DELETE = 2
    FORCE = 4
    NEW = 8
    READ = 16
    UPDATE = 32
    REFRESH = 128
    MAKEPATH = 256
    APPEND = 512
    WRITE = 32768


class MkDirFlags(enum.IntFlag):
    NONE = 0
    MAKEPATH = 1


class DirListFlags(enum.IntFlag):
    NONE = 0
    LOCATE = 1
    STAT = 2
