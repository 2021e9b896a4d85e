"""Canonical Pydantic models shared across xrdauthz modules.

**Configuration models**:
    :class:`AuthzSettings` -- the static configuration snapshot built once
    from the environment by :func:`~xrdauthz.config.load_settings`.

**Credential models**:
    :class:`TokenSource` and :class:`DiscoveredToken` -- the result of token
    discovery, with enough provenance for the CLI to explain it.
    :class:`SecEntity` -- the identity produced by the legacy handshake.

**Response models** -- returned by the HTTP backend in the same positions the
XRootD bindings return their response objects:
    :class:`StatInfo`, :class:`DirEntry`, :class:`DirectoryList`,
    :class:`ChunkInfo`, :class:`VectorReadInfo`.
"""

from __future__ import annotations

import enum
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Settings ---


class AuthzSettings(BaseModel):
    """Static configuration for URL customization and token discovery.

    Values that describe *where* to look (variable names, directories,
    prefixes) are fixed here. Values that may rotate while the process runs
    (the token itself, the token file content) are read live on every call
    by :class:`~xrdauthz.auth.discovery.TokenDiscovery`.

    Example::

        AuthzSettings(proxy_host="cache.example.org", proxy_port="1095")
    """

    model_config = ConfigDict(frozen=True)

    placeholder_host: str = Field(
        default="xcache", description="Reserved host name resolved to the proxy"
    )
    proxy_host: Optional[str] = Field(
        default=None, description="Replacement host for the placeholder (XCACHE_HOST)"
    )
    proxy_port: Optional[str] = Field(
        default=None,
        description="Replacement port as configured (XCACHE_PORT); ignored unless valid",
    )
    token_env: str = Field(
        default="BEARER_TOKEN", description="Variable holding the raw token"
    )
    token_file_env: str = Field(
        default="BEARER_TOKEN_FILE", description="Variable naming a token file"
    )
    runtime_dir_env: str = Field(
        default="XDG_RUNTIME_DIR", description="Variable naming the user runtime dir"
    )
    token_file_prefix: str = Field(
        default="bt_u", description="Well-known token file name prefix (+ euid)"
    )
    fallback_dir: Path = Field(
        default=Path("/tmp"), description="Fallback root for the well-known file"
    )
    max_token_size: int = Field(
        default=16384, gt=0, description="Largest token file accepted, in bytes"
    )
    authz_param: str = Field(
        default="authz", description="Query parameter carrying the credential"
    )


# --- Credentials ---


class TokenSource(str, enum.Enum):
    """Where a discovered token came from, in precedence order."""

    ENV = "env"
    ENV_FILE = "env_file"
    RUNTIME_DIR = "runtime_dir"
    FALLBACK_DIR = "fallback_dir"
    NONE = "none"


class DiscoveredToken(BaseModel):
    """A normalized token together with its provenance.

    Attributes:
        value: The normalized token; ``""`` when nothing was found.
        source: Which lookup step produced it.
        location: Variable name or file path that supplied it.
    """

    value: str = ""
    source: TokenSource = TokenSource.NONE
    location: Optional[str] = None

    @property
    def found(self) -> bool:
        return bool(self.value)

    def masked(self) -> str:
        """Return the token with all but its first and last four characters hidden."""
        if len(self.value) <= 8:
            return "*" * len(self.value)
        return f"{self.value[:4]}...{self.value[-4:]}"


class SecEntity(BaseModel):
    """Identity assigned by a security protocol after a handshake."""

    prot: str = Field(description="Protocol that established the identity")
    name: str = "?"
    host: str = ""
    addr_info: Any = None


# --- Backend responses ---


class StatInfo(BaseModel):
    """File or directory metadata.

    ``flags`` uses the XRootD bit layout so callers can test both kinds of
    stat result the same way.
    """

    IS_DIR: ClassVar[int] = 2
    IS_READABLE: ClassVar[int] = 16
    IS_WRITABLE: ClassVar[int] = 32

    size: int = 0
    flags: int = 0
    modtime: Optional[datetime] = None
    id: str = ""

    @property
    def is_dir(self) -> bool:
        return bool(self.flags & self.IS_DIR)


class DirEntry(BaseModel):
    """One directory listing entry."""

    name: str
    hostaddr: str = ""
    statinfo: Optional[StatInfo] = None


class DirectoryList(BaseModel):
    """Listing of a remote directory."""

    parent: str
    size: int = 0
    dirlist: list[DirEntry] = Field(default_factory=list)

    def __iter__(self):  # type: ignore[override]
        return iter(self.dirlist)


class ChunkInfo(BaseModel):
    """One chunk of a vectored read."""

    offset: int
    length: int
    buffer: bytes = b""


class VectorReadInfo(BaseModel):
    """Result of a vectored read."""

    size: int = 0
    chunks: list[ChunkInfo] = Field(default_factory=list)
