"""Bearer token discovery.

:class:`TokenDiscovery` walks an ordered list of credential sources and
returns the first one that yields a valid token after normalization:

1. ``$BEARER_TOKEN`` -- the token itself.
2. ``$BEARER_TOKEN_FILE`` -- path to a file holding the token.
3. ``$XDG_RUNTIME_DIR/bt_u<euid>`` -- the per-user runtime file.
4. ``/tmp/bt_u<euid>`` -- the same file name under the fallback root.

Nothing is cached between calls. Environment variables and file contents
are re-read every time, so a token rotated on disk takes effect on the next
operation.

File contents are untrusted: they go through exactly the same
:func:`~xrdauthz.auth.normalize.normalize_token` path as environment values,
and an oversized, unreadable, or empty file simply moves the search on to
the next source.
"""

from __future__ import annotations

import errno
import logging
import os
import stat
from pathlib import Path
from typing import Mapping, Optional, Union

from xrdauthz.auth.normalize import normalize_token
from xrdauthz.exceptions import TokenSourceError
from xrdauthz.models import AuthzSettings, DiscoveredToken, TokenSource

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKEN_SIZE = 16384

_EXHAUSTION_ERRNOS = frozenset({errno.ENOMEM, errno.EMFILE, errno.ENFILE})
_READ_CHUNK = 4096
_MAX_WOULD_BLOCK = 3
_OPEN_FLAGS = os.O_RDONLY | getattr(os, "O_NONBLOCK", 0) | getattr(os, "O_CLOEXEC", 0)


def read_token_file(
    path: Union[str, Path], max_size: int = DEFAULT_MAX_TOKEN_SIZE
) -> str:
    """Read and normalize a token file.

    The file is opened non-blocking and must be a regular file, so a FIFO
    or device planted at a well-known path is skipped instead of stalling
    the caller. At most ``max_size + 1`` bytes are read; anything larger
    than ``max_size`` is rejected outright rather than truncated.
    Interrupted reads are retried. A would-block read is retried a bounded
    number of times and then treated as a failed source.

    Args:
        path: File to read.
        max_size: Largest accepted file size in bytes.

    Returns:
        The normalized token, or ``""`` if the file is missing, unreadable,
        not a regular file, oversized, or holds no valid token.

    Raises:
        TokenSourceError: If opening or reading fails because the process ran
            out of memory or file descriptors.
    """
    try:
        fd = os.open(path, _OPEN_FLAGS)
    except OSError as exc:
        if exc.errno in _EXHAUSTION_ERRNOS:
            raise TokenSourceError(f"Cannot open token file {path}: {exc}") from exc
        logger.debug("Token file %s not usable: %s", path, exc.strerror)
        return ""

    data = bytearray()
    try:
        try:
            st = os.fstat(fd)
        except OSError as exc:
            logger.debug("Cannot stat token file %s: %s", path, exc.strerror)
            return ""
        if not stat.S_ISREG(st.st_mode):
            logger.debug("Token file %s is not a regular file, ignoring", path)
            return ""
        if st.st_size > max_size:
            logger.debug("Token file %s exceeds %d bytes, ignoring", path, max_size)
            return ""

        would_block = 0
        while len(data) <= max_size:
            try:
                chunk = os.read(fd, min(_READ_CHUNK, max_size + 1 - len(data)))
            except InterruptedError:
                continue
            except BlockingIOError:
                would_block += 1
                if would_block > _MAX_WOULD_BLOCK:
                    logger.debug("Token file %s keeps blocking, ignoring", path)
                    return ""
                continue
            except MemoryError as exc:
                raise TokenSourceError(f"Cannot read token file {path}: out of memory") from exc
            except OSError as exc:
                if exc.errno in _EXHAUSTION_ERRNOS:
                    raise TokenSourceError(
                        f"Cannot read token file {path}: {exc}"
                    ) from exc
                logger.debug("Reading token file %s failed: %s", path, exc.strerror)
                return ""
            if not chunk:
                break
            data.extend(chunk)
    finally:
        os.close(fd)

    if len(data) > max_size:
        logger.debug("Token file %s exceeds %d bytes, ignoring", path, max_size)
        return ""
    return normalize_token(bytes(data))


class TokenDiscovery:
    """Find a bearer token following the WLCG discovery order.

    Args:
        settings: Static configuration (variable names, directories, limits).
        environ: Live environment mapping consulted on every call. Defaults
            to ``os.environ`` itself, not a copy.
        uid: Effective user id for the well-known file name. Defaults to
            ``os.geteuid()`` at call time; on platforms without it the
            well-known files are skipped.

    Example::

        discovery = TokenDiscovery(load_settings())
        token = discovery.discover()
        if token:
            ...
    """

    def __init__(
        self,
        settings: AuthzSettings,
        environ: Optional[Mapping[str, str]] = None,
        uid: Optional[int] = None,
    ) -> None:
        self._settings = settings
        self._environ = os.environ if environ is None else environ
        self._uid = uid

    def discover(self) -> str:
        """Return the first valid token, or ``""`` if no source has one."""
        return self.discover_with_source().value

    def discover_with_source(self) -> DiscoveredToken:
        """Return the first valid token together with where it was found."""
        settings = self._settings

        token = normalize_token(self._environ.get(settings.token_env))
        if token:
            return self._found(token, TokenSource.ENV, settings.token_env)

        token_file = self._environ.get(settings.token_file_env)
        if token_file:
            token = read_token_file(token_file, settings.max_token_size)
            if token:
                return self._found(token, TokenSource.ENV_FILE, token_file)

        name = self.well_known_name()
        if name is not None:
            runtime_dir = self._environ.get(settings.runtime_dir_env)
            if runtime_dir:
                path = Path(runtime_dir) / name
                token = read_token_file(path, settings.max_token_size)
                if token:
                    return self._found(token, TokenSource.RUNTIME_DIR, str(path))

            path = settings.fallback_dir / name
            token = read_token_file(path, settings.max_token_size)
            if token:
                return self._found(token, TokenSource.FALLBACK_DIR, str(path))

        logger.debug("No bearer token found in any source")
        return DiscoveredToken()

    def well_known_name(self) -> Optional[str]:
        """Return ``<prefix><euid>``, or ``None`` where there is no euid."""
        uid = self._uid
        if uid is None:
            geteuid = getattr(os, "geteuid", None)
            if geteuid is None:
                return None
            uid = geteuid()
        return f"{self._settings.token_file_prefix}{uid}"

    @staticmethod
    def _found(token: str, source: TokenSource, location: str) -> DiscoveredToken:
        logger.debug(
            "Using bearer token from %s (%s, %d chars)", source.value, location, len(token)
        )
        return DiscoveredToken(value=token, source=source, location=location)
