"""Stub ``unix`` security protocol.

A minimal responder for servers that still negotiate the legacy ``unix``
protocol when no real credential exchange is configured. It never hands out
credentials of its own and accepts every client, except one that explicitly
claims to speak a different protocol.

Wire contract:

* no credential blob, or one shorter than four bytes -- accepted; the
  identity is derived from the connecting host.
* otherwise the protocol tag (the blob up to its first NUL) must be
  ``b"unix"``; anything else fails with
  :class:`~xrdauthz.exceptions.ProtocolMismatchError` (``EINVAL``).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from xrdauthz.exceptions import ProtocolMismatchError
from xrdauthz.models import SecEntity

logger = logging.getLogger(__name__)

PROTOCOL_ID = "unix"
_TAG_SIZE = 4


class UnixSecProtocol:
    """Server-side ``unix`` protocol object for one connection.

    Args:
        hostname: Name of the connecting host; becomes the entity's host.
        endpoint: Opaque address information of the peer.
    """

    def __init__(self, hostname: str, endpoint: Any = None) -> None:
        self.entity = SecEntity(
            prot=PROTOCOL_ID, name="?", host=hostname, addr_info=endpoint
        )

    @property
    def protocol(self) -> str:
        return PROTOCOL_ID

    def get_credentials(self, parms: Any = None) -> None:
        """Client side of the handshake; this stub never has credentials."""
        return None

    def authenticate(self, credentials: Optional[bytes]) -> SecEntity:
        """Check a client's credential blob.

        Args:
            credentials: Raw blob sent by the client, or ``None``.

        Returns:
            The authenticated :class:`~xrdauthz.models.SecEntity`.

        Raises:
            ProtocolMismatchError: If the blob names a protocol other than
                ``unix``.
        """
        if not credentials or len(credentials) < _TAG_SIZE:
            self.entity = self.entity.model_copy(update={"prot": "host", "name": "?"})
            return self.entity

        tag = credentials.split(b"\0", 1)[0]
        if tag != PROTOCOL_ID.encode():
            shown = tag[:_TAG_SIZE].decode("latin-1")
            msg = f"Secunix: Authentication protocol id mismatch ({PROTOCOL_ID} != {shown})."
            logger.warning(msg)
            raise ProtocolMismatchError(msg)

        return self.entity


def unix_protocol_init(mode: str, parms: Optional[str] = None) -> str:
    """Protocol initialisation hook; the stub needs no parameters."""
    return ""


def unix_protocol_object(
    mode: str, hostname: str, endpoint: Any = None, parms: Optional[str] = None
) -> UnixSecProtocol:
    """Create the protocol object for a new connection from *hostname*."""
    return UnixSecProtocol(hostname, endpoint)
