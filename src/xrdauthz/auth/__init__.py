"""Credential handling for xrdauthz.

The main entry points are:

- :func:`normalize_token` -- trims and validates one candidate credential.
- :class:`TokenDiscovery` -- walks the credential sources in precedence order.
- :func:`read_token_file` -- bounded, retrying read of an untrusted token file.
- :class:`UnixSecProtocol` -- the stub legacy ``unix`` handshake.

Typical usage::

    from xrdauthz.auth import TokenDiscovery
    from xrdauthz.config import load_settings

    token = TokenDiscovery(load_settings()).discover()
"""

from xrdauthz.auth.discovery import TokenDiscovery, read_token_file
from xrdauthz.auth.normalize import normalize_token
from xrdauthz.auth.unix import UnixSecProtocol

__all__ = [
    "TokenDiscovery",
    "UnixSecProtocol",
    "normalize_token",
    "read_token_file",
]
