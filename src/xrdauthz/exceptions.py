"""Exception hierarchy for xrdauthz.

All exceptions inherit from :class:`AuthzError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`xrdauthz.exit_codes`.
The CLI entry point in :func:`xrdauthz.app.main` catches ``AuthzError`` and
exits with the matching code; unexpected exceptions produce a crash log.

The library itself raises only for malformed input and genuine faults. A
missing token is never an exception: it simply means no ``authz`` parameter
is added.

Subclass hierarchy::

    AuthzError (exit 1)
    +-- UrlError               (exit 2)
    +-- AuthError              (exit 3)
    |   +-- ProtocolMismatchError
    +-- TokenSourceError       (exit 3)
    +-- BackendError           (exit 6)
    +-- ConfigError            (exit 1)
"""

import errno as _errno

from xrdauthz.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_BACKEND_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class AuthzError(Exception):
    """Base exception for all xrdauthz errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class UrlError(AuthzError):
    """Raised when a target URL cannot be parsed (no scheme, bad port, empty)."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(AuthzError):
    """Raised when a credential is rejected."""

    exit_code = EXIT_AUTH_FAILURE


class ProtocolMismatchError(AuthError):
    """Raised by the legacy handshake when the credential's protocol tag is wrong.

    Carries ``errno == EINVAL`` so callers that speak the errno dialect of
    the security layer can report it as an invalid-parameter failure.
    """

    errno = _errno.EINVAL


class TokenSourceError(AuthzError):
    """Raised when reading a token file fails from resource exhaustion.

    Ordinary failures (missing, unreadable, oversized, empty file) never
    raise; they just skip to the next token source.
    """

    exit_code = EXIT_AUTH_FAILURE


class BackendError(AuthzError):
    """Raised when no backend handles a URL scheme or a backend cannot load."""

    exit_code = EXIT_BACKEND_ERROR


class ConfigError(AuthzError):
    """Raised for invalid settings."""

    exit_code = EXIT_GENERIC_FAILURE
