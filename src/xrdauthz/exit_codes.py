"""Numeric process exit codes used by the ``xrdauthz`` CLI.

Each constant maps to an error category and is referenced by the
corresponding :class:`~xrdauthz.exceptions.AuthzError` subclass, so shell
wrappers can tell a missing token from a malformed URL without parsing
stderr.
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an unparseable URL."""

EXIT_AUTH_FAILURE = 3
"""No usable credential, or the handshake rejected the credential."""

EXIT_NOT_FOUND = 4
"""The remote file or directory does not exist."""

EXIT_OPERATION_FAILED = 5
"""The underlying client reported an error status."""

EXIT_BACKEND_ERROR = 6
"""No backend handles the URL scheme, or the backend could not be loaded."""
