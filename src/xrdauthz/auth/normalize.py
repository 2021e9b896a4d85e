"""Token normalization.

Every candidate credential, whether it came from an environment variable or
from a file, passes through :func:`normalize_token` before it can reach a
URL. The function trims surrounding whitespace and rejects anything that
still carries a line break, since such a value could smuggle extra
header-like content into the request downstream.
"""

from __future__ import annotations

from typing import Union

TOKEN_WHITESPACE = " \t\f\n\v\r"
"""Characters trimmed from both ends of a candidate token."""


def normalize_token(raw: Union[str, bytes, None]) -> str:
    """Trim and validate a raw candidate token.

    Args:
        raw: Candidate value. Bytes are decoded as UTF-8; undecodable input
            is rejected.

    Returns:
        The trimmed token, or ``""`` when the input is empty, undecodable,
        or contains an embedded CR or LF after trimming.

    Example::

        >>> normalize_token("  tok\\t")
        'tok'
        >>> normalize_token("tok\\r\\nX-Injected: 1")
        ''
    """
    if not raw:
        return ""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return ""

    token = raw.strip(TOKEN_WHITESPACE)
    if "\r" in token or "\n" in token:
        return ""
    return token
