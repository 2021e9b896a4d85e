"""URL parsing and customization.

:class:`UrlCustomizer` turns the URL an application asked for into the
*effective* URL a connection is made to. At most two rewrites happen:

1. **Proxy substitution** -- a URL whose host is exactly the reserved
   placeholder (``xcache`` by default) is pointed at the configured caching
   proxy. The port is replaced too when a valid one is configured.
2. **Credential injection** -- the token found by
   :class:`~xrdauthz.auth.discovery.TokenDiscovery` is added as
   ``authz=Bearer%20<token>``, unless the URL already carries an ``authz``
   parameter. A caller-supplied credential always wins.

The value is always percent-encoded with :func:`urllib.parse.quote` and no
safe characters, so the space after ``Bearer`` travels as ``%20``.

:class:`XrdUrl` keeps query values exactly as they appeared (no decoding),
which makes ``customize(customize(url)) == customize(url)`` hold as long as
the token source does not change in between.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Optional
from urllib.parse import quote, urlsplit

from xrdauthz.auth.discovery import TokenDiscovery
from xrdauthz.exceptions import UrlError
from xrdauthz.models import AuthzSettings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
MAX_PORT = 65535


@dataclass
class XrdUrl:
    """A parsed remote-file URL.

    ``params`` maps each query key to its raw value (``None`` for a bare key
    without ``=``). Keys are unique; insertion order is kept so serialization
    is reproducible.
    """

    scheme: str
    host: str = ""
    port: Optional[int] = None
    path: str = ""
    params: dict[str, Optional[str]] = field(default_factory=dict)
    username: Optional[str] = None
    password: Optional[str] = None
    fragment: Optional[str] = None

    @property
    def hostid(self) -> str:
        """``host[:port]`` as used for connection bookkeeping."""
        return self.host if self.port is None else f"{self.host}:{self.port}"

    @property
    def query(self) -> str:
        return "&".join(
            key if value is None else f"{key}={value}"
            for key, value in self.params.items()
        )

    def geturl(self) -> str:
        """Serialize back to a URL string."""
        netloc = self.hostid
        if self.username is not None:
            userinfo = self.username
            if self.password is not None:
                userinfo = f"{userinfo}:{self.password}"
            netloc = f"{userinfo}@{netloc}"

        url = f"{self.scheme}://{netloc}{self.path}"
        if self.params:
            url = f"{url}?{self.query}"
        if self.fragment is not None:
            url = f"{url}#{self.fragment}"
        return url

    def __str__(self) -> str:
        return self.geturl()


def parse_port(value: Optional[str]) -> Optional[int]:
    """Parse a configured port string.

    Args:
        value: The configured string, e.g. ``"1095"``.

    Returns:
        The port as an int when *value* is all ASCII digits and within
        ``1..65535``; ``None`` otherwise.
    """
    if value is None:
        return None
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    port = int(value)
    if not 0 < port <= MAX_PORT:
        return None
    return port


def _split_hostport(hostport: str, url: str) -> tuple[str, Optional[int]]:
    """Split ``host[:port]`` (IPv6 hosts in brackets) and validate the port."""
    if hostport.startswith("["):
        end = hostport.find("]")
        if end == -1:
            raise UrlError(f"Unterminated IPv6 address in URL: {url!r}")
        host, remainder = hostport[: end + 1], hostport[end + 1 :]
        if remainder and not remainder.startswith(":"):
            raise UrlError(f"Invalid host in URL: {url!r}")
        port_str = remainder[1:]
    else:
        host, sep, port_str = hostport.rpartition(":")
        if not sep:
            host, port_str = hostport, ""

    if not port_str:
        return host, None
    port = parse_port(port_str)
    if port is None:
        raise UrlError(f"Invalid port {port_str!r} in URL: {url!r}")
    return host, port


def _parse_params(query: str) -> dict[str, Optional[str]]:
    params: dict[str, Optional[str]] = {}
    for part in query.split("&"):
        if not part:
            continue
        key, sep, value = part.partition("=")
        # Last value wins; the key keeps its first position.
        params[key] = value if sep else None
    return params


def parse_url(url: str) -> XrdUrl:
    """Parse *url* into an :class:`XrdUrl`.

    Splitting is done by :func:`urllib.parse.urlsplit`, whose ``netloc`` and
    ``query`` are left undecoded. Host, port and query keys are then split
    here so values survive a parse/serialize cycle byte for byte.

    Raises:
        UrlError: If the URL is empty, has no ``scheme://`` prefix, or has an
            invalid host or port.
    """
    if not url:
        raise UrlError("Empty URL")
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise UrlError(f"Invalid URL {url!r}: {exc}") from exc
    if not parts.scheme or not url.partition(":")[2].startswith("//"):
        raise UrlError(f"URL has no scheme: {url!r}")

    username: Optional[str] = None
    password: Optional[str] = None
    userinfo, at, hostport = parts.netloc.rpartition("@")
    if at:
        username, colon, pw = userinfo.partition(":")
        password = pw if colon else None
    host, port = _split_hostport(hostport, url)

    return XrdUrl(
        scheme=parts.scheme,
        host=host,
        port=port,
        path=parts.path,
        params=_parse_params(parts.query),
        username=username,
        password=password,
        fragment=parts.fragment if "#" in url else None,
    )


def format_authz(token: str) -> str:
    """Return the encoded ``authz`` value for *token*."""
    return quote(BEARER_PREFIX + token, safe="")


def redact_url(url: str, param: str = "authz") -> str:
    """Return *url* with the credential parameter value hidden, for display."""
    try:
        parsed = parse_url(url)
    except UrlError:
        return url
    if parsed.params.get(param) is None:
        return url
    params = dict(parsed.params)
    params[param] = "***"
    return replace(parsed, params=params).geturl()


class UrlCustomizer:
    """Compute effective URLs from requested ones.

    Args:
        settings: Static configuration (placeholder and proxy endpoint).
        discovery: Token source. Defaults to a
            :class:`~xrdauthz.auth.discovery.TokenDiscovery` over the live
            process environment.

    Example::

        customizer = UrlCustomizer(AuthzSettings(proxy_host="cache.example.org"))
        customizer.customize("root://xcache//store/f.root")
        # 'root://cache.example.org//store/f.root?authz=Bearer%20...'
    """

    def __init__(
        self,
        settings: AuthzSettings,
        discovery: Optional[TokenDiscovery] = None,
    ) -> None:
        self._settings = settings
        self._discovery = discovery if discovery is not None else TokenDiscovery(settings)
        self._proxy_port = parse_port(settings.proxy_port)
        if settings.proxy_port is not None and self._proxy_port is None:
            logger.warning(
                "Ignoring invalid proxy port %r; original ports are kept",
                settings.proxy_port,
            )

    @property
    def settings(self) -> AuthzSettings:
        return self._settings

    @property
    def discovery(self) -> TokenDiscovery:
        return self._discovery

    def customize(self, url: str) -> str:
        """Return the effective URL for *url*.

        Raises:
            UrlError: If *url* cannot be parsed.
        """
        parsed = parse_url(url)
        self._substitute_proxy(parsed)
        self._inject_token(parsed)
        effective = parsed.geturl()
        if effective != url:
            logger.debug("Customized %s -> %s", redact_url(url), redact_url(effective))
        return effective

    def _substitute_proxy(self, parsed: XrdUrl) -> None:
        proxy_host = self._settings.proxy_host
        if not proxy_host or parsed.host != self._settings.placeholder_host:
            return
        parsed.host = proxy_host
        if self._proxy_port is not None:
            parsed.port = self._proxy_port

    def _inject_token(self, parsed: XrdUrl) -> None:
        param = self._settings.authz_param
        if param in parsed.params:
            return
        token = self._discovery.discover()
        if token:
            parsed.params[param] = format_authz(token)
