"""xrdauthz -- environment-driven authorization for remote file access.

This package sits between an application and its remote-file client
(XRootD ``root://`` URLs or the HTTP/WebDAV door of the same servers) and
rewrites every outgoing URL before a connection is made:

* the reserved placeholder host ``xcache`` is redirected to the site's
  caching proxy (``XCACHE_HOST`` / ``XCACHE_PORT``), and
* a bearer token discovered from ``BEARER_TOKEN``, ``BEARER_TOKEN_FILE`` or
  the well-known ``bt_u<uid>`` files is attached as the ``authz`` query
  parameter.

Typical usage::

    from xrdauthz import get_plugin

    factory = get_plugin()
    f = factory.create_file("root://xcache//store/data.root")
    status, _ = f.open("root://xcache//store/data.root")

Modules:
    auth: token normalization, discovery, and the legacy ``unix`` handshake.
    url: URL parsing and customization.
    plugin: handle factory and forwarding wrappers.
    backends: underlying client implementations (XRootD bindings, HTTP).
    config: settings loaded from the environment.
    app: Typer CLI entry point.
"""

__version__ = "0.3.0"

from xrdauthz.plugin.factory import AuthzFactory, get_plugin  # noqa: E402

__all__ = ["AuthzFactory", "get_plugin", "__version__"]
