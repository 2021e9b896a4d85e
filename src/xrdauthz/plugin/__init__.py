"""Client plugin layer -- handle factory and forwarding handles.

Key classes:

* :class:`FilePlugin` / :class:`FileSystemPlugin` -- handle interfaces whose
  default methods report "not implemented".
* :class:`AuthzFile` / :class:`AuthzFileSystem` -- forwarding handles that
  apply URL customization.
* :class:`AuthzFactory` -- creates handles; caches one filesystem handle.

Example::

    from xrdauthz.plugin import get_plugin

    factory = get_plugin()
    f = factory.create_file(url)
    status, _ = f.open(url)
"""

from xrdauthz.plugin.base import FilePlugin, FileSystemPlugin
from xrdauthz.plugin.factory import AuthzFactory, get_plugin
from xrdauthz.plugin.handles import AuthzFile, AuthzFileSystem

__all__ = [
    "AuthzFactory",
    "AuthzFile",
    "AuthzFileSystem",
    "FilePlugin",
    "FileSystemPlugin",
    "get_plugin",
]
