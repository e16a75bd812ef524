"""Ubuntu/Debian packaging plugin.

Adds the ``ubuntu-packaging`` context, detected from ``debian/control`` or
``debian/changelog``. PPA-aware commands delegate to the
``ubuntu_helpers.sh`` helper script, whose location is resolved each time
the contexts are requested.

See Also:
    :class:`~tbox.plugins.ubuntu.plugin.UbuntuPlugin`
"""

from tbox.plugins.ubuntu.plugin import HELPER_SCRIPT, UbuntuPlugin, find_helper_script

__all__ = ["HELPER_SCRIPT", "UbuntuPlugin", "find_helper_script"]
