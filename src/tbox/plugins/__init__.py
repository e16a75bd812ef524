"""Plugin system for tbox -- contract, manager and built-in plugins.

Plugins contribute additional named contexts (each with its own commands)
and their own directory detection. The set is compiled in: the CLI builds a
fresh :class:`PluginManager` per invocation via
:func:`create_default_manager` and injects it into the dispatcher.

Key classes:

* :class:`Plugin` -- Abstract base class that all plugins must extend.
* :class:`PluginManager` -- Registers plugins, runs first-match detection,
  and aggregates contributed contexts with and without a namespace prefix.

Example:
    Typical usage::

        from tbox.plugins import create_default_manager

        manager = create_default_manager()
        hit = manager.detect_context(".")
        contexts = manager.get_contexts()
"""

from tbox.plugins.base import Plugin
from tbox.plugins.manager import PluginManager, create_default_manager, namespaced

__all__ = ["Plugin", "PluginManager", "create_default_manager", "namespaced"]
