"""Plugin manager -- registration, detection and context aggregation.

This module contains :class:`PluginManager`, the coordinator for the plugin
system. A manager is built fresh for every CLI invocation (see
:func:`create_default_manager`) and handed to the
:class:`~tbox.dispatcher.Dispatcher`; there is no process-wide registry.

Detection is first-match-wins in registration order. Context aggregation
stores every plugin context twice::

    docker:docker-compose   # namespaced, always present
    docker-compose          # bare alias, only if no earlier plugin claimed it
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from tbox.exceptions import PluginConflictError, PluginError, PluginValidationError
from tbox.models import ContextConfig, PluginMetadata
from tbox.plugins.base import Plugin

logger = logging.getLogger(__name__)

NAMESPACE_SEPARATOR = ":"
"""Separator between plugin name and context name in namespaced keys."""


class PluginManager:
    """Holds registered plugins in order, plus a name -> metadata index.

    Example:
        Typical usage::

            manager = PluginManager()
            manager.register_plugin(DockerPlugin())
            hit = manager.detect_context(Path.cwd())
            if hit is not None:
                context, plugin_name = hit
    """

    def __init__(self) -> None:
        self._plugins: list[Plugin] = []
        self._metadata: dict[str, PluginMetadata] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_plugin(self, plugin: Plugin, enabled: bool = True) -> None:
        """Validate and register *plugin*.

        Args:
            plugin: The plugin instance to register.
            enabled: Disabled plugins are listed in metadata but never
                detect or contribute contexts.

        Raises:
            PluginValidationError: If :meth:`~tbox.plugins.base.Plugin.validate`
                fails.
            PluginConflictError: If a plugin with the same name is already
                registered. The earlier registration is left intact.
        """
        try:
            plugin.validate()
        except PluginValidationError:
            raise
        except Exception as exc:
            raise PluginValidationError(f"plugin validation failed: {exc}") from exc

        name = plugin.name
        if name in self._metadata:
            raise PluginConflictError(f"plugin with name {name!r} already registered")

        contexts = plugin.contexts()
        self._plugins.append(plugin)
        self._metadata[name] = PluginMetadata(
            name=name,
            version=plugin.version,
            description=plugin.description,
            enabled=enabled,
            context_count=len(contexts),
            contexts=list(contexts),
        )
        logger.debug(
            "Registered plugin '%s' v%s (%d contexts%s)",
            name,
            plugin.version,
            len(contexts),
            "" if enabled else ", disabled",
        )

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def get_plugins(self) -> list[Plugin]:
        """All registered plugins in registration order, enabled or not."""
        return list(self._plugins)

    def get_plugin(self, name: str) -> Plugin:
        """Retrieve a registered plugin by name.

        Raises:
            PluginError: If no plugin with *name* is registered.
        """
        for plugin in self._plugins:
            if plugin.name == name:
                return plugin
        raise PluginError(f"plugin {name!r} not found")

    def get_metadata(self) -> dict[str, PluginMetadata]:
        """Name -> :class:`~tbox.models.PluginMetadata`, in registration order."""
        return dict(self._metadata)

    def list_plugins(self) -> list[PluginMetadata]:
        """Metadata for every registered plugin, in registration order."""
        return list(self._metadata.values())

    def is_enabled(self, name: str) -> bool:
        meta = self._metadata.get(name)
        return meta is not None and meta.enabled

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def detect_context(self, directory: Union[str, Path] = ".") -> Optional[tuple[str, str]]:
        """Ask each enabled plugin, in registration order, to detect *directory*.

        The first plugin that detects wins; later plugins are not consulted.

        Returns:
            A ``(context, plugin_name)`` tuple, or ``None`` if no plugin applies.
        """
        directory = Path(directory)
        for plugin in self._enabled():
            context = plugin.detect(directory)
            if context:
                logger.debug("Plugin '%s' detected context '%s'", plugin.name, context)
                return context, plugin.name
        return None

    def detect_all_contexts(self, directory: Union[str, Path] = ".") -> list[str]:
        """Every context detected by any enabled plugin, without short-circuiting."""
        directory = Path(directory)
        found: list[str] = []
        for plugin in self._enabled():
            context = plugin.detect(directory)
            if context and context not in found:
                found.append(context)
        return found

    # ------------------------------------------------------------------
    # Contexts
    # ------------------------------------------------------------------

    def get_contexts(self) -> dict[str, ContextConfig]:
        """Union of every enabled plugin's contexts, namespaced and bare.

        Returns:
            A mapping containing ``plugin:context`` for every contributed
            context, plus ``context`` where no earlier plugin already used
            that bare name.
        """
        all_contexts: dict[str, ContextConfig] = {}
        for plugin in self._enabled():
            for ctx_name, ctx in plugin.contexts().items():
                all_contexts[namespaced(plugin.name, ctx_name)] = ctx
                if ctx_name not in all_contexts:
                    all_contexts[ctx_name] = ctx
        return all_contexts

    def _enabled(self) -> Iterable[Plugin]:
        return (p for p in self._plugins if self._metadata[p.name].enabled)


def namespaced(plugin_name: str, context: str) -> str:
    """Return the namespaced key for *context* owned by *plugin_name*."""
    return f"{plugin_name}{NAMESPACE_SEPARATOR}{context}"


def create_default_manager(disabled: Iterable[str] = ()) -> PluginManager:
    """Create a :class:`PluginManager` with every built-in plugin registered.

    Registration order (and therefore detection priority) is fixed:

    - ``docker`` -- ``Dockerfile`` / ``docker-compose.y(a)ml``.
    - ``kubernetes`` -- deployment manifests and Helm charts.
    - ``ubuntu`` -- Debian/Ubuntu packaging trees.

    Args:
        disabled: Plugin names to register as disabled.

    Returns:
        A fully initialised :class:`PluginManager`.
    """
    from tbox.plugins.docker import DockerPlugin
    from tbox.plugins.kubernetes import KubernetesPlugin
    from tbox.plugins.ubuntu import UbuntuPlugin

    disabled_set = set(disabled)
    manager = PluginManager()
    for plugin in (DockerPlugin(), KubernetesPlugin(), UbuntuPlugin()):
        manager.register_plugin(plugin, enabled=plugin.name not in disabled_set)

    unknown = disabled_set - set(manager.get_metadata())
    for name in sorted(unknown):
        logger.warning("Unknown plugin '%s' in plugins.disabled, ignoring", name)
    return manager
