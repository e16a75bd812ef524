"""Command registry -- pure lookups over the merged context table.

The registry never detects or executes anything. It answers "what string
does ``build`` expand to in context ``go``?" over a table assembled by
:func:`merge_context_tables` from the configuration and the plugins, which
keeps it trivially testable with synthetic tables.
"""

from __future__ import annotations

from typing import Mapping, Optional

from tbox.exceptions import CommandNotFoundError, UnknownContextError
from tbox.models import ContextConfig


def merge_context_tables(
    config_contexts: Mapping[str, ContextConfig],
    plugin_contexts: Mapping[str, ContextConfig],
) -> dict[str, ContextConfig]:
    """Union config-declared and plugin-contributed contexts.

    Config contexts take precedence: a plugin entry (bare or namespaced) is
    only added when its key is not already present.

    Args:
        config_contexts: Contexts from the merged configuration.
        plugin_contexts: Output of
            :meth:`~tbox.plugins.manager.PluginManager.get_contexts`.

    Returns:
        A new mapping; neither input is modified.
    """
    table = dict(config_contexts)
    for name, ctx in plugin_contexts.items():
        if name not in table:
            table[name] = ctx
    return table


class CommandRegistry:
    """Look up invocation strings by ``(context, command)``.

    Args:
        contexts: The fully merged context table.

    Example::

        registry = CommandRegistry({"go": ContextConfig(commands={"build": "go build ./..."})})
        registry.get_command("go", "build")   # -> "go build ./..."
    """

    def __init__(self, contexts: Optional[Mapping[str, ContextConfig]] = None) -> None:
        self._contexts: dict[str, ContextConfig] = dict(contexts or {})

    @property
    def contexts(self) -> dict[str, ContextConfig]:
        return dict(self._contexts)

    def has_context(self, context: str) -> bool:
        return context in self._contexts

    def get_context(self, context: str) -> ContextConfig:
        """Return the :class:`~tbox.models.ContextConfig` for *context*.

        Raises:
            UnknownContextError: If the context is not in the table.
        """
        try:
            return self._contexts[context]
        except KeyError:
            raise UnknownContextError(
                f"unknown context '{context}'", context=context
            ) from None

    def get_command(self, context: str, command: str) -> str:
        """Return the invocation string for *command* in *context*.

        Raises:
            UnknownContextError: If the context is not in the table.
            CommandNotFoundError: If the context does not define *command*.
        """
        ctx = self._contexts.get(context)
        if ctx is None:
            raise UnknownContextError(
                f"unknown context '{context}'", context=context, command=command
            )
        try:
            return ctx.commands[command]
        except KeyError:
            raise CommandNotFoundError(
                f"command '{command}' not defined in context '{context}'",
                context=context,
                command=command,
            ) from None

    def list_commands(self, context: str) -> list[str]:
        """All command names defined in *context*, sorted.

        Raises:
            UnknownContextError: If the context is not in the table.
        """
        return sorted(self.get_context(context).commands)

    def list_contexts(self) -> list[str]:
        """All context names in the table (bare and namespaced), sorted."""
        return sorted(self._contexts)

    def get_description(self, context: str, command: str) -> Optional[str]:
        """The description for *command* in *context*, or ``None`` if there is none."""
        ctx = self._contexts.get(context)
        if ctx is None:
            return None
        return ctx.descriptions.get(command) or None

    def find_command(self, command: str) -> list[str]:
        """Every context that defines *command*, sorted."""
        return sorted(
            name for name, ctx in self._contexts.items() if command in ctx.commands
        )
