"""Abstract base class for tbox plugins.

A plugin contributes extra named contexts, each with its own commands, and
knows how to tell whether it applies to a directory. Subclasses implement
:attr:`name`, :attr:`version`, :meth:`contexts` and :meth:`detect`;
:meth:`validate` has a default implementation that most plugins keep.

Plugins are compiled in and registered by
:func:`~tbox.plugins.manager.create_default_manager`; nothing is loaded
from external files.

Example:
    Minimal plugin implementation::

        class TerraformPlugin(Plugin):
            @property
            def name(self) -> str:
                return "terraform"

            @property
            def version(self) -> str:
                return "1.0.0"

            def contexts(self) -> dict[str, ContextConfig]:
                return {"terraform": ContextConfig(commands={"plan": "terraform plan"})}

            def detect(self, directory: Path) -> Optional[str]:
                return "terraform" if has_file(directory, "main.tf") else None
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from tbox.exceptions import PluginValidationError
from tbox.models import ContextConfig


class Plugin(ABC):
    """Base class for all tbox plugins.

    The plugin lifecycle is:

    1. Instantiation -- the no-arg constructor.
    2. :meth:`validate` -- called once by the
       :class:`~tbox.plugins.manager.PluginManager` at registration.
    3. :meth:`detect` -- called on every dispatch, including help and
       completion queries, so it must only do cheap existence checks.
    4. :meth:`contexts` -- called whenever the merged context table is
       assembled. Results are never cached by the manager.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique plugin name, also used as the context namespace.

        Returns:
            A short identifier (e.g. ``"docker"``).
        """
        ...

    @property
    @abstractmethod
    def version(self) -> str:
        """Return the plugin version string (semantic versioning recommended)."""
        ...

    @property
    def description(self) -> str:
        """Return a brief description of what the plugin does. Defaults to ``""``."""
        return ""

    @abstractmethod
    def contexts(self) -> dict[str, ContextConfig]:
        """Return the contexts this plugin contributes, computed fresh on each call.

        Returns:
            A mapping of bare context name to :class:`~tbox.models.ContextConfig`.
        """
        ...

    @abstractmethod
    def detect(self, directory: Path) -> Optional[str]:
        """Return the context name if this plugin applies to *directory*.

        Args:
            directory: The directory to probe.

        Returns:
            One of the names returned by :meth:`contexts`, or ``None``.
        """
        ...

    def validate(self) -> None:
        """Check that the plugin is in a usable state.

        Raises:
            PluginValidationError: If the name or version is empty, no
                contexts are provided, a context has no commands, or a
                command string is empty.
        """
        if not self.name:
            raise PluginValidationError("plugin name cannot be empty")
        if not self.version:
            raise PluginValidationError(f"plugin {self.name!r}: version cannot be empty")

        contexts = self.contexts()
        if not contexts:
            raise PluginValidationError(
                f"plugin {self.name!r} must provide at least one context"
            )
        for ctx_name, ctx in contexts.items():
            if not ctx.commands:
                raise PluginValidationError(
                    f"plugin {self.name!r}: context {ctx_name!r} has no commands"
                )
            for cmd_name, cmd in ctx.commands.items():
                if not cmd.strip():
                    raise PluginValidationError(
                        f"plugin {self.name!r}: context {ctx_name!r}, "
                        f"command {cmd_name!r} is empty"
                    )


def has_file(directory: Union[str, Path], *relative: str) -> bool:
    """Return ``True`` if any of the *relative* paths is a regular file under *directory*."""
    base = Path(directory)
    for rel in relative:
        try:
            if (base / rel).is_file():
                return True
        except OSError:
            continue
    return False


def path_exists(directory: Union[str, Path], *relative: str) -> bool:
    """Like :func:`has_file` but also accepts directories and other entries."""
    base = Path(directory)
    for rel in relative:
        try:
            if (base / rel).exists():
                return True
        except OSError:
            continue
    return False
