"""Dispatcher -- the pipeline from a short command name to a running process.

Every invocation goes through the same steps, strictly in order:

1. **Parse** the raw tokens into a command name and passthrough arguments
   (:meth:`Dispatcher.parse_tokens`).
2. **Resolve the context**: forced, else the first plugin that detects,
   else the built-in marker detector (:meth:`Dispatcher.resolve_context`).
3. **Validate arguments** against the count and byte-length limits
   (:meth:`Dispatcher.validate_arguments`).
4. **Resolve the command** to an invocation string via the
   :class:`~tbox.registry.CommandRegistry`.
5. **Execute** via the :class:`~tbox.executor.SecureExecutor`, unless this
   is a dry run.

The dispatcher holds no global state; all collaborators are passed in, so
tests build one over a synthetic table and a fake plugin set. Use
:func:`build_dispatcher` to assemble the real one from a
:class:`~tbox.models.Config`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field

from tbox.detection import Detector
from tbox.durations import parse_duration
from tbox.exceptions import ArgumentLimitError, InvalidUsageError
from tbox.executor import SecureExecutor
from tbox.models import (
    Config,
    ContextConfig,
    DetectionResult,
    DetectionSource,
    ExecutionResult,
    Resolution,
    Settings,
)
from tbox.output import info, print_lines, warning
from tbox.plugins import PluginManager, create_default_manager
from tbox.registry import CommandRegistry, merge_context_tables

logger = logging.getLogger(__name__)

SHELL_METACHARACTERS = frozenset(";|&$`()<>\n\r")
"""Characters that would mean something to a shell. Reported, never blocked."""

_BOOL_FLAGS = {
    "--dry-run": "dry_run",
    "-n": "dry_run",
    "--verbose": "verbose",
    "-v": "verbose",
}
_VALUE_FLAGS = {
    "--context": "context",
    "--timeout": "timeout",
    "--config": "config",
}


class ParsedCommand(BaseModel):
    """Result of splitting raw CLI tokens into tbox flags, a command and its args."""

    command: str
    args: list[str] = Field(default_factory=list)
    context: Optional[str] = None
    dry_run: bool = False
    verbose: bool = False
    timeout: Optional[float] = None
    config: Optional[str] = None


class Dispatcher:
    """Resolve and run one short command.

    Args:
        registry: The merged context table, or a registry built over it.
        plugin_manager: Consulted before the built-in detector. ``None``
            means no plugins.
        detector: Built-in marker detector. Defaults to :class:`~tbox.detection.Detector`.
        executor: Runs the resolved command. Defaults to a
            :class:`~tbox.executor.SecureExecutor` using ``settings.timeout``.
        settings: Argument limits and default timeout.
        verbose: Print resolution detail and argument warnings.

    Example::

        dispatcher = Dispatcher({"go": ContextConfig(commands={"build": "go build ./..."})})
        resolution = dispatcher.resolve("build", directory="/src/project")
    """

    def __init__(
        self,
        registry: Union[CommandRegistry, Mapping[str, ContextConfig]],
        plugin_manager: Optional[PluginManager] = None,
        detector: Optional[Detector] = None,
        executor: Optional[SecureExecutor] = None,
        settings: Optional[Settings] = None,
        verbose: bool = False,
    ) -> None:
        if not isinstance(registry, CommandRegistry):
            registry = CommandRegistry(registry)
        self.registry = registry
        self.plugin_manager = plugin_manager or PluginManager()
        self.detector = detector or Detector()
        self.settings = settings or Settings()
        self.executor = executor or SecureExecutor(timeout=self.settings.timeout)
        self.verbose = verbose

    # ------------------------------------------------------------------
    # Step 1: parse
    # ------------------------------------------------------------------

    @staticmethod
    def parse_tokens(tokens: Sequence[str]) -> ParsedCommand:
        """Split raw *tokens* into leading tbox flags, a command name and its args.

        Leading ``--context``, ``--dry-run``, ``--verbose``, ``--timeout``
        and ``--config`` are consumed (``--flag value`` or ``--flag=value``).
        The first other token, flag-like or not, is the command name.
        Everything after it is forwarded verbatim, except a single ``--``
        directly after the command name.

        Raises:
            InvalidUsageError: If no command name is present, a value flag
                has no value, or the timeout is not a valid duration.
        """
        values: dict[str, object] = {}
        command: Optional[str] = None
        rest: list[str] = []

        i = 0
        while i < len(tokens):
            token = tokens[i]
            if token == "--":
                i += 1
                continue
            if token in _BOOL_FLAGS:
                values[_BOOL_FLAGS[token]] = True
                i += 1
                continue
            name, sep, inline = token.partition("=")
            if name in _VALUE_FLAGS:
                if sep:
                    value = inline
                elif i + 1 < len(tokens):
                    i += 1
                    value = tokens[i]
                else:
                    raise InvalidUsageError(f"flag {name} requires a value")
                values[_VALUE_FLAGS[name]] = value
                i += 1
                continue
            command = token
            rest = list(tokens[i + 1 :])
            break

        if command is None:
            raise InvalidUsageError("no command specified")
        if rest and rest[0] == "--":
            rest = rest[1:]
        if "timeout" in values:
            values["timeout"] = parse_duration(str(values["timeout"]))

        return ParsedCommand(command=command, args=rest, **values)

    # ------------------------------------------------------------------
    # Step 2: context
    # ------------------------------------------------------------------

    def resolve_context(
        self,
        directory: Union[str, Path] = ".",
        forced: Optional[str] = None,
    ) -> DetectionResult:
        """Decide the active context for *directory*.

        A forced context is used as-is, without checking that it exists
        (the command lookup reports that). Otherwise the plugins are asked
        in registration order, then the built-in detector walks upward.

        Raises:
            ContextNotFoundError: If nothing detects a context.
        """
        if forced:
            if self.verbose:
                info(f"Using forced context: {forced}")
            return DetectionResult(context=forced, source=DetectionSource.FORCED)

        hit = self.plugin_manager.detect_context(directory)
        if hit is not None:
            context, plugin_name = hit
            if self.verbose:
                info(f"Detected context: {context} (via plugin: {plugin_name})")
            return DetectionResult(
                context=context, source=DetectionSource.PLUGIN, plugin=plugin_name
            )

        context = self.detector.detect(directory)
        if self.verbose:
            info(f"Detected context: {context}")
        return DetectionResult(context=context, source=DetectionSource.BUILTIN)

    # ------------------------------------------------------------------
    # Step 3: arguments
    # ------------------------------------------------------------------

    def validate_arguments(self, args: Sequence[str]) -> None:
        """Enforce the argument count and per-argument byte-length limits.

        Arguments that contain shell metacharacters are reported in verbose
        mode only; they are still passed through literally.

        Raises:
            ArgumentLimitError: If either limit is exceeded.
        """
        max_count = self.settings.max_argument_count
        max_length = self.settings.max_argument_length

        if len(args) > max_count:
            raise ArgumentLimitError(
                f"too many arguments (max: {max_count}, got: {len(args)})"
            )
        for index, arg in enumerate(args):
            size = len(arg.encode("utf-8"))
            if size > max_length:
                raise ArgumentLimitError(
                    f"argument {index} exceeds maximum length of {max_length} bytes "
                    f"(got {size} bytes)"
                )
            if SHELL_METACHARACTERS.intersection(arg):
                logger.debug("Argument %d contains shell metacharacters: %r", index, arg)
                if self.verbose:
                    warning(
                        f"argument {index} contains shell metacharacters "
                        "(passed literally, no shell is used)"
                    )

    # ------------------------------------------------------------------
    # Steps 2-4 and the full pipeline
    # ------------------------------------------------------------------

    def resolve(
        self,
        command: str,
        args: Sequence[str] = (),
        directory: Union[str, Path] = ".",
        forced: Optional[str] = None,
    ) -> Resolution:
        """Resolve *command* to an invocation string without running anything.

        Raises:
            ContextNotFoundError: If no context can be determined.
            ArgumentLimitError: If *args* exceed the limits.
            UnknownContextError: If the active context is not in the table.
            CommandNotFoundError: If the context does not define *command*.
        """
        detection = self.resolve_context(directory, forced)
        self.validate_arguments(args)
        base_command = self.registry.get_command(detection.context, command)
        logger.debug(
            "Resolved '%s' in context '%s' to %r", command, detection.context, base_command
        )
        return Resolution(
            detection=detection,
            command=command,
            base_command=base_command,
            args=list(args),
        )

    def dispatch(
        self,
        command: str,
        args: Sequence[str] = (),
        directory: Union[str, Path] = ".",
        forced: Optional[str] = None,
        dry_run: bool = False,
        timeout: Optional[float] = None,
    ) -> Optional[ExecutionResult]:
        """Resolve *command* and run it.

        In dry-run mode the resolution is printed and nothing is started.
        In verbose mode the same lines are printed before executing.

        Args:
            command: The short command name, e.g. ``"build"``.
            args: Passthrough arguments for the underlying program.
            directory: Where detection starts.
            forced: Context to use instead of detecting one.
            dry_run: Print the resolution and skip execution.
            timeout: Deadline override in seconds.

        Returns:
            ``None`` for a dry run, otherwise the
            :class:`~tbox.models.ExecutionResult`.
        """
        resolution = self.resolve(command, args, directory, forced)
        if dry_run or self.verbose:
            print_lines(resolution.summary_lines())
        if dry_run:
            return None
        return self.executor.execute(resolution.base_command, resolution.args, timeout=timeout)


def build_dispatcher(
    config: Config,
    verbose: bool = False,
    plugin_manager: Optional[PluginManager] = None,
    executor: Optional[SecureExecutor] = None,
) -> Dispatcher:
    """Assemble a :class:`Dispatcher` from the effective configuration.

    Plugin contexts are merged under the config contexts, and the executor
    deadline comes from ``config.settings.timeout``.
    """
    if plugin_manager is None:
        plugin_manager = create_default_manager(config.plugins.disabled)
    table = merge_context_tables(config.contexts, plugin_manager.get_contexts())
    return Dispatcher(
        CommandRegistry(table),
        plugin_manager=plugin_manager,
        executor=executor or SecureExecutor(timeout=config.settings.timeout),
        settings=config.settings,
        verbose=verbose,
    )
