"""Exception hierarchy for tbox.

All exceptions inherit from :class:`ToolboxError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`tbox.exit_codes`.
The CLI catches ``ToolboxError``, prints its message to stderr and exits
with the appropriate code, while unexpected exceptions produce a crash log
and exit with :data:`EXIT_GENERIC_FAILURE`.

None of these errors is retried: the underlying commands (builds, tests,
deploys) are not safe to re-run blindly.

Subclass hierarchy::

    ToolboxError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- ConfigError            (exit 3)
    +-- ContextNotFoundError   (exit 4)
    +-- CommandNotFoundError   (exit 5)
    |   +-- UnknownContextError
    +-- ArgumentLimitError     (exit 6)
    +-- PluginError            (exit 10)
    |   +-- PluginConflictError
    |   +-- PluginValidationError
    +-- CommandTimeoutError    (exit 124)
    +-- ProgramNotFoundError   (exit 127)
    +-- ExecutionError         (exit 1)
"""

from __future__ import annotations

from typing import Optional

from tbox.exit_codes import (
    EXIT_ARGUMENT_LIMIT,
    EXIT_COMMAND_NOT_FOUND,
    EXIT_CONFIG_ERROR,
    EXIT_CONTEXT_NOT_FOUND,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PLUGIN_ERROR,
    EXIT_PROGRAM_NOT_FOUND,
    EXIT_TIMEOUT,
)


class ToolboxError(Exception):
    """Base exception for all tbox errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`tbox.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ToolboxError):
    """Raised for invalid CLI flags, bad durations, or a missing command name."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(ToolboxError):
    """Raised for configuration problems (bad path, oversized file, invalid YAML or schema)."""

    exit_code = EXIT_CONFIG_ERROR


class ContextNotFoundError(ToolboxError):
    """Raised when no project context could be resolved for a directory.

    Args:
        message: Human-readable error description.
        directory: The absolute directory the search started from.
    """

    exit_code = EXIT_CONTEXT_NOT_FOUND

    def __init__(self, message: str, directory: Optional[str] = None):
        super().__init__(message)
        self.directory = directory


class CommandNotFoundError(ToolboxError):
    """Raised when a command is not defined in the active context.

    Args:
        message: Human-readable error description.
        context: The context that was consulted.
        command: The command name that was requested.
    """

    exit_code = EXIT_COMMAND_NOT_FOUND

    def __init__(
        self,
        message: str,
        context: Optional[str] = None,
        command: Optional[str] = None,
    ):
        super().__init__(message)
        self.context = context
        self.command = command


class UnknownContextError(CommandNotFoundError):
    """Raised when the resolved context does not exist in the merged table."""


class ArgumentLimitError(ToolboxError):
    """Raised when caller arguments exceed the configured count or length bounds."""

    exit_code = EXIT_ARGUMENT_LIMIT


class PluginError(ToolboxError):
    """Raised when a plugin cannot be registered or looked up."""

    exit_code = EXIT_PLUGIN_ERROR


class PluginConflictError(PluginError):
    """Raised when a plugin name is already registered."""


class PluginValidationError(PluginError):
    """Raised when a plugin fails its own :meth:`~tbox.plugins.base.Plugin.validate` check."""


class ProgramNotFoundError(ToolboxError):
    """Raised when the program of a resolved command cannot be found on ``PATH``.

    Args:
        message: Human-readable error description.
        program: The program token that failed to resolve.
    """

    exit_code = EXIT_PROGRAM_NOT_FOUND

    def __init__(self, message: str, program: Optional[str] = None):
        super().__init__(message)
        self.program = program


class CommandTimeoutError(ToolboxError):
    """Raised when the child process outlives its deadline and is terminated.

    Kept distinct from :class:`ExecutionError` so that "it hung" can be told
    apart from "it failed".

    Args:
        message: Human-readable error description.
        timeout: The deadline, in seconds, that expired.
    """

    exit_code = EXIT_TIMEOUT

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.timeout = timeout


class ExecutionError(ToolboxError):
    """Raised when the child process exits non-zero or cannot be started.

    The child's exit status is kept on :attr:`returncode` for callers that
    want it, but the CLI still exits with :data:`EXIT_GENERIC_FAILURE`.

    Args:
        message: Human-readable error description.
        returncode: The child's exit status, or ``None`` if it never ran.
    """

    exit_code = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode
