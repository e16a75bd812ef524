"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~tbox.exceptions.ToolboxError` subclass. Shell
wrappers can inspect the exit code to tell "no context here" from "the
build failed" without parsing stderr.

Example::

    $ tb --timeout 1s test
    $ echo $?
    124   # EXIT_TIMEOUT -- the command hung past its deadline
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, or the underlying command failed."""

EXIT_INVALID_USAGE = 2
"""tbox was invoked with invalid flags, durations, or no command name."""

EXIT_CONFIG_ERROR = 3
"""A configuration file could not be located, read, or validated."""

EXIT_CONTEXT_NOT_FOUND = 4
"""No project context could be forced, detected by a plugin, or detected built-in."""

EXIT_COMMAND_NOT_FOUND = 5
"""The command (or the context itself) is not defined in the merged table."""

EXIT_ARGUMENT_LIMIT = 6
"""Too many caller arguments, or a single argument was too long."""

EXIT_PLUGIN_ERROR = 10
"""A plugin failed validation or collided with an already registered name."""

EXIT_TIMEOUT = 124
"""The underlying command ran past its deadline and was terminated."""

EXIT_PROGRAM_NOT_FOUND = 127
"""The program named by the resolved command is not on ``PATH``."""
