"""Secure executor -- run a resolved command without a shell, under a deadline.

The configured invocation string is split on whitespace into a program and
fixed arguments. There is no quoting support, so ``git commit -m "two words"``
becomes four tokens. Caller arguments are appended after the fixed ones as
separate argv entries and are never split, joined or interpreted. The child
is started directly from that argv; no shell is involved at any point, so
``;``, ``$( )`` and backticks in arguments reach the program as literal text.

Example::

    executor = SecureExecutor(timeout=30)
    result = executor.execute("go test ./...", ["-run", "TestFoo"])
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from typing import Optional, Sequence

from tbox.durations import format_duration
from tbox.exceptions import (
    CommandTimeoutError,
    ExecutionError,
    InvalidUsageError,
    ProgramNotFoundError,
)
from tbox.models import DEFAULT_TIMEOUT, ExecutionResult
from tbox.output import debug

logger = logging.getLogger(__name__)

TERMINATE_GRACE_PERIOD = 5.0
"""Seconds to wait after SIGTERM before a timed-out child is killed."""


def split_command(base_command: str) -> tuple[str, list[str]]:
    """Split *base_command* on whitespace into ``(program, fixed_args)``.

    Raises:
        ExecutionError: If the command is empty or blank.
    """
    parts = base_command.split()
    if not parts:
        raise ExecutionError("empty command")
    return parts[0], parts[1:]


class SecureExecutor:
    """Start one child process directly from an explicit argv.

    Args:
        timeout: Default deadline in seconds. ``None`` disables the deadline.
        search_path: ``PATH``-style string used to resolve programs. Defaults
            to the ``PATH`` of the current environment.
        grace_period: Seconds between terminate and kill on timeout.

    Raises:
        InvalidUsageError: If *timeout* is not positive.
    """

    def __init__(
        self,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        search_path: Optional[str] = None,
        grace_period: float = TERMINATE_GRACE_PERIOD,
    ) -> None:
        self.timeout = _check_timeout(timeout)
        self._search_path = search_path
        self._grace_period = grace_period

    def resolve_program(self, program: str) -> str:
        """Resolve *program* on the search path.

        Names containing a path separator (``./run.sh``, ``debian/rules``)
        are checked directly instead of being searched for.

        Raises:
            ProgramNotFoundError: If no executable is found.
        """
        resolved = shutil.which(program, path=self._search_path)
        if resolved is None:
            raise ProgramNotFoundError(f"command not found: {program}", program=program)
        return resolved

    def build_argv(self, base_command: str, args: Sequence[str] = ()) -> list[str]:
        """Return the full argv: resolved program, fixed args, then *args* verbatim."""
        program, fixed_args = split_command(base_command)
        return [self.resolve_program(program), *fixed_args, *args]

    def execute(
        self,
        base_command: str,
        args: Sequence[str] = (),
        timeout: Optional[float] = None,
    ) -> ExecutionResult:
        """Run *base_command* with *args* appended and wait for it to finish.

        The child inherits stdin, stdout, stderr and a copy of the current
        environment.

        Args:
            base_command: The invocation string from the resolved context.
            args: Caller arguments, appended as separate argv entries.
            timeout: Deadline override in seconds; ``None`` uses the
                executor default.

        Returns:
            An :class:`~tbox.models.ExecutionResult` for a zero exit status.

        Raises:
            ExecutionError: If the command is empty, cannot be started, or
                exits non-zero.
            ProgramNotFoundError: If the program is not on the search path.
            CommandTimeoutError: If the deadline expires; the child is
                terminated first.
        """
        deadline = _check_timeout(timeout) if timeout is not None else self.timeout
        argv = self.build_argv(base_command, args)
        program = argv[0]
        debug(f"Executing: {' '.join(argv)}")
        logger.debug("Deadline for %s: %ss", program, deadline)

        started = time.monotonic()
        try:
            proc = subprocess.Popen(argv, shell=False, env=dict(os.environ))
        except OSError as exc:
            raise ExecutionError(f"failed to start {program}: {exc}") from exc

        try:
            returncode = proc.wait(timeout=deadline)
        except subprocess.TimeoutExpired:
            self._terminate(proc)
            raise CommandTimeoutError(
                f"command timed out after {format_duration(deadline or 0)}",
                timeout=deadline,
            ) from None
        except BaseException:
            # Ctrl-C or SystemExit from the signal handler: don't orphan the child.
            self._terminate(proc)
            raise

        duration = time.monotonic() - started
        if returncode != 0:
            if returncode < 0:
                reason = f"terminated by signal {-returncode}"
            else:
                reason = f"exit status {returncode}"
            raise ExecutionError(f"command failed: {reason}", returncode=returncode)

        logger.debug("%s finished in %.3fs", program, duration)
        return ExecutionResult(
            program=program,
            argv=argv[1:],
            returncode=returncode,
            duration=duration,
        )

    def _terminate(self, proc: subprocess.Popen) -> None:
        if proc.poll() is not None:
            return
        proc.terminate()
        try:
            proc.wait(timeout=self._grace_period)
        except subprocess.TimeoutExpired:
            logger.debug("Child %d ignored SIGTERM, killing", proc.pid)
            proc.kill()
            proc.wait()


def _check_timeout(timeout: Optional[float]) -> Optional[float]:
    if timeout is not None and timeout <= 0:
        raise InvalidUsageError(f"timeout must be positive, got {timeout!r}")
    return timeout
