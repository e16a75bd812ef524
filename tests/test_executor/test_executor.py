"""Tests for the secure executor: literal argv, deadlines and failures."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from tbox.exceptions import (
    CommandTimeoutError,
    ExecutionError,
    InvalidUsageError,
    ProgramNotFoundError,
)
from tbox.executor import SecureExecutor, split_command

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX process semantics")

ECHO_ARGS = """\
import json, sys
with open(sys.argv[1], "w") as fh:
    json.dump(sys.argv[2:], fh)
"""


class TestSplitCommand:
    def test_program_and_fixed_args(self) -> None:
        assert split_command("go test ./...") == ("go", ["test", "./..."])

    def test_collapses_whitespace(self) -> None:
        assert split_command("  npm\trun   build ") == ("npm", ["run", "build"])

    def test_quotes_are_not_interpreted(self) -> None:
        program, args = split_command('git commit -m "two words"')
        assert program == "git"
        assert args == ["commit", "-m", '"two', 'words"']

    @pytest.mark.parametrize("base", ["", "   ", "\t\n"])
    def test_empty_command(self, base: str) -> None:
        with pytest.raises(ExecutionError, match="empty command"):
            split_command(base)


class TestLiteralArguments:
    """Caller arguments reach the child verbatim; no shell is ever involved."""

    @pytest.mark.parametrize(
        "payload",
        [
            "; touch {marker}",
            "$(touch {marker})",
            "`touch {marker}`",
            "| touch {marker}",
            "&& touch {marker}",
            "> {marker}",
        ],
    )
    def test_metacharacters_stay_literal(
        self, tmp_path: Path, python_script, payload: str
    ) -> None:
        marker = tmp_path / "pwned"
        out = tmp_path / "argv.json"
        invocation = python_script("echo_args.py", ECHO_ARGS)
        arg = payload.format(marker=marker)

        SecureExecutor(timeout=30).execute(invocation, [str(out), arg])

        assert json.loads(out.read_text()) == [arg]
        assert not marker.exists()

    def test_fixed_args_precede_caller_args(self, tmp_path: Path, python_script) -> None:
        out = tmp_path / "argv.json"
        invocation = python_script("echo_args.py", ECHO_ARGS)

        result = SecureExecutor(timeout=30).execute(
            f"{invocation} {out} --fixed", ["--flag", "two words", ""]
        )

        assert json.loads(out.read_text()) == ["--fixed", "--flag", "two words", ""]
        assert result.returncode == 0
        assert result.program == sys.executable
        assert result.duration >= 0

    def test_verbose_reports_resolved_argv(
        self, tmp_path: Path, python_script, verbose_output, capsys
    ) -> None:
        out = tmp_path / "argv.json"
        invocation = python_script("echo_args.py", ECHO_ARGS)

        SecureExecutor(timeout=30).execute(invocation, [str(out), "x"])

        err = capsys.readouterr().err
        assert f"[debug] Executing: {sys.executable} " in err
        assert err.rstrip().endswith(f"{out} x")

    def test_quiet_by_default(self, tmp_path: Path, python_script, plain_output, capsys) -> None:
        out = tmp_path / "argv.json"
        invocation = python_script("echo_args.py", ECHO_ARGS)

        SecureExecutor(timeout=30).execute(invocation, [str(out)])

        assert "Executing:" not in capsys.readouterr().err

    def test_environment_is_inherited(
        self, tmp_path: Path, python_script, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TBOX_TEST_VALUE", "inherited")
        out = tmp_path / "env.txt"
        invocation = python_script(
            "env.py",
            "import os, sys\nopen(sys.argv[1], 'w').write(os.environ['TBOX_TEST_VALUE'])\n",
        )
        SecureExecutor(timeout=30).execute(invocation, [str(out)])
        assert out.read_text() == "inherited"


class TestFailures:
    def test_program_not_found(self) -> None:
        with pytest.raises(ProgramNotFoundError, match="command not found: tbox-no-such-tool") as exc_info:
            SecureExecutor().execute("tbox-no-such-tool --flag")
        assert exc_info.value.program == "tbox-no-such-tool"
        assert exc_info.value.exit_code == 127

    def test_search_path_override(self, tmp_path: Path) -> None:
        with pytest.raises(ProgramNotFoundError):
            SecureExecutor(search_path=str(tmp_path)).resolve_program("python3")

    def test_nonzero_exit(self, python_script) -> None:
        invocation = python_script("fail.py", "import sys\nsys.exit(3)\n")
        with pytest.raises(ExecutionError, match="exit status 3") as exc_info:
            SecureExecutor(timeout=30).execute(invocation)
        assert exc_info.value.returncode == 3
        assert exc_info.value.exit_code == 1

    def test_killed_by_signal(self, python_script) -> None:
        invocation = python_script(
            "suicide.py", "import os, signal\nos.kill(os.getpid(), signal.SIGTERM)\n"
        )
        with pytest.raises(ExecutionError, match="terminated by signal 15"):
            SecureExecutor(timeout=30).execute(invocation)


class TestTimeouts:
    def test_deadline_is_a_timeout_error(self, python_script) -> None:
        invocation = python_script("sleep.py", "import time\ntime.sleep(30)\n")
        executor = SecureExecutor(timeout=30, grace_period=1)

        with pytest.raises(CommandTimeoutError, match="timed out after 300ms") as exc_info:
            executor.execute(invocation, timeout=0.3)

        assert not isinstance(exc_info.value, ExecutionError)
        assert exc_info.value.timeout == 0.3
        assert exc_info.value.exit_code == 124

    def test_child_ignoring_sigterm_is_killed(self, python_script) -> None:
        invocation = python_script(
            "stubborn.py",
            "import signal, time\n"
            "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
            "print('ready', flush=True)\n"
            "time.sleep(30)\n",
        )
        executor = SecureExecutor(timeout=0.5, grace_period=0.2)
        with pytest.raises(CommandTimeoutError):
            executor.execute(invocation)

    def test_fast_command_within_deadline(self, python_script) -> None:
        invocation = python_script("ok.py", "pass\n")
        result = SecureExecutor(timeout=30).execute(invocation)
        assert result.returncode == 0

    def test_no_deadline(self, python_script) -> None:
        invocation = python_script("ok.py", "pass\n")
        assert SecureExecutor(timeout=None).execute(invocation).returncode == 0

    @pytest.mark.parametrize("timeout", [0, -1, -0.5])
    def test_non_positive_timeout_rejected(self, timeout: float) -> None:
        with pytest.raises(InvalidUsageError):
            SecureExecutor(timeout=timeout)

    def test_non_positive_override_rejected(self) -> None:
        with pytest.raises(InvalidUsageError):
            SecureExecutor().execute("true", timeout=0)
