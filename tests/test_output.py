"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet mode suppression rules
- Verbose mode debug output
- print_table in all three modes
- Global instance management
- Convenience functions
"""

from __future__ import annotations

import json

import pytest

from tbox import output as output_module
from tbox.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("tbox.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("tbox.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    """Test that AUTO format resolves correctly based on environment."""

    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        mgr = OutputManager(format=OutputFormat.AUTO)
        assert mgr.format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO)
        assert mgr.format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_tty_but_no_color(self, tty):
        mgr = OutputManager(format=OutputFormat.AUTO, no_color=True)
        assert mgr.format == OutputFormat.PLAIN
        assert mgr.no_color is True

    def test_explicit_json_stays_json(self, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON)
        assert mgr.format == OutputFormat.JSON


# ------------------------------------------------------------------ #
# NO_COLOR / TERM=dumb detection
# ------------------------------------------------------------------ #


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    """Data goes to stdout, diagnostics go to stderr."""

    def test_print_lines_goes_to_stdout(self, capsys, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_lines(["Context: go", "Base command: go build ./..."])
        captured = capsys.readouterr()
        assert captured.out == "Context: go\nBase command: go build ./...\n"
        assert captured.err == ""

    @pytest.mark.parametrize(
        "method, expected",
        [
            ("info", "note"),
            ("warning", "Warning: note"),
            ("error", "Error: note"),
            ("suggest", "→ note"),
        ],
    )
    def test_diagnostics_go_to_stderr(self, capsys, non_tty, method, expected):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("note")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == f"{expected}\n"

    def test_colored_error_keeps_brackets_literal(self, capsys, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.PLAIN)
        mgr.error("bad value [red]x[/red]")
        assert "[red]x[/red]" in capsys.readouterr().err


# ------------------------------------------------------------------ #
# Quiet and verbose modes
# ------------------------------------------------------------------ #


class TestQuietMode:
    """--quiet suppresses info and suggest but not warning or error."""

    @pytest.mark.parametrize("method", ["info", "suggest"])
    def test_quiet_suppresses(self, capsys, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, method)("should not appear")
        assert capsys.readouterr().err == ""

    @pytest.mark.parametrize("method", ["warning", "error"])
    def test_quiet_keeps(self, capsys, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, method)("important")
        assert "important" in capsys.readouterr().err

    def test_quiet_does_not_suppress_stdout_data(self, capsys, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.print_data("important data")
        assert "important data" in capsys.readouterr().out


class TestVerboseMode:
    def test_debug_hidden_by_default(self, capsys, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.debug("should not appear")
        assert capsys.readouterr().err == ""

    def test_debug_shown_with_prefix(self, capsys, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
        mgr.debug("trace info")
        assert capsys.readouterr().err == "[debug] trace info\n"

    def test_flags(self, non_tty):
        assert OutputManager(verbose=True).is_verbose is True
        assert OutputManager(quiet=True).is_quiet is True
        assert OutputManager().is_verbose is False


# ------------------------------------------------------------------ #
# Tables and JSON
# ------------------------------------------------------------------ #


class TestTables:
    HEADERS = ["NAME", "VERSION"]
    ROWS = [["docker", "1.0.0"], ["kubernetes", "1.0.0"]]

    def test_plain_table_is_tab_separated(self, capsys, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_table(self.HEADERS, self.ROWS)
        lines = capsys.readouterr().out.splitlines()
        assert lines == ["NAME\tVERSION", "docker\t1.0.0", "kubernetes\t1.0.0"]

    def test_json_table_is_list_of_objects(self, capsys, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(self.HEADERS, self.ROWS)
        parsed = json.loads(capsys.readouterr().out)
        assert parsed == [
            {"NAME": "docker", "VERSION": "1.0.0"},
            {"NAME": "kubernetes", "VERSION": "1.0.0"},
        ]

    def test_rich_table_contains_cells(self, capsys, non_tty):
        mgr = OutputManager(format=OutputFormat.RICH, no_color=True)
        mgr.print_table(self.HEADERS, self.ROWS, title="Plugins")
        out = capsys.readouterr().out
        assert "kubernetes" in out
        assert "VERSION" in out

    def test_print_json_is_indented(self, capsys, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_json({"context": "go"})
        out = capsys.readouterr().out
        assert json.loads(out) == {"context": "go"}
        assert "\n  " in out


# ------------------------------------------------------------------ #
# Global instance management
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_output_replaces_global(self):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        set_output(mgr)
        assert get_output() is mgr

    def test_reset_drops_instance(self):
        mgr = OutputManager(no_color=True)
        set_output(mgr)
        reset_output()
        assert get_output() is not mgr

    def test_module_helpers_delegate(self, capsys, plain_output):
        output_module.print_data("data")
        output_module.warning("careful")
        output_module.suggest("Run 'tb status'")
        captured = capsys.readouterr()
        assert captured.out == "data\n"
        assert "Warning: careful" in captured.err
        assert "→ Run 'tb status'" in captured.err
