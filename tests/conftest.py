"""Shared test fixtures for tbox.

Provides config isolation, output state management, small project-tree
builders and a CLI runner. These fixtures are discovered by pytest and
available to every test module without explicit imports.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import pytest

from tbox.models import ContextConfig
from tbox.output import OutputFormat, OutputManager, reset_output, set_output
from tbox.plugins.base import Plugin


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the ``tbox`` logger after every test.

    The OutputManager holds Rich consoles bound to the sys.stdout/sys.stderr
    of the moment it was created. CliRunner swaps those streams per
    invocation, so a stale manager would write to a closed file. The root
    callback also installs a log handler and level that must not leak.
    """
    yield
    reset_output()
    logger = logging.getLogger("tbox")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME at subdirectories of tmp_path
    so tests never read the real user config, clears the TBOX_* variables,
    and changes the working directory to a fresh ``project`` directory.

    Returns:
        The project directory (also the current working directory).
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("tbox.config._is_xdg_platform", lambda: True)

    for var in ["TBOX_CONTEXT", "TBOX_TIMEOUT", "NO_COLOR"]:
        monkeypatch.delenv(var, raising=False)

    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def user_config_file(isolated_config: Path) -> Path:
    """Path of the user-global config file inside the isolated XDG tree."""
    path = isolated_config.parent / "config" / "tbox" / "config.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


# ---------------------------------------------------------------------------
# Project tree helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    """Create files under ``tmp_path / "tree"`` and return that root.

    Usage::

        root = make_tree("go.mod", "sub/Makefile")
    """

    def _make(*relative: str) -> Path:
        root = tmp_path / "tree"
        root.mkdir(exist_ok=True)
        for rel in relative:
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("")
        return root

    return _make


# ---------------------------------------------------------------------------
# Plugin fixtures
# ---------------------------------------------------------------------------


class FakePlugin(Plugin):
    """Configurable in-memory plugin for manager and dispatcher tests."""

    def __init__(
        self,
        name: str = "fake",
        version: str = "1.0.0",
        contexts: Optional[dict[str, ContextConfig]] = None,
        marker: Optional[str] = None,
        detects: Optional[str] = None,
    ) -> None:
        self._name = name
        self._version = version
        self._contexts = (
            contexts
            if contexts is not None
            else {"fake": ContextConfig(commands={"hello": "echo hello"})}
        )
        self._marker = marker
        self._detects = detects or next(iter(self._contexts), None)
        self.detect_calls = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> str:
        return self._version

    def contexts(self) -> dict[str, ContextConfig]:
        return dict(self._contexts)

    def detect(self, directory: Path) -> Optional[str]:
        self.detect_calls += 1
        if self._marker is not None and (Path(directory) / self._marker).is_file():
            return self._detects
        return None


@pytest.fixture
def fake_plugin_cls() -> type[FakePlugin]:
    return FakePlugin


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a PLAIN-format, colourless OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def verbose_output() -> OutputManager:
    """Install a PLAIN-format verbose OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Child-process helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def python_script(tmp_path: Path) -> Callable[[str, str], str]:
    """Write a Python script and return an invocation string that runs it.

    The interpreter path and script path must not contain whitespace, since
    invocation strings are split on whitespace.
    """

    def _write(name: str, body: str) -> str:
        script = tmp_path / name
        script.write_text(body)
        invocation = f"{sys.executable} {script}"
        if len(invocation.split()) != 2:
            pytest.skip("interpreter or tmp path contains whitespace")
        return invocation

    return _write


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
