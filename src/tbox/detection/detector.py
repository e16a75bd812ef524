"""Marker-file context detector.

Identities are checked in a fixed, explicit priority order (never dict or
filesystem iteration order), so a directory holding both ``package.json``
and ``Makefile`` always resolves to ``node``.

The upward walk covers the start directory plus :data:`MAX_PARENT_LEVELS`
ancestors and stops early at the filesystem root. Unbounded walks would
wander into unrelated trees such as a shared ``/home`` and get slow on
network filesystems.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from tbox.exceptions import ContextNotFoundError

logger = logging.getLogger(__name__)

MAX_PARENT_LEVELS = 3
"""How many ancestors of the start directory are searched."""

BUILTIN_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("node", ("package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml")),
    ("go", ("go.mod", "go.sum")),
    ("python", ("pyproject.toml", "setup.py", "requirements.txt", "Pipfile")),
    ("rust", ("Cargo.toml", "Cargo.lock")),
    ("java", ("pom.xml", "build.gradle", "build.gradle.kts")),
    ("ruby", ("Gemfile", "Gemfile.lock")),
    ("php", ("composer.json", "composer.lock")),
    ("make", ("Makefile", "makefile")),
)
"""Built-in identities in priority order, each with its marker filenames."""


class Detector:
    """Identify a project's context from marker files.

    Example::

        detector = Detector()
        detector.detect("src/pkg")      # -> "go" if ../../go.mod exists
        detector.add_marker("go", "go.work")
    """

    def __init__(self, max_parent_levels: int = MAX_PARENT_LEVELS) -> None:
        self._max_parent_levels = max_parent_levels
        self._identities: list[tuple[str, list[str]]] = [
            (name, list(markers)) for name, markers in BUILTIN_MARKERS
        ]

    @property
    def contexts(self) -> list[str]:
        """Context names in priority order."""
        return [name for name, _ in self._identities]

    def add_marker(self, context: str, marker: str) -> None:
        """Add *marker* to *context*, creating the identity at lowest priority if new."""
        for name, markers in self._identities:
            if name == context:
                markers.append(marker)
                return
        self._identities.append((context, [marker]))

    def detect(self, start_dir: Union[str, Path] = ".") -> str:
        """Return the context for *start_dir*, searching up to the parent limit.

        Args:
            start_dir: Directory to start from. Relative paths are made
                absolute against the current working directory; symlinks
                are not resolved, so parents are counted on the given path.

        Returns:
            The first matching context name.

        Raises:
            ContextNotFoundError: If no identity matches within the bound.
        """
        start = Path(os.path.abspath(start_dir))
        search = start
        for _ in range(self._max_parent_levels + 1):
            context = self.detect_in_directory(search)
            if context is not None:
                logger.debug("Detected context '%s' in %s", context, search)
                return context
            parent = search.parent
            if parent == search:
                break
            search = parent

        raise ContextNotFoundError(
            f"no recognized project context found in {start} or parent directories",
            directory=str(start),
        )

    def detect_in_directory(self, directory: Union[str, Path]) -> Optional[str]:
        """Check a single directory (no upward walk) and return the first match."""
        directory = Path(directory)
        for name, markers in self._identities:
            for marker in markers:
                if _is_file(directory / marker):
                    return name
        return None

    def detect_all(self, directory: Union[str, Path] = ".") -> list[str]:
        """Every identity with a marker in *directory*, in priority order."""
        directory = Path(directory)
        return [
            name
            for name, markers in self._identities
            if any(_is_file(directory / marker) for marker in markers)
        ]


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False
