"""Ubuntu packaging plugin -- changelog, build, lint and PPA upload shortcuts.

The PPA-aware commands (``gbranch``, ``ppa-status``, ``dch-auto``,
``sb-auto``, ``dput-auto``, ``ubuild``) run ``bash <helper> <subcommand>``.
The helper script is looked up in this order:

1. ``<data dir>/scripts/ubuntu_helpers.sh`` (see :func:`tbox.config.data_dir_path`)
2. ``~/.toolbox/scripts/ubuntu_helpers.sh`` (legacy install location)
3. ``scripts/ubuntu_helpers.sh`` beside the running ``tb`` executable
4. the bare name ``ubuntu_helpers.sh``, which bash then reports as missing

The helper encodes Launchpad bug metadata into branch and PPA names; that
encoding lives entirely in the script.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from tbox.models import ContextConfig
from tbox.plugins.base import Plugin, path_exists

logger = logging.getLogger(__name__)

HELPER_SCRIPT = "ubuntu_helpers.sh"
CONTEXT_NAME = "ubuntu-packaging"

_HELPER_COMMANDS = ("gbranch", "ppa-status", "dch-auto", "ubuild", "sb-auto", "dput-auto")

_COMMANDS = {
    "dch": "dch -i",
    "dch-release": "dch -r",
    "build": "dpkg-buildpackage -us -uc",
    "build-source": "dpkg-buildpackage -S -us -uc",
    "changelog": "dpkg-parsechangelog",
    "version": "dpkg-parsechangelog -S Version",
    "clean": "debian/rules clean",
    "distclean": "fakeroot debian/rules clean",
    "lint": "lintian",
    "lint-source": "lintian --pedantic *.dsc",
    "lint-changes": "lintian --pedantic *.changes",
}

_DESCRIPTIONS = {
    "gbranch": "Create/checkout git branch: gbranch <project> <bug-id> [merge|sru|bug] [description]",
    "ppa-status": "Show PPA information from current branch",
    "dch-auto": "Auto-update changelog with version suffix from current branch",
    "dch": "Add new changelog entry manually",
    "dch-release": "Mark changelog entry as released",
    "ubuild": "Complete build and upload workflow (sb-auto + dput-auto)",
    "sb-auto": "Build source package with sbuild for detected release",
    "dput-auto": "Upload to PPA inferred from current branch",
    "build": "Build binary package (dpkg-buildpackage)",
    "build-source": "Build source package only",
    "changelog": "Display full changelog",
    "version": "Show current package version",
    "clean": "Clean build artifacts",
    "distclean": "Deep clean (using fakeroot)",
    "lint": "Run lintian on built packages",
    "lint-source": "Run lintian on source package",
    "lint-changes": "Run lintian on .changes file",
}


def find_helper_script() -> str:
    """Return the path of the packaging helper script, or its bare name if not installed."""
    from tbox.config import data_dir_path

    candidates = [
        data_dir_path() / "scripts" / HELPER_SCRIPT,
        Path.home() / ".toolbox" / "scripts" / HELPER_SCRIPT,
    ]
    if sys.argv and sys.argv[0]:
        candidates.append(Path(sys.argv[0]).resolve().parent / "scripts" / HELPER_SCRIPT)

    for candidate in candidates:
        try:
            if candidate.is_file():
                return str(candidate)
        except OSError as exc:
            logger.debug("Cannot inspect %s: %s", candidate, exc)

    logger.debug("Helper script %s not found in %s", HELPER_SCRIPT, candidates)
    return HELPER_SCRIPT


class UbuntuPlugin(Plugin):
    """Context for Debian/Ubuntu source package trees."""

    @property
    def name(self) -> str:
        return "ubuntu"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def description(self) -> str:
        return "Ubuntu/Debian packaging with PPA workflows"

    def contexts(self) -> dict[str, ContextConfig]:
        script = find_helper_script()
        commands = {cmd: f"bash {script} {cmd}" for cmd in _HELPER_COMMANDS}
        commands.update(_COMMANDS)
        return {
            CONTEXT_NAME: ContextConfig(commands=commands, descriptions=dict(_DESCRIPTIONS)),
        }

    def detect(self, directory: Path) -> Optional[str]:
        if path_exists(directory, "debian/control", "debian/changelog"):
            return CONTEXT_NAME
        return None
