"""Docker plugin -- image and compose workflows.

The image commands tag with the current directory's name. The name is read
when :meth:`DockerPlugin.contexts` is called, because invocation strings
never pass through a shell and so cannot use ``$(basename $(pwd))``.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from tbox.models import ContextConfig
from tbox.plugins.base import Plugin, has_file

_INVALID_TAG_CHARS = re.compile(r"[^a-z0-9._-]+")


def image_name(directory: Optional[Path] = None) -> str:
    """Derive a valid image name from *directory* (default: the working directory)."""
    name = (directory or Path.cwd()).name.lower()
    name = _INVALID_TAG_CHARS.sub("-", name).strip("-._")
    return name or "app"


class DockerPlugin(Plugin):
    """Contexts for projects built around a Dockerfile or a compose file."""

    @property
    def name(self) -> str:
        return "docker"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def description(self) -> str:
        return "Docker image and docker-compose workflows"

    def contexts(self) -> dict[str, ContextConfig]:
        image = image_name()
        return {
            "docker": ContextConfig(
                commands={
                    "build": f"docker build -t {image} .",
                    "run": f"docker run -it {image}",
                    "push": f"docker push {image}",
                    "compose": "docker-compose up",
                    "stop": "docker-compose down",
                    "logs": "docker-compose logs -f",
                    "shell": f"docker exec -it {image} /bin/bash",
                },
                descriptions={
                    "build": f"Build the image tagged '{image}'",
                    "run": "Run the image interactively",
                    "shell": f"Open a shell in the running '{image}' container",
                },
            ),
            "docker-compose": ContextConfig(
                commands={
                    "up": "docker-compose up -d",
                    "down": "docker-compose down",
                    "logs": "docker-compose logs -f",
                    "build": "docker-compose build",
                    "restart": "docker-compose restart",
                },
            ),
        }

    def detect(self, directory: Path) -> Optional[str]:
        if has_file(directory, "Dockerfile"):
            return "docker"
        if has_file(directory, "docker-compose.yml", "docker-compose.yaml"):
            return "docker-compose"
        return None
