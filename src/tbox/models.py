"""Canonical Pydantic models shared across all tbox modules.

The models fall into two groups:

**Configuration models** -- deserialised from the YAML config layers:
    :class:`ContextConfig`, :class:`Settings`, :class:`PluginsConfig`,
    :class:`ConfigFile` (one validated on-disk layer) and :class:`Config`
    (the merged result the CLI works with).

**Runtime models** -- built fresh for every invocation and never persisted:
    :class:`DetectionSource`, :class:`DetectionResult`,
    :class:`Resolution`, :class:`ExecutionResult` and
    :class:`PluginMetadata`.
"""

from __future__ import annotations

import enum
import re
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from tbox.durations import parse_duration
from tbox.exceptions import InvalidUsageError

MAX_CONTEXTS = 100
"""Maximum number of contexts a single config file may declare."""

MAX_COMMANDS_PER_CONTEXT = 50
"""Maximum number of commands per context in a config file."""

MAX_NAME_LENGTH = 50
"""Maximum length of a context or command name."""

MAX_COMMAND_LENGTH = 4096
"""Maximum length of a single invocation string."""

DEFAULT_TIMEOUT = 600.0
"""Default execution deadline in seconds (10 minutes)."""

DEFAULT_MAX_ARGUMENT_COUNT = 100
DEFAULT_MAX_ARGUMENT_LENGTH = 8192

_CONTEXT_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


# --- Configuration ---


class ContextConfig(BaseModel):
    """A named bucket of commands for one kind of project.

    Example::

        ContextConfig(
            commands={"build": "go build ./...", "test": "go test ./..."},
            descriptions={"build": "Compile every package"},
        )
    """

    commands: dict[str, str] = Field(
        default_factory=dict, description="Command name -> invocation string"
    )
    descriptions: dict[str, str] = Field(
        default_factory=dict, description="Command name -> human-readable text"
    )


class Settings(BaseModel):
    """Execution bounds applied by the dispatcher and executor."""

    timeout: float = Field(
        default=DEFAULT_TIMEOUT,
        description="Execution deadline; a duration like '10m' or seconds",
    )
    max_argument_count: int = Field(default=DEFAULT_MAX_ARGUMENT_COUNT, ge=1)
    max_argument_length: int = Field(
        default=DEFAULT_MAX_ARGUMENT_LENGTH,
        ge=1,
        description="Maximum size of a single caller argument in bytes",
    )

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: Any) -> float:
        try:
            return parse_duration(value)
        except InvalidUsageError as exc:
            raise ValueError(str(exc)) from exc


class PluginsConfig(BaseModel):
    """Plugins to register as disabled (they stay listed but never detect or contribute)."""

    disabled: list[str] = Field(default_factory=list)


class ConfigFile(BaseModel):
    """One validated on-disk configuration layer (project or user-global).

    Users control their own config files, so invocation strings containing
    shell metacharacters are accepted as-is. They are never handed to a
    shell anyway.
    """

    contexts: dict[str, ContextConfig]
    settings: Settings = Field(default_factory=Settings)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @field_validator("contexts")
    @classmethod
    def _check_contexts(cls, contexts: dict[str, ContextConfig]) -> dict[str, ContextConfig]:
        if len(contexts) > MAX_CONTEXTS:
            raise ValueError(
                f"too many contexts (max: {MAX_CONTEXTS}, got: {len(contexts)})"
            )
        for ctx_name, ctx in contexts.items():
            if not ctx_name or len(ctx_name) > MAX_NAME_LENGTH:
                raise ValueError(
                    f"invalid context name {ctx_name!r}: must be 1-{MAX_NAME_LENGTH} characters"
                )
            if not _CONTEXT_NAME_RE.match(ctx_name):
                raise ValueError(
                    f"invalid context name {ctx_name!r}: only letters, digits, '-' and '_' allowed"
                )
            if len(ctx.commands) > MAX_COMMANDS_PER_CONTEXT:
                raise ValueError(
                    f"context {ctx_name!r} has too many commands "
                    f"(max: {MAX_COMMANDS_PER_CONTEXT}, got: {len(ctx.commands)})"
                )
            for cmd_name, cmd in ctx.commands.items():
                if not cmd_name:
                    raise ValueError(f"context {ctx_name!r}: empty command name")
                if len(cmd_name) > MAX_NAME_LENGTH:
                    raise ValueError(f"context {ctx_name!r}: command name too long")
                if not cmd.strip():
                    raise ValueError(
                        f"context {ctx_name!r}, command {cmd_name!r}: empty command string"
                    )
                if len(cmd) > MAX_COMMAND_LENGTH:
                    raise ValueError(
                        f"context {ctx_name!r}, command {cmd_name!r}: command string "
                        f"exceeds maximum length of {MAX_COMMAND_LENGTH} characters"
                    )
        return contexts


class Config(BaseModel):
    """The effective configuration after layering defaults, user and project files.

    Produced by :func:`~tbox.config.load_config`. ``sources`` lists the
    files that contributed, lowest precedence first.
    """

    contexts: dict[str, ContextConfig] = Field(default_factory=dict)
    settings: Settings = Field(default_factory=Settings)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    sources: list[str] = Field(default_factory=list)


# --- Runtime ---


class DetectionSource(str, enum.Enum):
    """Where the active context for an invocation came from."""

    FORCED = "forced"
    PLUGIN = "plugin"
    BUILTIN = "builtin"


class DetectionResult(BaseModel):
    """The single active context for one invocation, with provenance."""

    context: str
    source: DetectionSource
    plugin: Optional[str] = Field(
        default=None, description="Name of the detecting plugin, if any"
    )

    def describe(self) -> str:
        """Human-readable provenance, e.g. ``"docker (detected via plugin: docker)"``."""
        if self.source is DetectionSource.FORCED:
            return f"{self.context} (forced)"
        if self.source is DetectionSource.PLUGIN:
            return f"{self.context} (detected via plugin: {self.plugin})"
        return f"{self.context} (detected)"


class Resolution(BaseModel):
    """Everything the dispatcher decided before handing off to the executor."""

    detection: DetectionResult
    command: str
    base_command: str
    args: list[str] = Field(default_factory=list)

    @property
    def context(self) -> str:
        return self.detection.context

    def summary_lines(self) -> list[str]:
        """The lines printed for ``--dry-run`` and ``--verbose``."""
        lines = [f"Context: {self.context}", f"Base command: {self.base_command}"]
        if self.args:
            lines.append(f"Additional arguments: {' '.join(self.args)}")
        return lines


class ExecutionResult(BaseModel):
    """Outcome of a child process that ran to completion."""

    program: str = Field(description="Absolute path of the resolved program")
    argv: list[str] = Field(description="Arguments passed after the program")
    returncode: int
    duration: float = Field(description="Wall-clock seconds")


class PluginMetadata(BaseModel):
    """Introspection record captured when a plugin is registered."""

    name: str
    version: str
    description: str = ""
    enabled: bool = True
    context_count: int = 0
    contexts: list[str] = Field(default_factory=list)
