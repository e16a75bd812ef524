"""Layered YAML configuration with XDG paths and precedence resolution.

This module supplies the context table the dispatcher works from:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.tbox/`` on macOS and Windows. See :func:`config_dir_path` and
  :func:`data_dir_path`.
* **Layers** -- built-in defaults, then the user-global
  ``<config dir>/config.yaml``, then the project-local ``./.toolbox.yaml``
  (or an explicit ``--config`` path in its place). A context declared in a
  higher layer replaces the lower layer's context of the same name whole.
* **Validation** -- every file is size-limited, must be a regular file, and
  is validated by :class:`~tbox.models.ConfigFile`. YAML parse errors are
  reported without echoing file content.
* **Precedence resolution** -- :func:`resolve_config` layers CLI flags and
  ``TBOX_*`` environment variables over the files.

Example ``.toolbox.yaml``::

    contexts:
      go:
        commands:
          build: go build -trimpath ./...
        descriptions:
          build: Reproducible build
    settings:
      timeout: 20m
"""

from __future__ import annotations

import os
import platform
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from tbox.durations import parse_duration
from tbox.exceptions import ConfigError
from tbox.models import Config, ConfigFile, ContextConfig

_APP_NAME = "tbox"
_CONFIG_FILENAME = "config.yaml"
PROJECT_CONFIG_FILENAME = ".toolbox.yaml"

MAX_CONFIG_FILE_SIZE = 1024 * 1024
"""Config files larger than this (in bytes) are rejected unread."""

ENV_CONTEXT = "TBOX_CONTEXT"
ENV_TIMEOUT = "TBOX_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def config_dir_path() -> Path:
    """Return the configuration directory path without creating it.

    On Linux/BSD: ``$XDG_CONFIG_HOME/tbox/`` (default ``~/.config/tbox/``).
    On macOS/Windows: ``~/.tbox/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return _fallback_base_dir()


def data_dir_path() -> Path:
    """Return the data directory path (crash logs, helper scripts) without creating it.

    On Linux/BSD: ``$XDG_DATA_HOME/tbox/`` (default ``~/.local/share/tbox/``).
    On macOS/Windows: ``~/.tbox/data/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    return _fallback_base_dir() / "data"


def get_data_dir() -> Path:
    """Return the data directory, creating it if necessary."""
    path = data_dir_path()
    path.mkdir(parents=True, exist_ok=True)
    return path


def user_config_path() -> Path:
    """Path of the user-global config file (it may not exist)."""
    return config_dir_path() / _CONFIG_FILENAME


# --- Built-in defaults ---


def default_contexts() -> dict[str, ContextConfig]:
    """The built-in context table used when no file overrides a context."""
    return {
        "node": ContextConfig(
            commands={
                "build": "npm run build",
                "test": "npm test",
                "start": "npm start",
                "dev": "npm run dev",
                "lint": "npm run lint",
                "install": "npm install",
            }
        ),
        "go": ContextConfig(
            commands={
                "build": "go build ./...",
                "test": "go test ./...",
                "run": "go run ./cmd/...",
                "install": "go mod download",
                "lint": "golangci-lint run",
                "fmt": "go fmt ./...",
            }
        ),
        "python": ContextConfig(
            commands={
                "test": "pytest",
                "lint": "ruff check .",
                "fmt": "black .",
                "install": "pip install -r requirements.txt",
                "run": "python main.py",
            }
        ),
        "rust": ContextConfig(
            commands={
                "build": "cargo build",
                "test": "cargo test",
                "run": "cargo run",
                "install": "cargo fetch",
                "lint": "cargo clippy",
                "fmt": "cargo fmt",
            }
        ),
        "make": ContextConfig(
            commands={
                "build": "make",
                "test": "make test",
                "clean": "make clean",
            }
        ),
    }


# --- File loading ---


def validate_config_path(path: str) -> Path:
    """Check a user-supplied ``--config`` path before it is opened.

    Explicit paths must be relative (global config belongs in the config
    directory), must not contain ``..`` components, and must end in
    ``.yaml`` or ``.yml``.

    Raises:
        ConfigError: If any rule is violated.
    """
    if not path:
        raise ConfigError("invalid config path: empty path")

    candidate = Path(os.path.normpath(path))
    if candidate.is_absolute():
        raise ConfigError(
            "invalid config path: absolute paths not allowed, use a relative path "
            f"or place the config at {user_config_path()}"
        )
    if ".." in candidate.parts:
        raise ConfigError("invalid config path: directory traversal not allowed")
    if candidate.suffix not in (".yaml", ".yml"):
        raise ConfigError("invalid config path: config file must have .yaml or .yml extension")
    return candidate


def load_config_file(path: Union[str, Path]) -> ConfigFile:
    """Read, parse and validate one config layer.

    Args:
        path: The YAML file to load.

    Returns:
        The validated :class:`~tbox.models.ConfigFile`.

    Raises:
        ConfigError: If the file is missing, not a regular file, larger
            than :data:`MAX_CONFIG_FILE_SIZE`, not valid YAML, or fails
            schema validation.
    """
    path = Path(path)
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise ConfigError(f"config file not accessible: {path}: {exc.strerror}") from exc

    if not path.is_file():
        raise ConfigError(f"config path must be a regular file: {path}")
    if size > MAX_CONFIG_FILE_SIZE:
        raise ConfigError(
            f"config file {path} exceeds maximum size of {MAX_CONFIG_FILE_SIZE} bytes "
            f"(got {size} bytes)"
        )

    try:
        text = path.read_text(encoding="utf-8")
        data: Any = yaml.safe_load(text)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"failed to read config file {path}: {exc}") from exc
    except yaml.YAMLError:
        # The parser error echoes file content; keep it out of the message.
        raise ConfigError(
            f"failed to parse config file {path}: invalid YAML format"
        ) from None

    if not isinstance(data, dict) or data.get("contexts") is None:
        raise ConfigError(f"invalid configuration in {path}: no contexts defined")

    try:
        return ConfigFile.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration in {path}: {_first_error(exc)}") from exc


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = str(first.get("msg", "invalid value")).removeprefix("Value error, ")
    return f"{location}: {message}" if location else message


def _apply_layer(config: Config, layer: ConfigFile, source: Path) -> None:
    config.contexts.update(layer.contexts)
    for field in layer.settings.model_fields_set:
        setattr(config.settings, field, getattr(layer.settings, field))
    if "disabled" in layer.plugins.model_fields_set:
        config.plugins.disabled = list(layer.plugins.disabled)
    config.sources.append(str(source))


def load_config(
    config_file: Optional[str] = None,
    cwd: Optional[Path] = None,
) -> Config:
    """Build the effective configuration from every layer.

    Precedence (high to low):
        1. ``config_file`` if given, otherwise ``<cwd>/.toolbox.yaml``
        2. User config (``~/.config/tbox/config.yaml``)
        3. Built-in defaults

    Args:
        config_file: Explicit project config path (from ``--config``),
            relative to *cwd*.
        cwd: Directory holding the project config. Defaults to the
            current working directory.

    Returns:
        The merged :class:`~tbox.models.Config`.

    Raises:
        ConfigError: If an explicit path is invalid or missing, or any
            existing layer fails to load.
    """
    cwd = cwd or Path.cwd()
    config = Config(contexts=default_contexts())

    user_path = user_config_path()
    if user_path.is_file():
        _apply_layer(config, load_config_file(user_path), user_path)

    if config_file is not None:
        project_path = cwd / validate_config_path(config_file)
        if not project_path.exists():
            raise ConfigError(f"config file not found: {config_file}")
    else:
        project_path = cwd / PROJECT_CONFIG_FILENAME

    if project_path.exists():
        _apply_layer(config, load_config_file(project_path), project_path)

    return config


# --- Precedence resolution ---


def resolve_config(
    cli_config: Optional[str] = None,
    cli_context: Optional[str] = None,
    cli_timeout: Optional[str] = None,
    cwd: Optional[Path] = None,
) -> tuple[Config, Optional[str]]:
    """Resolve config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``--context``, ``--timeout``, ``--config``)
        2. Environment variables (``TBOX_CONTEXT``, ``TBOX_TIMEOUT``)
        3. Project config (``./.toolbox.yaml``)
        4. User config (``~/.config/tbox/config.yaml``)
        5. Defaults

    Returns:
        A tuple of ``(config, forced_context_or_None)``. The effective
        timeout is stored in ``config.settings.timeout``.

    Raises:
        ConfigError: If a config layer fails to load.
        InvalidUsageError: If a timeout duration is invalid.
    """
    config = load_config(cli_config, cwd=cwd)

    env_timeout = os.environ.get(ENV_TIMEOUT)
    if cli_timeout is not None:
        config.settings.timeout = parse_duration(cli_timeout)
    elif env_timeout:
        config.settings.timeout = parse_duration(env_timeout)

    forced = cli_context or os.environ.get(ENV_CONTEXT) or None
    return config, forced
