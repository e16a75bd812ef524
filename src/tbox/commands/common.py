"""Helpers shared by the built-in sub-commands and the dynamic dispatch command.

:func:`load_session` turns the root options stored in ``ctx.obj`` into a
loaded :class:`~tbox.models.Config`, the forced context (if any) and a
ready :class:`~tbox.dispatcher.Dispatcher`. :func:`fail` reports a
:class:`~tbox.exceptions.ToolboxError` the same way everywhere and exits
with its code.
"""

from __future__ import annotations

from typing import Any, NoReturn, Optional

import typer
from pydantic import BaseModel, ConfigDict

from tbox.config import PROJECT_CONFIG_FILENAME, resolve_config
from tbox.dispatcher import Dispatcher, build_dispatcher
from tbox.exceptions import (
    ArgumentLimitError,
    CommandNotFoundError,
    CommandTimeoutError,
    ConfigError,
    ContextNotFoundError,
    ProgramNotFoundError,
    ToolboxError,
    UnknownContextError,
)
from tbox.models import Config, DetectionResult
from tbox.output import error, suggest


class Session(BaseModel):
    """Everything one invocation needs, built once from the root options."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    config: Config
    forced_context: Optional[str] = None
    dispatcher: Dispatcher


def root_options(ctx: typer.Context) -> dict[str, Any]:
    """The options stored by :func:`~tbox.app.main_callback`, or an empty dict."""
    obj = ctx.find_root().obj
    return obj if isinstance(obj, dict) else {}


def load_session(
    ctx: typer.Context,
    context: Optional[str] = None,
    config_file: Optional[str] = None,
    timeout: Optional[str] = None,
    verbose: Optional[bool] = None,
) -> Session:
    """Resolve configuration and build the dispatcher for this invocation.

    Explicit arguments win over the root options in ``ctx.obj``.

    Raises:
        ConfigError: If a config layer fails to load.
        InvalidUsageError: If a timeout is not a valid duration.
        PluginError: If a built-in plugin fails to register.
    """
    opts = root_options(ctx)
    config, forced = resolve_config(
        cli_config=config_file or opts.get("config"),
        cli_context=context or opts.get("context"),
        cli_timeout=timeout or opts.get("timeout"),
    )
    if verbose is None:
        verbose = bool(opts.get("verbose", False))
    return Session(
        config=config,
        forced_context=forced,
        dispatcher=build_dispatcher(config, verbose=verbose),
    )


def try_resolve_context(session: Session) -> Optional[DetectionResult]:
    """Like :meth:`~tbox.dispatcher.Dispatcher.resolve_context` but ``None`` when nothing matches."""
    try:
        return session.dispatcher.resolve_context(".", session.forced_context)
    except ContextNotFoundError:
        return None


def hint_for(exc: ToolboxError) -> Optional[str]:
    """A next-step suggestion for *exc*, or ``None`` when there is nothing useful to say."""
    if isinstance(exc, ContextNotFoundError):
        return (
            "Force a context with --context NAME, or add a "
            f"{PROJECT_CONFIG_FILENAME} to this project"
        )
    if isinstance(exc, UnknownContextError):
        return "Run 'tb plugin contexts' or 'tb status' to see the available contexts"
    if isinstance(exc, CommandNotFoundError):
        if exc.command and exc.context:
            return f"Run 'tb help {exc.command}' to see which contexts define it"
        return "Run 'tb status' to see the commands in this context"
    if isinstance(exc, ConfigError):
        return f"Check {PROJECT_CONFIG_FILENAME} and the user config file"
    if isinstance(exc, ArgumentLimitError):
        return "Put large inputs in a file and pass its path instead"
    if isinstance(exc, ProgramNotFoundError):
        return f"Install {exc.program or 'the program'} or add it to PATH"
    if isinstance(exc, CommandTimeoutError):
        return "Allow more time with --timeout, e.g. --timeout 30m"
    return None


def fail(exc: ToolboxError) -> NoReturn:
    """Print *exc* (and a hint) to stderr and exit with its exit code."""
    error(str(exc))
    hint = hint_for(exc)
    if hint:
        suggest(hint)
    raise typer.Exit(code=exc.exit_code)
