"""Typer application and CLI entry point for tbox.

The root app registers the built-in sub-commands (``status``, ``help``,
``plugin``). Any other first token is a context command: the custom
:class:`DispatchGroup` routes it, with every following token untouched, to
a hidden command that hands the tokens to
:meth:`~tbox.dispatcher.Dispatcher.parse_tokens` and runs the result.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app,
turns :class:`~tbox.exceptions.ToolboxError` into its exit code, and
writes a crash log under the data directory for anything unexpected.

See Also:
    :mod:`tbox.config`: Configuration layering and precedence.
    :mod:`tbox.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler
from typer.core import TyperGroup

from tbox import __version__
from tbox.exit_codes import EXIT_GENERIC_FAILURE

DISPATCH_COMMAND = "run"
"""Name of the hidden command that receives context-command tokens."""

_VALUE_OPTIONS = ("--context", "--timeout", "--config")
_RAW_OPTIONS_KEY = "tbox.raw_root_options"


def _peek_root_options(args: list[str]) -> dict[str, str]:
    """Values of the root options that take an argument, read from raw tokens.

    Scanning stops at ``--`` or at the first non-option token (the command
    name), so flags meant for the underlying program are never picked up.
    """
    found: dict[str, str] = {}
    tokens = iter(args)
    for token in tokens:
        if token == "--" or not token.startswith("-"):
            break
        name, sep, value = token.partition("=")
        if name not in _VALUE_OPTIONS:
            continue
        if not sep:
            value = next(tokens, None)
            if value is None:
                break
        found[name.lstrip("-")] = value
    return found


class DispatchGroup(TyperGroup):
    """Root group that treats every unknown command name as a context command."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        # --help is eager and renders before --context/--config are stored.
        ctx.meta[_RAW_OPTIONS_KEY] = _peek_root_options(list(args))
        return super().parse_args(ctx, args)

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[Optional[str], Optional[click.Command], list[str]]:
        name = args[0] if args else None
        if name is not None and name != DISPATCH_COMMAND:
            if self.get_command(ctx, name) is not None:
                return super().resolve_command(ctx, args)
        # The command name stays in the tokens; the dispatcher parses it.
        return DISPATCH_COMMAND, self.get_command(ctx, DISPATCH_COMMAND), list(args)

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        super().format_help(ctx, formatter)
        section = _context_commands_section(ctx)
        if section:
            formatter.write(section)


app = typer.Typer(
    name="tb",
    cls=DispatchGroup,
    help=(
        "ToolBox - context-aware command aliasing.\n\n"
        "Type [bold]tb build[/bold] or [bold]tb test[/bold] and tbox runs the right "
        "command for the project in the current directory."
    ),
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
    context_settings={"ignore_unknown_options": True},
)


def _context_commands_section(ctx: click.Context) -> Optional[str]:
    """Text listing the active context's commands, or ``None`` if there is no context."""
    from tbox.config import resolve_config
    from tbox.dispatcher import build_dispatcher
    from tbox.exceptions import ToolboxError

    raw = ctx.meta.get(_RAW_OPTIONS_KEY, {})
    try:
        config, forced = resolve_config(
            cli_config=ctx.params.get("config") or raw.get("config"),
            cli_context=ctx.params.get("context") or raw.get("context"),
        )
        dispatcher = build_dispatcher(config)
        detection = dispatcher.resolve_context(".", forced)
        names = dispatcher.registry.list_commands(detection.context)
    except ToolboxError:
        return None
    if not names:
        return None

    lines = ["", f"Context-Specific Commands ({detection.context}):"]
    for name in names:
        description = dispatcher.registry.get_description(detection.context, name)
        lines.append(f"  {name:<12} {description}" if description else f"  {name}")
    lines.append("")
    lines.append('Use "tb status" to see the current context and its commands.')
    return "\n".join(lines) + "\n"


def _complete_context(incomplete: str) -> list[str]:
    """Shell completion for ``--context``: every known context name."""
    from tbox.config import load_config
    from tbox.dispatcher import build_dispatcher
    from tbox.exceptions import ToolboxError

    try:
        names = build_dispatcher(load_config()).registry.list_contexts()
    except ToolboxError:
        return []
    return [name for name in names if name.startswith(incomplete)]


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"ToolBox (tb) version {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Send ``tbox.*`` log records to stderr; DEBUG with ``--verbose``, else WARNING."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    logger = logging.getLogger("tbox")
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    context: Optional[str] = typer.Option(
        None,
        "--context",
        help="Force a specific context (node, go, python, ...).",
        autocompletion=_complete_context,
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print the resolved command without executing it."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Print resolution detail and debug logs."
    ),
    timeout: Optional[str] = typer.Option(
        None, "--timeout", help="Command execution timeout, e.g. 90s or 10m (default 10m)."
    ),
    config: Optional[str] = typer.Option(
        None, "--config", help="Project config file (default: ./.toolbox.yaml)."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~tbox.output.OutputManager` and logging
    from the flags, and stores the shared options in ``ctx.obj`` for the
    sub-commands.
    """
    from tbox.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["context"] = context
    ctx.obj["dry_run"] = dry_run
    ctx.obj["verbose"] = verbose
    ctx.obj["timeout"] = timeout
    ctx.obj["config"] = config


@app.command(
    DISPATCH_COMMAND,
    hidden=True,
    add_help_option=False,
    context_settings={
        "ignore_unknown_options": True,
        "allow_extra_args": True,
        "allow_interspersed_args": False,
    },
)
def dispatch_command(
    ctx: typer.Context,
    tokens: Optional[list[str]] = typer.Argument(None),
) -> None:
    """Run a context command (build, test, ...) with passthrough arguments."""
    from tbox.commands.common import fail, load_session, root_options
    from tbox.dispatcher import Dispatcher
    from tbox.exceptions import ToolboxError
    from tbox.output import OutputManager, get_output, set_output

    opts = root_options(ctx)
    try:
        parsed = Dispatcher.parse_tokens(tokens or [])
        current = get_output()
        if parsed.verbose and not current.is_verbose:
            set_output(
                OutputManager(
                    format=current.format,
                    no_color=current.no_color,
                    quiet=current.is_quiet,
                    verbose=True,
                )
            )
            _configure_logging(True)

        session = load_session(
            ctx,
            context=parsed.context,
            config_file=parsed.config,
            verbose=True if parsed.verbose else None,
        )
        session.dispatcher.dispatch(
            parsed.command,
            parsed.args,
            directory=".",
            forced=session.forced_context,
            dry_run=parsed.dry_run or bool(opts.get("dry_run")),
            timeout=parsed.timeout,
        )
    except ToolboxError as exc:
        fail(exc)


# ------------------------------------------------------------------ #
# Built-in commands
# ------------------------------------------------------------------ #

from tbox.commands.help import help_command  # noqa: E402
from tbox.commands.plugin import plugin_app  # noqa: E402
from tbox.commands.status import status_command  # noqa: E402

app.command("status", help="Show current context and available commands.")(status_command)
app.command("help", help="Show help for a command.")(help_command)
app.add_typer(plugin_app, name="plugin", help="Inspect ToolBox plugins.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from tbox.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``tb`` console script.

    Unhandled :class:`~tbox.exceptions.ToolboxError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from tbox.exceptions import ToolboxError
        from tbox.output import error

        if isinstance(exc, ToolboxError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
