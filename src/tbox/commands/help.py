"""Help command -- explain what a short command expands to.

``tb help`` prints the root help (which also lists the active context's
commands). ``tb help NAME`` shows the invocation string for ``NAME`` in the
active context. When there is no active context, or the active context
does not define ``NAME``, every context that does define it is listed
instead.
"""

from __future__ import annotations

from typing import Optional

import typer

from tbox.commands.common import Session, fail, load_session, try_resolve_context
from tbox.exceptions import CommandNotFoundError, ToolboxError, UnknownContextError
from tbox.output import print_data


def _show_everywhere(session: Session, name: str) -> None:
    registry = session.dispatcher.registry
    found = registry.find_command(name)
    if not found:
        raise CommandNotFoundError(
            f"command '{name}' not found in any context", command=name
        )

    print_data(f"Command '{name}' is available in the following contexts:")
    print_data("")
    for context in found:
        print_data(f"Context: {context}")
        description = registry.get_description(context, name)
        if description:
            print_data(f"  Description: {description}")
        print_data(f"  Executes: {registry.get_command(context, name)}")
        print_data("")
    print_data(f"Use 'tb --context <context> {name}' to run in a specific context.")


def _show_help(session: Session, name: str) -> None:
    registry = session.dispatcher.registry
    detection = try_resolve_context(session)
    if detection is None:
        _show_everywhere(session, name)
        return

    context = detection.context
    if not registry.has_context(context):
        raise UnknownContextError(f"context '{context}' not found", context=context)
    try:
        invocation = registry.get_command(context, name)
    except CommandNotFoundError:
        _show_everywhere(session, name)
        return

    print_data(f"Command: {name}")
    print_data(f"Context: {context}")
    print_data("")
    description = registry.get_description(context, name)
    if description:
        print_data("Description:")
        print_data(f"  {description}")
        print_data("")
    print_data("Executes:")
    print_data(f"  {invocation}")


def help_command(
    ctx: typer.Context,
    command: Optional[str] = typer.Argument(
        None, help="Context command to explain, e.g. 'build'."
    ),
) -> None:
    """Show help for a context command, or the general help.

    Example::

        tb help gbranch
        tb --context ubuntu-packaging help gbranch
        tb help
    """
    if command is None:
        typer.echo(ctx.find_root().get_help())
        return

    try:
        _show_help(load_session(ctx), command)
    except ToolboxError as exc:
        fail(exc)
