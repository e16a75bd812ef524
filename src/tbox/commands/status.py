"""Status command -- which context is active here, and what can I run?

Prints the active context with its provenance, the commands it defines
(description, or the invocation string when there is none), every other
context that would also match this directory, and the config files that
contributed. ``--json`` emits the same information as one object.
"""

from __future__ import annotations

import typer

from tbox.commands.common import Session, fail, load_session, try_resolve_context
from tbox.exceptions import ToolboxError, UnknownContextError
from tbox.output import OutputFormat, get_output, print_data, print_json, warning


def _detected_contexts(session: Session) -> list[str]:
    dispatcher = session.dispatcher
    found = dispatcher.plugin_manager.detect_all_contexts(".")
    for name in dispatcher.detector.detect_all("."):
        if name not in found:
            found.append(name)
    return sorted(found)


def status_command(ctx: typer.Context) -> None:
    """Show the current context and the commands available in it.

    Example::

        tb status
        tb --context go status
        tb --json status
    """
    try:
        session = load_session(ctx)
    except ToolboxError as exc:
        fail(exc)

    detection = try_resolve_context(session)
    registry = session.dispatcher.registry
    others = [] if session.forced_context else _detected_contexts(session)
    if detection is not None:
        others = [name for name in others if name != detection.context]

    commands: dict[str, dict[str, str]] = {}
    lookup_error = None
    if detection is not None:
        try:
            ctx_config = registry.get_context(detection.context)
        except UnknownContextError as exc:
            lookup_error = exc
        else:
            for name in sorted(ctx_config.commands):
                commands[name] = {
                    "command": ctx_config.commands[name],
                    "description": ctx_config.descriptions.get(name, ""),
                }

    if get_output().format == OutputFormat.JSON:
        print_json(
            {
                "context": detection.context if detection else None,
                "source": detection.source.value if detection else None,
                "plugin": detection.plugin if detection else None,
                "commands": commands,
                "other_contexts": others,
                "config_files": session.config.sources,
            }
        )
        if lookup_error is not None:
            fail(lookup_error)
        return

    if detection is None:
        print_data("Context: none detected")
    else:
        print_data(f"Context: {detection.describe()}")
    print_data("")

    if lookup_error is not None:
        warning(f"cannot list commands: {lookup_error}")
    elif detection is not None and commands:
        print_data(f"Available commands in '{detection.context}' context:")
        for name, entry in commands.items():
            if entry["description"]:
                print_data(f"  {name:<15} {entry['description']}")
            else:
                print_data(f"  {name:<15} → {entry['command']}")
    elif detection is not None:
        print_data(f"No commands available in '{detection.context}' context")

    if others:
        print_data("")
        print_data("Other detected contexts:")
        for name in others:
            print_data(f"  {name}")

    if session.config.sources:
        print_data("")
        for source in session.config.sources:
            print_data(f"Config file: {source}")

    if lookup_error is not None:
        raise typer.Exit(code=lookup_error.exit_code)
