"""Plugin commands -- introspect the compiled-in plugins.

Provides the ``tb plugin`` sub-command group:

* ``list`` -- name, version, context count and status of every plugin.
* ``info NAME`` -- details for one plugin, including its contexts.
* ``contexts`` -- every context the enabled plugins contribute, bare and
  namespaced, with its command count.

Plugins disabled via ``plugins.disabled`` in the config are still listed.
"""

from __future__ import annotations

import typer

from tbox.commands.common import fail, load_session
from tbox.exceptions import PluginError, ToolboxError
from tbox.output import OutputFormat, get_output, info, print_data, print_json, print_table
from tbox.plugins import PluginManager


plugin_app = typer.Typer(no_args_is_help=True)


def _manager(ctx: typer.Context) -> PluginManager:
    try:
        return load_session(ctx).dispatcher.plugin_manager
    except ToolboxError as exc:
        fail(exc)


def _status(enabled: bool) -> str:
    return "enabled" if enabled else "disabled"


def _complete_plugin_name(incomplete: str) -> list[str]:
    from tbox.plugins import create_default_manager

    return [
        name for name in create_default_manager().get_metadata() if name.startswith(incomplete)
    ]


@plugin_app.command("list")
def plugin_list(ctx: typer.Context) -> None:
    """List all installed plugins.

    Example::

        tb plugin list
        tb --json plugin list
    """
    metadata = _manager(ctx).list_plugins()
    if not metadata:
        info("No plugins installed")
        return

    print_table(
        ["NAME", "VERSION", "CONTEXTS", "STATUS"],
        [
            [meta.name, meta.version, str(meta.context_count), _status(meta.enabled)]
            for meta in metadata
        ],
        title="Plugins",
    )


@plugin_app.command("info")
def plugin_info(
    ctx: typer.Context,
    name: str = typer.Argument(
        help="Plugin name, e.g. 'docker'.",
        autocompletion=_complete_plugin_name,
    ),
) -> None:
    """Show detailed information about a plugin.

    Raises:
        typer.Exit: With the plugin error exit code if *name* is not
            registered.
    """
    meta = _manager(ctx).get_metadata().get(name)
    if meta is None:
        fail(PluginError(f"plugin {name!r} not found"))

    if get_output().format == OutputFormat.JSON:
        print_json(meta.model_dump(mode="json"))
        return

    print_data(f"Plugin: {meta.name}")
    print_data(f"Version: {meta.version}")
    if meta.description:
        print_data(f"Description: {meta.description}")
    print_data(f"Status: {_status(meta.enabled)}")
    print_data(f"Contexts: {meta.context_count}")
    if meta.contexts:
        print_data("")
        print_data("Provided Contexts:")
        for context in meta.contexts:
            print_data(f"  - {context}")


@plugin_app.command("contexts")
def plugin_contexts(ctx: typer.Context) -> None:
    """List all contexts provided by enabled plugins."""
    contexts = _manager(ctx).get_contexts()
    if not contexts:
        info("No plugin contexts available")
        return

    print_table(
        ["CONTEXT", "COMMANDS"],
        [[name, str(len(contexts[name].commands))] for name in sorted(contexts)],
        title="Plugin contexts",
    )
