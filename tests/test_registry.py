"""Tests for the command registry and context table merging."""

from __future__ import annotations

import pytest

from tbox.exceptions import CommandNotFoundError, UnknownContextError
from tbox.models import ContextConfig
from tbox.registry import CommandRegistry, merge_context_tables


@pytest.fixture
def registry() -> CommandRegistry:
    return CommandRegistry(
        {
            "go": ContextConfig(
                commands={"build": "go build ./...", "test": "go test ./..."},
                descriptions={"build": "Compile every package"},
            ),
            "make": ContextConfig(commands={"build": "make", "clean": "make clean"}),
        }
    )


class TestLookup:
    def test_get_command(self, registry: CommandRegistry) -> None:
        assert registry.get_command("go", "build") == "go build ./..."

    def test_unknown_context(self, registry: CommandRegistry) -> None:
        with pytest.raises(UnknownContextError, match="unknown context 'rust'") as exc_info:
            registry.get_command("rust", "build")
        assert exc_info.value.exit_code == 5

    def test_unknown_command_names_context_and_command(
        self, registry: CommandRegistry
    ) -> None:
        with pytest.raises(CommandNotFoundError) as exc_info:
            registry.get_command("go", "deploy")
        exc = exc_info.value
        assert not isinstance(exc, UnknownContextError)
        assert str(exc) == "command 'deploy' not defined in context 'go'"
        assert (exc.context, exc.command) == ("go", "deploy")

    def test_list_commands_sorted(self, registry: CommandRegistry) -> None:
        assert registry.list_commands("make") == ["build", "clean"]

    def test_list_commands_unknown_context(self, registry: CommandRegistry) -> None:
        with pytest.raises(UnknownContextError):
            registry.list_commands("nope")

    def test_list_contexts(self, registry: CommandRegistry) -> None:
        assert registry.list_contexts() == ["go", "make"]

    def test_descriptions(self, registry: CommandRegistry) -> None:
        assert registry.get_description("go", "build") == "Compile every package"
        assert registry.get_description("go", "test") is None
        assert registry.get_description("nope", "build") is None

    def test_find_command(self, registry: CommandRegistry) -> None:
        assert registry.find_command("build") == ["go", "make"]
        assert registry.find_command("deploy") == []

    def test_contexts_is_a_copy(self, registry: CommandRegistry) -> None:
        registry.contexts.pop("go")
        assert registry.has_context("go")


class TestMerge:
    def test_config_wins_over_plugin(self) -> None:
        config_ctx = ContextConfig(commands={"up": "custom up"})
        plugin_ctx = ContextConfig(commands={"up": "docker-compose up -d"})
        table = merge_context_tables(
            {"docker-compose": config_ctx},
            {"docker-compose": plugin_ctx, "docker:docker-compose": plugin_ctx},
        )
        assert table["docker-compose"] is config_ctx
        assert table["docker:docker-compose"] is plugin_ctx

    def test_inputs_untouched(self) -> None:
        config_contexts = {"go": ContextConfig(commands={"b": "go build"})}
        plugin_contexts = {"helm": ContextConfig(commands={"l": "helm list"})}
        table = merge_context_tables(config_contexts, plugin_contexts)
        assert set(table) == {"go", "helm"}
        assert set(config_contexts) == {"go"}
