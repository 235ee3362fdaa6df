"""Unit tests for slash command registry."""

from __future__ import annotations

from pathlib import Path

from wordbook.configuration import ConfigurationBundle
from wordbook.sync.errors import StoreError
from wordbook.slash_commands import (
    CommandRouter,
    SlashCommand,
    SlashCommandContext,
    parse_flags,
    render_help_table,
    render_rich,
)


def test_router_handles_registered_command(tmp_path: Path):
    config = ConfigurationBundle(home_dir=tmp_path, status="ready")
    router = CommandRouter(config)
    captured = {}

    def handler(context: SlashCommandContext, args: list[str]) -> str:
        captured["context"] = context
        return f"echo:{' '.join(args)}"

    router.register(SlashCommand(name="echo", description="Echo args", handler=handler))
    result = router.handle("ECHO", ["hello", "world"])

    assert result == "echo:hello world"
    assert captured["context"].config is config
    assert "echo" in router.command_names


def test_unknown_command_points_to_help(tmp_path: Path):
    router = CommandRouter(ConfigurationBundle(home_dir=tmp_path, status="ready"))

    assert "Unknown command '/nope'" in router.handle("nope", [])


def test_render_help_table_lists_commands(tmp_path: Path):
    router = CommandRouter(ConfigurationBundle(home_dir=tmp_path, status="ready"))
    router.register(SlashCommand(name="sync", description="Sync the word book", handler=lambda *_: ""))
    router.register(SlashCommand(name="help", description="Show help", handler=lambda *_: ""))

    output = render_help_table(router.commands())

    assert "/sync" in output
    assert "Sync the word book" in output


def test_render_rich_produces_ansi():
    def _render(console):
        console.print("hello", style="bold red")

    ansi = render_rich(_render)

    assert "\x1b[" in ansi  # contains ANSI escape sequence


def test_requires_ready_guard(tmp_path: Path):
    router = CommandRouter(ConfigurationBundle(home_dir=tmp_path, status="invalid"))
    router.register(
        SlashCommand(
            name="needs_ready",
            description="Needs ready config",
            handler=lambda *_: "ok",
            requires_ready=True,
        )
    )

    result = router.handle("needs_ready", [])

    assert "requires a ready configuration" in result


def test_parse_flags_splits_values_switches_and_positionals():
    flags, positional = parse_flags(
        ["apple", "--tag", "fruit", "--public", "--tag", "red", "pomme"],
        ("--tag",),
    )

    assert flags == {"--tag": ["fruit", "red"], "--public": []}
    assert positional == ["apple", "pomme"]


def test_aliases_resolve_to_command(tmp_path: Path):
    router = CommandRouter(ConfigurationBundle(home_dir=tmp_path, status="ready"))
    router.register(SlashCommand(name="words", description="", handler=lambda *_: "words!", aliases=("w",)))

    assert router.handle("w", []) == "words!"
    assert router.command_names == ["words"]
    assert router.completion_names == ["w", "words"]


def test_domain_errors_are_rendered_not_raised(tmp_path: Path):
    router = CommandRouter(ConfigurationBundle(home_dir=tmp_path, status="ready"))

    def handler(context: SlashCommandContext, args: list[str]) -> str:
        raise StoreError("GitHub API error: 502 Bad Gateway", status=502)

    router.register(SlashCommand(name="sync", description="", handler=handler))

    assert router.handle("sync", ["run"]) == "[sync] GitHub API error: 502 Bad Gateway"
