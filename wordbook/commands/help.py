"""/help: command overview, or usage for one command."""

from __future__ import annotations

from typing import List

from ..slash_commands import (
    SlashCommand,
    SlashCommandContext,
    render_command_usage,
    render_help_table,
)


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    if not args:
        return render_help_table(context.router.commands())

    name = args[0].lstrip("/")
    command = context.router.get(name)
    if command is None:
        return f"[help] No command named '/{name}'."
    return render_command_usage(command)


COMMAND = SlashCommand(
    name="help",
    description="List commands, or show usage for one.",
    handler=_handler,
    usage="/help [COMMAND]",
    aliases=("?",),
)
