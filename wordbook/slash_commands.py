"""Slash command registry, dispatch and rendering helpers."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from io import StringIO
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table

from .configuration import ConfigurationBundle
from .store import WordStoreError
from .sync.errors import WordbookSyncError

logger = logging.getLogger("wordbook.commands")

SlashCommandHandler = Callable[["SlashCommandContext", List[str]], str]
ParsedFlags = Tuple[Dict[str, List[str]], List[str]]


@dataclass
class SlashCommandContext:
    """What a handler gets: the live config, the router and session state."""

    config: ConfigurationBundle
    router: "CommandRouter"
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SlashCommand:
    name: str
    description: str
    handler: SlashCommandHandler
    usage: str = ""
    aliases: Tuple[str, ...] = ()
    requires_ready: bool = False


class CommandRouter:
    """Resolves names and aliases to commands and runs them.

    Domain errors that escape a handler are logged and rendered as
    ``[name] message`` so the interactive loop keeps running.
    """

    def __init__(
        self,
        config: ConfigurationBundle,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.config = config
        self.metadata = metadata if metadata is not None else {}
        self._commands: Dict[str, SlashCommand] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, command: SlashCommand) -> None:
        name = command.name.lower()
        self._commands[name] = command
        for alias in command.aliases:
            self._aliases[alias.lower()] = name

    def get(self, command_name: str) -> Optional[SlashCommand]:
        key = command_name.lower()
        return self._commands.get(self._aliases.get(key, key))

    def handle(self, command_name: str, args: List[str]) -> str:
        command = self.get(command_name)
        if command is None:
            return f"[router] Unknown command '/{command_name}'. Try /help."

        if command.requires_ready and self.config.status != "ready":
            return (
                f"[router] '/{command.name}' requires a ready configuration "
                f"(current status: {self.config.status}). Run /config validate."
            )

        context = SlashCommandContext(config=self.config, router=self, metadata=self.metadata)
        try:
            return command.handler(context, args)
        except (WordbookSyncError, WordStoreError) as e:
            logger.exception("/%s failed", command.name)
            return f"[{command.name}] {e}"

    @property
    def command_names(self) -> Sequence[str]:
        return sorted(self._commands)

    @property
    def completion_names(self) -> Sequence[str]:
        """Command names plus aliases, for tab completion."""
        return sorted(set(self._commands) | set(self._aliases))

    def commands(self) -> Sequence[SlashCommand]:
        return [self._commands[name] for name in self.command_names]


def render_help_table(commands: Sequence[SlashCommand]) -> str:
    def _render(console: Console) -> None:
        table = Table(title="Slash Commands", show_header=True, header_style="bold cyan")
        table.add_column("Command", style="green", no_wrap=True)
        table.add_column("Description")
        for cmd in commands:
            label = f"/{cmd.name}"
            if cmd.aliases:
                label += " (" + ", ".join(f"/{a}" for a in cmd.aliases) + ")"
            table.add_row(label, cmd.description)
        console.print(table)
        console.print("[dim]Use /help COMMAND for usage details.[/dim]")

    return render_rich(_render)


def render_command_usage(command: SlashCommand) -> str:
    def _render(console: Console) -> None:
        console.print(f"[bold green]/{command.name}[/bold green]  {command.description}")
        if command.aliases:
            console.print("Aliases: " + ", ".join(f"/{a}" for a in command.aliases))
        if command.usage:
            console.print()
            console.print(command.usage, markup=False, highlight=False)

    return render_rich(_render)


def render_rich(render_fn: Callable[[Console], None]) -> str:
    """Run ``render_fn`` against an off-screen console and return the ANSI text."""

    columns, lines = shutil.get_terminal_size(fallback=(80, 24))
    console = Console(
        record=True,
        force_terminal=True,
        color_system="auto",
        # Rich misbehaves at tiny widths
        width=max(20, columns),
        height=max(10, lines),
        file=StringIO(),
    )
    render_fn(console)
    return console.export_text(clear=False, styles=True)


def parse_flags(args: List[str], value_flags: Sequence[str]) -> ParsedFlags:
    """Split ``--flag value`` pairs from positional args.

    Flags listed in ``value_flags`` consume the next argument; any other
    ``--name`` is recorded as a boolean switch with an empty value list.
    """
    flags: Dict[str, List[str]] = {}
    positional: List[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in value_flags and i + 1 < len(args):
            flags.setdefault(arg, []).append(args[i + 1])
            i += 2
        elif arg.startswith("--"):
            flags.setdefault(arg, [])
            i += 1
        else:
            positional.append(arg)
            i += 1
    return flags, positional


def last_flag(flags: Dict[str, List[str]], *names: str, default: Optional[str] = None) -> Optional[str]:
    """Last value given for any of ``names``, or ``default``."""
    for name in names:
        values = flags.get(name)
        if values:
            return values[-1]
    return default


__all__ = [
    "CommandRouter",
    "SlashCommand",
    "SlashCommandContext",
    "last_flag",
    "parse_flags",
    "render_command_usage",
    "render_help_table",
    "render_rich",
]
