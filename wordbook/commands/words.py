"""Slash command for browsing and editing the local word book."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from ..services import word_store_for
from ..slash_commands import SlashCommand, SlashCommandContext, last_flag, parse_flags, render_rich
from ..store import JsonWordStore, WordStoreError
from ..sync import SOURCE_WEBPAGE, Entry

DEFAULT_LIMIT = 20


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    store = word_store_for(context.config)
    subcommand = args[0].lower() if args else "list"

    try:
        if subcommand == "list":
            return _list(store, args[1:])
        elif subcommand == "add":
            return _add(store, args[1:])
        elif subcommand in ("delete", "rm"):
            return _delete(store, args[1:])
        else:
            return f"[words] Unknown subcommand '{subcommand}'. Usage: /words [list|add|delete]"
    except WordStoreError as e:
        return f"[words] {e}"


def _list(store: JsonWordStore, args: List[str]) -> str:
    flags, _ = parse_flags(args, ("--tag", "--limit"))
    entries = store.fetch_all()
    tags = set(flags.get("--tag", []))
    if tags:
        entries = [e for e in entries if tags.intersection(e.tags)]

    try:
        limit = int(last_flag(flags, "--limit", default=str(DEFAULT_LIMIT)))
    except ValueError:
        return "[words] --limit must be an integer."

    if not entries:
        return "[words] Word book is empty."

    def _render(console: Console) -> None:
        table = Table(title=f"Word Book ({len(entries)} entries)", show_header=True)
        table.add_column("ID", style="dim", max_width=10)
        table.add_column("Text", style="cyan")
        table.add_column("Translation")
        table.add_column("Source")
        table.add_column("Tags")
        table.add_column("Added", no_wrap=True)
        for entry in entries[:limit]:
            table.add_row(
                entry.id[:8],
                entry.text,
                entry.translation,
                entry.source,
                ", ".join(entry.tags),
                _format_ms(entry.created_at),
            )
        if len(entries) > limit:
            console.print(f"(showing first {limit} of {len(entries)} entries)")
        console.print(table)

    return render_rich(_render)


def _add(store: JsonWordStore, args: List[str]) -> str:
    flags, positional = parse_flags(args, ("--tag", "--source", "--url", "--sentence"))
    text, translation = _split_pair(positional)
    if not text:
        return "[words] Usage: /words add TEXT | TRANSLATION [--tag T] [--source S]"

    entry = Entry.create(
        text,
        translation or "",
        source=last_flag(flags, "--source", default=SOURCE_WEBPAGE),
        source_url=last_flag(flags, "--url"),
        sentence=last_flag(flags, "--sentence"),
        tags=flags.get("--tag", []),
    )
    store.save(entry)
    return f"[words] Saved '{entry.text}' ({entry.id[:8]})."


def _delete(store: JsonWordStore, args: List[str]) -> str:
    if not args:
        return "[words] Usage: /words delete ID"
    prefix = args[0]
    matches = [e for e in store.fetch_all() if e.id.startswith(prefix)]
    if not matches:
        return f"[words] No entry matches '{prefix}'."
    if len(matches) > 1:
        return f"[words] '{prefix}' is ambiguous ({len(matches)} matches)."
    store.delete(matches[0].id)
    return f"[words] Deleted '{matches[0].text}'."


def _split_pair(tokens: List[str]) -> tuple[str, Optional[str]]:
    """``a b | c d`` -> (``a b``, ``c d``); without ``|`` the first token is the text."""
    if "|" in tokens:
        idx = tokens.index("|")
        return " ".join(tokens[:idx]).strip(), " ".join(tokens[idx + 1:]).strip()
    if not tokens:
        return "", None
    return tokens[0], " ".join(tokens[1:])


def _format_ms(value: int) -> str:
    return datetime.fromtimestamp(value / 1000, timezone.utc).strftime("%Y-%m-%d %H:%M")


COMMAND = SlashCommand(
    name="words",
    description="List, add or delete word-book entries.",
    handler=_handler,
    usage=(
        "/words list [--tag T] [--limit N]\n"
        "/words add TEXT | TRANSLATION [--tag T] [--source S] [--url URL] [--sentence S]\n"
        "/words delete ID-PREFIX"
    ),
    aliases=("w",),
)
