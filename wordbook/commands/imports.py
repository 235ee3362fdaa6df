"""Slash command for importing a word-book file."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..services import word_store_for
from ..slash_commands import SlashCommand, SlashCommandContext
from ..store import WordStoreError
from ..sync import merge_entries
from ..sync.codec import decode, decode_csv

MAX_REPORTED_ERRORS = 5


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    """Merge entries from an exported JSON or CSV file into the word book."""

    if not args:
        return "[import] Usage: /import PATH"

    path = Path(args[0]).expanduser()
    if not path.is_absolute():
        path = context.config.home_dir / path

    try:
        raw = path.read_bytes()
    except OSError as e:
        return f"[import] Failed to read {path}: {e}"

    result = decode_csv(raw) if path.suffix.lower() == ".csv" else decode(raw)
    if not result.success:
        return f"[import] Import failed: {result.message}"

    store = word_store_for(context.config)
    try:
        local_entries = store.fetch_all()
        merge = merge_entries(local_entries, result.entries)
        store.replace_all(merge.merged)
    except WordStoreError as e:
        return f"[import] {e}"

    replaced = sum(1 for c in merge.conflicts if c.resolution == "remote")
    unchanged = len({e.id for e in result.entries}) - len(merge.remote_only) - replaced

    lines = [
        f"[import] Imported {len(merge.remote_only)} new entries from {path.name}",
        f"  Updated with newer versions: {replaced}",
        f"  Already present: {unchanged}",
    ]
    if result.errors:
        lines.append(f"  Skipped invalid entries: {result.skipped}")
        for reason in result.errors[:MAX_REPORTED_ERRORS]:
            lines.append(f"    - {reason}")
        if len(result.errors) > MAX_REPORTED_ERRORS:
            lines.append(f"    ... and {len(result.errors) - MAX_REPORTED_ERRORS} more")
    return "\n".join(lines)


COMMAND = SlashCommand(
    name="import",
    description="Merge entries from an exported JSON or CSV file.",
    handler=_handler,
    usage="/import PATH   (.csv export, or JSON envelope / bare entry array; newer entries win)",
)
