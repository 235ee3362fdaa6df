"""Slash command for exporting the word book to a file."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from ..services import word_store_for
from ..slash_commands import SlashCommand, SlashCommandContext, last_flag, parse_flags
from ..store import WordStoreError
from ..sync import ExportOptions, encode, encode_csv, export_filename
from ..sync.envelope import load_device_id


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    """Export the word book as JSON (default) or CSV."""

    flags, positional = parse_flags(args, ("--from", "--to", "--tag", "-o", "--output"))
    export_config = context.config.section("export")
    home_dir = context.config.home_dir

    try:
        date_from = _parse_date(last_flag(flags, "--from"), end_of_day=False)
        date_to = _parse_date(last_flag(flags, "--to"), end_of_day=True)
    except ValueError as e:
        return f"[export] {e}"

    options = ExportOptions(
        include_metadata="--no-metadata" not in flags,
        pretty_print=bool(export_config.get("pretty_print", True)),
        date_from=date_from,
        date_to=date_to,
        tags=flags.get("--tag") or None,
    )
    as_csv = "--csv" in flags

    try:
        entries = word_store_for(context.config).fetch_all()
    except WordStoreError as e:
        return f"[export] {e}"

    if not entries:
        return "[export] Word book is empty. Nothing to export."

    raw_output = last_flag(flags, "-o", "--output", default=positional[-1] if positional else None)
    if raw_output:
        output_path = Path(raw_output).expanduser()
        if not output_path.is_absolute():
            output_path = home_dir / output_path
    else:
        exports_dir = context.config.resolve_path(export_config.get("directory", "exports"))
        filename = export_filename(
            product=export_config.get("product", "translator"),
            extension="csv" if as_csv else "json",
        )
        output_path = exports_dir / filename

    if as_csv:
        payload = encode_csv(entries, options)
    else:
        device_path = context.config.resolve_path(
            context.config.section("sync").get("device_id_path", "state/device_id")
        )
        payload = encode(entries, options, device_id=load_device_id(device_path))

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(payload)
    except OSError as e:
        return f"[export] Failed to write file: {e}"

    return f"[export] Word book exported to: {output_path}"


def _parse_date(raw: Optional[str], end_of_day: bool) -> Optional[int]:
    """ISO date or datetime (UTC unless an offset is given) -> epoch ms."""
    if raw is None:
        return None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"Invalid date '{raw}'; use YYYY-MM-DD or an ISO 8601 timestamp.")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    if end_of_day and len(raw) == 10:
        parsed = parsed + timedelta(days=1) - timedelta(milliseconds=1)
    return int(parsed.timestamp() * 1000)


COMMAND = SlashCommand(
    name="export",
    description="Export the word book to a JSON or CSV file.",
    handler=_handler,
    usage=(
        "/export [--csv] [--from DATE] [--to DATE] [--tag T]... [--no-metadata] [-o PATH]\n"
        "DATE is YYYY-MM-DD or ISO 8601; both ends are inclusive."
    ),
)
