"""Encode entries to envelopes and decode untrusted import data."""

from __future__ import annotations

import csv
import io
import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Collection, Dict, List, Optional, Sequence, Union

from .entry import Entry, generate_entry_id, normalize_source, now_ms
from .envelope import SYNC_DATA_VERSION, EnvelopeMetadata, SyncEnvelope, create_envelope
from .errors import EntryImportError, ImportFailure

logger = logging.getLogger("wordbook.sync.codec")

CSV_COLUMNS = ("id", "text", "translation", "source", "sourceURL", "sentence", "tags", "createdAt")


@dataclass
class ExportOptions:
    """Filters and formatting applied by ``encode``."""

    include_metadata: bool = True
    pretty_print: bool = True
    date_from: Optional[int] = None  # inclusive, epoch ms
    date_to: Optional[int] = None  # inclusive, epoch ms
    tags: Optional[Collection[str]] = None


@dataclass
class ImportResult:
    """Outcome of ``decode``. Failures are values, not exceptions."""

    entries: List[Entry] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    failure: Optional[ImportFailure] = None
    message: str = ""
    metadata: Optional[EnvelopeMetadata] = None
    version: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.failure is None

    @property
    def imported(self) -> int:
        return len(self.entries)

    @property
    def skipped(self) -> int:
        return len(self.errors)

    def raise_for_failure(self) -> None:
        if self.failure is not None:
            raise EntryImportError(self.failure, self.message, self.errors)


def filter_entries(entries: Sequence[Entry], options: ExportOptions) -> List[Entry]:
    """Apply the date range and tag filters, preserving order."""
    tag_filter = set(options.tags) if options.tags else None
    result = []
    for entry in entries:
        if options.date_from is not None and entry.created_at < options.date_from:
            continue
        if options.date_to is not None and entry.created_at > options.date_to:
            continue
        if tag_filter is not None and not any(tag in tag_filter for tag in entry.tags):
            continue
        result.append(entry)
    return result


def encode(
    entries: Sequence[Entry],
    options: Optional[ExportOptions] = None,
    device_id: str = "",
) -> bytes:
    """Serialize entries as an envelope (or a bare array without metadata)."""
    options = options or ExportOptions()
    selected = filter_entries(entries, options)

    if options.include_metadata:
        payload: Any = create_envelope(selected, device_id).to_dict()
    else:
        payload = [entry.to_dict() for entry in selected]

    text = json.dumps(payload, indent=2 if options.pretty_print else None, ensure_ascii=False)
    return text.encode("utf-8")


def encode_envelope(envelope: SyncEnvelope) -> bytes:
    """Deterministic serialization used for remote pushes."""
    return json.dumps(envelope.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")


def encode_csv(entries: Sequence[Entry], options: Optional[ExportOptions] = None) -> bytes:
    """Spreadsheet-friendly export, read back by ``decode_csv``."""
    options = options or ExportOptions()
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for entry in filter_entries(entries, options):
        writer.writerow([
            entry.id,
            entry.text,
            entry.translation,
            entry.source,
            entry.source_url or "",
            entry.sentence or "",
            ";".join(entry.tags),
            entry.created_at,
        ])
    return buffer.getvalue().encode("utf-8")


def decode(raw: Union[bytes, str]) -> ImportResult:
    """Parse and validate an envelope or a bare array of entry objects."""
    try:
        parsed = json.loads(_text(raw))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        return ImportResult(failure=ImportFailure.MALFORMED, message=f"Invalid JSON: {e}")

    if isinstance(parsed, dict) and "version" in parsed:
        return _decode_envelope(parsed)

    if isinstance(parsed, list):
        return _validate_items(parsed)

    return ImportResult(
        failure=ImportFailure.MALFORMED,
        message="Invalid import format: expected an envelope or an entry array",
    )


def decode_csv(raw: Union[bytes, str]) -> ImportResult:
    """Parse a CSV export; each data row is validated like a JSON entry.

    Columns are looked up by header name. Without a ``text``/``translation``
    header the first two columns are used.
    """
    try:
        text = _text(raw)
    except UnicodeDecodeError as e:
        return ImportResult(failure=ImportFailure.MALFORMED, message=f"Invalid CSV encoding: {e}")

    try:
        rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    except csv.Error as e:
        return ImportResult(failure=ImportFailure.MALFORMED, message=f"Invalid CSV: {e}")
    if len(rows) < 2:
        return ImportResult(
            failure=ImportFailure.MALFORMED,
            message="CSV file is empty or has no data rows",
        )

    header = [cell.strip() for cell in rows[0]]
    columns = {name: header.index(name) for name in CSV_COLUMNS if name in header}
    columns.setdefault("text", 0)
    columns.setdefault("translation", 1)

    items: List[Any] = []
    for row in rows[1:]:
        if len(row) < 2:
            # a lone cell has no translation column to read
            items.append({"text": row[0], "translation": None})
        else:
            items.append(_csv_item(row, columns))
    return _validate_items(items)


def _text(raw: Union[bytes, str]) -> str:
    # utf-8-sig drops a leading BOM left by spreadsheet editors
    if isinstance(raw, bytes):
        return raw.decode("utf-8-sig")
    return raw[1:] if raw.startswith("\ufeff") else raw


def _csv_item(row: List[str], columns: Dict[str, int]) -> Dict[str, Any]:
    def cell(name: str) -> Optional[str]:
        index = columns.get(name)
        if index is None or index >= len(row):
            return None
        return row[index]

    item: Dict[str, Any] = {
        "text": cell("text") or "",
        "translation": cell("translation") or "",
    }
    for name in ("id", "source", "sourceURL", "sentence"):
        value = cell(name)
        if value:
            item[name] = value
    tags = cell("tags")
    item["tags"] = [t for t in tags.split(";") if t] if tags else []
    created_at = _csv_timestamp(cell("createdAt"))
    if created_at is not None:
        item["createdAt"] = created_at
    return item


def _csv_timestamp(value: Optional[str]) -> Optional[int]:
    """Epoch milliseconds or an ISO-8601 date; anything else is left unset."""
    if not value or not value.strip():
        return None
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def _decode_envelope(data: Dict[str, Any]) -> ImportResult:
    version = data.get("version")
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        return ImportResult(
            failure=ImportFailure.MALFORMED,
            message=f"Invalid envelope version: {version!r}",
        )
    if version > SYNC_DATA_VERSION:
        return ImportResult(
            failure=ImportFailure.UNSUPPORTED_VERSION,
            message=(
                f"Import data version {version} is newer than "
                f"supported version {SYNC_DATA_VERSION}"
            ),
            version=version,
        )

    if "entries" not in data and "words" not in data:
        return ImportResult(
            failure=ImportFailure.MALFORMED,
            message="Envelope has no entries",
            version=version,
        )
    items = data["entries"] if "entries" in data else data["words"]
    if not isinstance(items, list):
        return ImportResult(
            failure=ImportFailure.MALFORMED,
            message="Envelope entries must be a list",
            version=version,
        )

    result = _validate_items(items)
    result.version = version

    raw_meta = data.get("metadata")
    if isinstance(raw_meta, dict):
        try:
            result.metadata = EnvelopeMetadata.from_dict(raw_meta)
        except (TypeError, ValueError):
            logger.debug("Ignoring unreadable envelope metadata")
    return result


def _validate_items(items: List[Any]) -> ImportResult:
    result = ImportResult()

    for index, item in enumerate(items):
        entry, reason = _validate_item(item)
        if entry is None:
            result.errors.append(f"Entry {index}: {reason}")
        else:
            result.entries.append(entry)

    if result.errors and not result.entries:
        result.failure = ImportFailure.ALL_INVALID
        result.message = "All entries invalid:\n" + "\n".join(result.errors)
    elif result.errors:
        logger.warning("Skipped %d invalid entries during import", len(result.errors))

    return result


def _validate_item(item: Any):
    if not isinstance(item, dict):
        return None, "not an object"

    text = item.get("text")
    if not isinstance(text, str) or not text.strip():
        return None, "missing or invalid 'text'"

    translation = item.get("translation")
    if not isinstance(translation, str):
        return None, "missing or invalid 'translation'"

    entry_id = item.get("id")
    created_at = item.get("createdAt")
    if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
        created_at = now_ms()
    elif isinstance(created_at, float) and not math.isfinite(created_at):
        created_at = now_ms()
    tags = item.get("tags")
    source_url = item.get("sourceURL")
    sentence = item.get("sentence")

    entry = Entry(
        id=entry_id if isinstance(entry_id, str) and entry_id else generate_entry_id(),
        text=text.strip(),
        translation=translation,
        created_at=int(created_at),
        source=normalize_source(item.get("source")),
        source_url=source_url if isinstance(source_url, str) else None,
        sentence=sentence if isinstance(sentence, str) else None,
        tags=[t for t in tags if isinstance(t, str)] if isinstance(tags, list) else [],
    )
    return entry, ""


def export_filename(
    now: Optional[datetime] = None,
    product: str = "translator",
    extension: str = "json",
) -> str:
    """``<product>-wordbook-YYYY-MM-DDTHH-MM-SS.<extension>``"""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S")
    return f"{product}-wordbook-{stamp}.{extension}"


__all__ = [
    "ExportOptions",
    "ImportResult",
    "decode",
    "decode_csv",
    "encode",
    "encode_csv",
    "encode_envelope",
    "export_filename",
    "filter_entries",
]
