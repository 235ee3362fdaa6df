"""JSON-file word store for the local word book."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .fileio import atomic_write
from .sync.entry import Entry

logger = logging.getLogger("wordbook.store")


class WordStoreError(RuntimeError):
    """Raised when the word store file cannot be read or written."""


class JsonWordStore:
    """Entries kept as a JSON array, newest first."""

    def __init__(self, path: Path):
        self.path = path

    def fetch_all(self) -> List[Entry]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise WordStoreError(f"Failed to read word store {self.path}: {e}") from e
        if not isinstance(data, list):
            raise WordStoreError(f"Word store {self.path} must contain a JSON array")
        try:
            return [Entry.from_dict(item) for item in data]
        except (KeyError, TypeError) as e:
            raise WordStoreError(f"Corrupt entry in {self.path}: {e}") from e

    def get(self, entry_id: str) -> Optional[Entry]:
        for entry in self.fetch_all():
            if entry.id == entry_id:
                return entry
        return None

    def save(self, entry: Entry) -> None:
        """Insert or replace by id."""
        entries = [e for e in self.fetch_all() if e.id != entry.id]
        entries.append(entry)
        self._write(entries)

    def delete(self, entry_id: str) -> bool:
        entries = self.fetch_all()
        remaining = [e for e in entries if e.id != entry_id]
        if len(remaining) == len(entries):
            return False
        self._write(remaining)
        return True

    def replace_all(self, entries: Sequence[Entry]) -> Dict[str, int]:
        """Make the store hold exactly ``entries``; returns saved/deleted counts."""
        current = {e.id: e for e in self.fetch_all()}
        incoming_ids = {e.id for e in entries}
        saved = sum(1 for e in entries if current.get(e.id) != e)
        deleted = sum(1 for entry_id in current if entry_id not in incoming_ids)
        self._write(list(entries))
        return {"saved": saved, "deleted": deleted}

    def _write(self, entries: List[Entry]) -> None:
        ordered = sorted(entries, key=lambda e: e.created_at, reverse=True)
        payload = json.dumps([e.to_dict() for e in ordered], indent=2, ensure_ascii=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(self.path, payload.encode("utf-8"))
        except OSError as e:
            raise WordStoreError(f"Failed to write word store {self.path}: {e}") from e
        logger.debug("Saved %d entries to %s", len(ordered), self.path)


__all__ = ["JsonWordStore", "WordStoreError"]
