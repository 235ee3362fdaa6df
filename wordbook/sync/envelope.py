"""Versioned transport envelope around a batch of entries."""

from __future__ import annotations

import logging
import random
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .entry import Entry, now_ms

logger = logging.getLogger("wordbook.sync.envelope")

SYNC_DATA_VERSION = 1
_BASE36 = string.digits + string.ascii_lowercase


@dataclass
class EnvelopeMetadata:
    """Informational metadata; ``entry_count`` is never trusted."""

    exported_at: int
    device_id: str
    entry_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exportedAt": self.exported_at,
            "deviceId": self.device_id,
            "entryCount": self.entry_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnvelopeMetadata":
        count = data.get("entryCount", data.get("wordCount", 0))
        return cls(
            exported_at=int(data.get("exportedAt", 0) or 0),
            device_id=str(data.get("deviceId", "")),
            entry_count=int(count or 0),
        )


@dataclass
class SyncEnvelope:
    """Wire/persistence wrapper for a set of entries."""

    metadata: EnvelopeMetadata
    version: int = SYNC_DATA_VERSION
    entries: List[Entry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "metadata": self.metadata.to_dict(),
            "entries": [entry.to_dict() for entry in self.entries],
        }


def create_envelope(entries: List[Entry], device_id: str) -> SyncEnvelope:
    """Stamp a fresh envelope around ``entries``."""
    return SyncEnvelope(
        metadata=EnvelopeMetadata(
            exported_at=now_ms(),
            device_id=device_id,
            entry_count=len(entries),
        ),
        entries=list(entries),
    )


def new_device_id() -> str:
    suffix = "".join(random.choice(_BASE36) for _ in range(6))
    return f"device_{now_ms()}_{suffix}"


def load_device_id(path: Path) -> str:
    """Return the persisted device id, creating one on first use."""
    if path.exists():
        existing = path.read_text(encoding="utf-8").strip()
        if existing:
            return existing

    device_id = new_device_id()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(device_id + "\n", encoding="utf-8")
        logger.info("Generated device id %s", device_id)
    except OSError as e:
        logger.warning("Could not persist device id to %s: %s", path, e)
    return device_id


__all__ = [
    "SYNC_DATA_VERSION",
    "EnvelopeMetadata",
    "SyncEnvelope",
    "create_envelope",
    "load_device_id",
    "new_device_id",
]
