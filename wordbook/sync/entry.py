"""Vocabulary entry model."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SOURCE_WEBPAGE = "webpage"
SOURCE_VIDEO = "video"
SOURCE_SCREENSHOT = "screenshot"
WELL_KNOWN_SOURCES = (SOURCE_WEBPAGE, SOURCE_VIDEO, SOURCE_SCREENSHOT)


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


def generate_entry_id() -> str:
    return str(uuid.uuid4())


def normalize_source(value: Any) -> str:
    """Keep any non-blank string tag; fall back to ``webpage`` otherwise."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return SOURCE_WEBPAGE


@dataclass(frozen=True)
class Entry:
    """One word-book item. ``id`` is the merge key."""

    id: str
    text: str
    translation: str
    created_at: int  # epoch milliseconds
    source: str = SOURCE_WEBPAGE
    source_url: Optional[str] = None
    sentence: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "translation": self.translation,
            "source": self.source,
        }
        if self.source_url is not None:
            result["sourceURL"] = self.source_url
        if self.sentence is not None:
            result["sentence"] = self.sentence
        result["tags"] = list(self.tags)
        result["createdAt"] = self.created_at
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        """Build from a trusted wire dict. Untrusted input goes through the codec."""
        return cls(
            id=data["id"],
            text=data["text"],
            translation=data["translation"],
            created_at=data["createdAt"],
            source=data.get("source", SOURCE_WEBPAGE),
            source_url=data.get("sourceURL"),
            sentence=data.get("sentence"),
            tags=list(data.get("tags", [])),
        )

    @classmethod
    def create(
        cls,
        text: str,
        translation: str,
        *,
        source: str = SOURCE_WEBPAGE,
        source_url: Optional[str] = None,
        sentence: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> "Entry":
        """Create a brand-new entry with a fresh id and timestamp."""
        text = text.strip()
        if not text:
            raise ValueError("Entry text cannot be empty")
        return cls(
            id=generate_entry_id(),
            text=text,
            translation=translation,
            created_at=now_ms(),
            source=normalize_source(source),
            source_url=source_url,
            sentence=sentence,
            tags=list(tags or []),
        )


__all__ = [
    "Entry",
    "SOURCE_WEBPAGE",
    "SOURCE_VIDEO",
    "SOURCE_SCREENSHOT",
    "WELL_KNOWN_SOURCES",
    "generate_entry_id",
    "normalize_source",
    "now_ms",
]
