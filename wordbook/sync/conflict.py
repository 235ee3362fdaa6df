"""Conflict resolution for word-book synchronization."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Literal

from .entry import Entry

logger = logging.getLogger("wordbook.sync.conflict")

Resolution = Literal["local", "remote"]


@dataclass
class Conflict:
    """A same-id pair whose timestamps differ, and which side won."""

    text: str
    local: Entry
    remote: Entry
    resolution: Resolution

    @property
    def winner(self) -> Entry:
        return self.local if self.resolution == "local" else self.remote

    def to_dict(self) -> Dict[str, Any]:
        return {
            "word": self.text,
            "localVersion": self.local.to_dict(),
            "remoteVersion": self.remote.to_dict(),
            "resolution": self.resolution,
        }


class ConflictResolver:
    """Newest wins: the larger ``created_at`` is kept on every device."""

    def resolve(self, local: Entry, remote: Entry) -> Conflict:
        """Local wins only when strictly newer."""
        resolution: Resolution = "local" if local.created_at > remote.created_at else "remote"

        logger.debug(
            "Conflict on %s (%d vs %d): %s wins",
            local.id,
            local.created_at,
            remote.created_at,
            resolution,
        )
        return Conflict(text=local.text, local=local, remote=remote, resolution=resolution)


__all__ = ["Conflict", "ConflictResolver", "Resolution"]
