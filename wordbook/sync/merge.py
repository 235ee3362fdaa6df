"""Deterministic reconciliation of local and remote entry sets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .conflict import Conflict, ConflictResolver
from .entry import Entry

logger = logging.getLogger("wordbook.sync.merge")


@dataclass
class MergeResult:
    """Merged entries (newest first) plus the classification of each id."""

    merged: List[Entry] = field(default_factory=list)
    conflicts: List[Conflict] = field(default_factory=list)
    local_only: List[str] = field(default_factory=list)
    remote_only: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.local_only or self.remote_only or self.conflicts)

    def summary(self) -> str:
        parts = []
        if self.remote_only:
            parts.append(f"{len(self.remote_only)} from remote")
        if self.local_only:
            parts.append(f"{len(self.local_only)} local only")
        if self.conflicts:
            parts.append(f"{len(self.conflicts)} conflicts")
        return ", ".join(parts) if parts else "no changes"


def dedupe_by_id(entries: Sequence[Entry], side: str = "") -> List[Entry]:
    """Collapse duplicate ids; the last occurrence in input order wins."""
    by_id: Dict[str, Entry] = {}
    for entry in entries:
        by_id.pop(entry.id, None)
        by_id[entry.id] = entry
    if len(by_id) != len(entries):
        logger.warning(
            "Dropped %d duplicate %s entries (last occurrence kept)",
            len(entries) - len(by_id),
            side or "input",
        )
    return list(by_id.values())


def merge_entries(
    local: Sequence[Entry],
    remote: Sequence[Entry],
    resolver: Optional[ConflictResolver] = None,
) -> MergeResult:
    """Merge two entry sets keyed by id. Inputs are not modified."""
    resolver = resolver or ConflictResolver()
    local_entries = dedupe_by_id(local, "local")
    remote_entries = dedupe_by_id(remote, "remote")
    remote_by_id = {entry.id: entry for entry in remote_entries}

    result = MergeResult()
    seen = set()

    for local_entry in local_entries:
        seen.add(local_entry.id)
        remote_entry = remote_by_id.get(local_entry.id)

        if remote_entry is None:
            result.merged.append(local_entry)
            result.local_only.append(local_entry.id)
        elif local_entry.created_at == remote_entry.created_at:
            # Same timestamp means same item; keep local
            result.merged.append(local_entry)
        else:
            conflict = resolver.resolve(local_entry, remote_entry)
            result.merged.append(conflict.winner)
            result.conflicts.append(conflict)
            result.updated.append(local_entry.id)

    for remote_entry in remote_entries:
        if remote_entry.id not in seen:
            result.merged.append(remote_entry)
            result.remote_only.append(remote_entry.id)

    result.merged.sort(key=lambda entry: entry.created_at, reverse=True)

    logger.debug(
        "Merged %d local + %d remote -> %d (%s)",
        len(local_entries),
        len(remote_entries),
        len(result.merged),
        result.summary(),
    )
    return result


__all__ = ["MergeResult", "dedupe_by_id", "merge_entries"]
