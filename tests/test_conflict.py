"""Tests for newest-wins conflict resolution."""

from __future__ import annotations

from conftest import make_entry
from wordbook.sync.conflict import ConflictResolver


def test_newest_wins_picks_larger_timestamp():
    resolver = ConflictResolver()
    local = make_entry("a", 100)
    remote = make_entry("a", 200)

    assert resolver.resolve(local, remote).winner is remote
    assert resolver.resolve(remote, local).winner is remote


def test_local_wins_only_when_strictly_newer():
    resolver = ConflictResolver()

    assert resolver.resolve(make_entry("a", 300), make_entry("a", 200)).resolution == "local"
    assert resolver.resolve(make_entry("a", 200), make_entry("a", 300)).resolution == "remote"


def test_conflict_to_dict():
    conflict = ConflictResolver().resolve(make_entry("a", 1, text="apple"), make_entry("a", 2))

    data = conflict.to_dict()

    assert data["word"] == "apple"
    assert data["resolution"] == "remote"
    assert data["localVersion"]["createdAt"] == 1
    assert data["remoteVersion"]["createdAt"] == 2
