"""Tests for last-writer-wins merging."""

from __future__ import annotations

import logging

from conftest import make_entry
from wordbook.sync.merge import dedupe_by_id, merge_entries


def test_merge_with_self_is_identity():
    entries = [make_entry("a", 300), make_entry("b", 200), make_entry("c", 100)]

    result = merge_entries(entries, entries)

    assert result.merged == entries
    assert result.conflicts == []
    assert not result.has_changes
    assert result.summary() == "no changes"


def test_merge_unions_disjoint_sets_newest_first():
    local = [make_entry("a", 100), make_entry("b", 300)]
    remote = [make_entry("c", 200)]

    result = merge_entries(local, remote)

    assert [e.id for e in result.merged] == ["b", "c", "a"]
    assert result.local_only == ["a", "b"]
    assert result.remote_only == ["c"]


def test_newer_remote_replaces_local():
    local = [make_entry("a", 100, translation="old")]
    remote = [make_entry("a", 200, translation="new")]

    result = merge_entries(local, remote)

    assert [e.translation for e in result.merged] == ["new"]
    assert len(result.conflicts) == 1
    conflict = result.conflicts[0]
    assert conflict.resolution == "remote"
    assert conflict.local.created_at == 100
    assert conflict.remote.created_at == 200
    assert result.updated == ["a"]


def test_newer_local_is_kept():
    local = [make_entry("a", 500, translation="mine")]
    remote = [make_entry("a", 200, translation="theirs")]

    result = merge_entries(local, remote)

    assert result.merged[0].translation == "mine"
    assert result.conflicts[0].resolution == "local"


def test_equal_timestamps_keep_local_without_conflict():
    local = [make_entry("a", 100, translation="local")]
    remote = [make_entry("a", 100, translation="remote")]

    result = merge_entries(local, remote)

    assert result.merged[0].translation == "local"
    assert result.conflicts == []


def test_empty_sides():
    entries = [make_entry("a", 1)]

    assert merge_entries([], entries).merged == entries
    assert merge_entries(entries, []).merged == entries
    assert merge_entries([], []).merged == []


def test_merge_does_not_mutate_inputs():
    local = [make_entry("a", 100)]
    remote = [make_entry("b", 200)]

    merge_entries(local, remote)

    assert [e.id for e in local] == ["a"]
    assert [e.id for e in remote] == ["b"]


def test_equal_timestamps_keep_input_order():
    local = [make_entry("a", 100), make_entry("b", 100)]
    remote = [make_entry("c", 100)]

    result = merge_entries(local, remote)

    assert [e.id for e in result.merged] == ["a", "b", "c"]


def test_dedupe_keeps_last_occurrence(caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("wordbook"), "propagate", True)
    entries = [make_entry("a", 1, translation="first"), make_entry("a", 2, translation="second")]

    with caplog.at_level(logging.WARNING, logger="wordbook.sync.merge"):
        deduped = dedupe_by_id(entries, "local")

    assert [e.translation for e in deduped] == ["second"]
    assert "duplicate" in caplog.text


def test_duplicate_ids_merge_to_single_entry():
    local = [make_entry("a", 1), make_entry("a", 5)]
    remote = [make_entry("a", 3)]

    result = merge_entries(local, remote)

    assert len(result.merged) == 1
    assert result.merged[0].created_at == 5
