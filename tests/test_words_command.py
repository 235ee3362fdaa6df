"""Tests for /words, /export and /import."""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path

from conftest import make_entry
from wordbook.commands.export import COMMAND as EXPORT_COMMAND
from wordbook.commands.imports import COMMAND as IMPORT_COMMAND
from wordbook.commands.words import COMMAND as WORDS_COMMAND
from wordbook.configuration import load_runtime_configuration
from wordbook.services import word_store_for
from wordbook.slash_commands import CommandRouter, SlashCommandContext

JAN_1 = int(datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp() * 1000)
FEB_1 = int(datetime(2024, 2, 1, tzinfo=timezone.utc).timestamp() * 1000)


def _context(home_dir: Path) -> SlashCommandContext:
    bundle = load_runtime_configuration(home_dir)
    router = CommandRouter(bundle, metadata={})
    return SlashCommandContext(config=bundle, router=router, metadata=router.metadata)


def test_words_add_list_delete(home_dir: Path):
    context = _context(home_dir)

    added = WORDS_COMMAND.handler(context, ["add", "good", "morning", "|", "bonjour", "--tag", "greet"])
    listing = WORDS_COMMAND.handler(context, ["list", "--tag", "greet"])
    entry = word_store_for(context.config).fetch_all()[0]
    deleted = WORDS_COMMAND.handler(context, ["delete", entry.id[:8]])

    assert "Saved 'good morning'" in added
    assert entry.translation == "bonjour"
    assert entry.tags == ["greet"]
    assert "good" in listing
    assert "Deleted" in deleted
    assert word_store_for(context.config).fetch_all() == []


def test_words_add_requires_text(home_dir: Path):
    assert "Usage" in WORDS_COMMAND.handler(_context(home_dir), ["add"])


def test_words_list_empty(home_dir: Path):
    assert "empty" in WORDS_COMMAND.handler(_context(home_dir), [])


def test_export_default_location_and_filters(home_dir: Path):
    context = _context(home_dir)
    store = word_store_for(context.config)
    store.save(make_entry("old", JAN_1 - 1))
    store.save(make_entry("jan", JAN_1 + 1000, tags=["x"]))
    store.save(make_entry("feb", FEB_1, tags=["y"]))

    output = EXPORT_COMMAND.handler(context, ["--from", "2024-01-01", "--to", "2024-01-31"])

    exported = list((home_dir / "exports").glob("translator-wordbook-*.json"))
    assert len(exported) == 1
    assert str(exported[0]) in output
    payload = json.loads(exported[0].read_text(encoding="utf-8"))
    assert payload["version"] == 1
    assert payload["metadata"]["deviceId"].startswith("device_")
    assert [e["id"] for e in payload["entries"]] == ["jan"]


def test_export_csv_to_explicit_path(home_dir: Path, tmp_path: Path):
    context = _context(home_dir)
    word_store_for(context.config).save(make_entry("a", 1, tags=["x"]))
    target = tmp_path / "out.csv"

    EXPORT_COMMAND.handler(context, ["--csv", "-o", str(target)])

    rows = list(csv.reader(target.read_text(encoding="utf-8").splitlines()))
    assert rows[0][0] == "id"
    assert rows[1][0] == "a"


def test_export_rejects_bad_date(home_dir: Path):
    context = _context(home_dir)
    word_store_for(context.config).save(make_entry("a", 1))

    assert "Invalid date" in EXPORT_COMMAND.handler(context, ["--from", "last tuesday"])


def test_export_empty_book(home_dir: Path):
    assert "empty" in EXPORT_COMMAND.handler(_context(home_dir), [])


def test_import_merges_and_reports_skipped(home_dir: Path, tmp_path: Path):
    context = _context(home_dir)
    store = word_store_for(context.config)
    store.save(make_entry("same", 10))
    store.save(make_entry("stale", 10, translation="old"))
    source = tmp_path / "import.json"
    source.write_text(json.dumps({
        "version": 1,
        "metadata": {"exportedAt": 1, "deviceId": "d", "entryCount": 4},
        "entries": [
            make_entry("same", 10).to_dict(),
            make_entry("stale", 20, translation="new").to_dict(),
            make_entry("fresh", 30).to_dict(),
            {"id": "bad", "translation": "no text"},
        ],
    }), encoding="utf-8")

    output = IMPORT_COMMAND.handler(context, [str(source)])

    assert "Imported 1 new entries" in output
    assert "Updated with newer versions: 1" in output
    assert "Already present: 1" in output
    assert "Entry 3: missing or invalid 'text'" in output
    entries = {e.id: e for e in store.fetch_all()}
    assert set(entries) == {"same", "stale", "fresh"}
    assert entries["stale"].translation == "new"


def test_import_rejects_newer_version(home_dir: Path, tmp_path: Path):
    source = tmp_path / "future.json"
    source.write_text(json.dumps({"version": 9, "entries": []}), encoding="utf-8")

    output = IMPORT_COMMAND.handler(_context(home_dir), [str(source)])

    assert "Import failed" in output
    assert "version 9" in output


def test_import_missing_file(home_dir: Path):
    assert "Failed to read" in IMPORT_COMMAND.handler(_context(home_dir), ["nope.json"])


def test_csv_export_imports_back(home_dir: Path, tmp_path: Path):
    context = _context(home_dir)
    word_store_for(context.config).save(make_entry("a", 5, text="chat, noir", tags=["pets"]))
    target = tmp_path / "words.csv"
    EXPORT_COMMAND.handler(context, ["--csv", "-o", str(target)])
    word_store_for(context.config).delete("a")

    output = IMPORT_COMMAND.handler(context, [str(target)])

    assert "Imported 1 new entries from words.csv" in output
    assert word_store_for(context.config).fetch_all() == [make_entry("a", 5, text="chat, noir", tags=["pets"])]
