"""Tests for the entry model."""

from __future__ import annotations

import pytest

from wordbook.sync.entry import Entry, normalize_source


def test_to_dict_uses_wire_keys_and_omits_missing_optionals():
    entry = Entry(id="a", text="apple", translation="pomme", created_at=100)

    data = entry.to_dict()

    assert data == {
        "id": "a",
        "text": "apple",
        "translation": "pomme",
        "source": "webpage",
        "tags": [],
        "createdAt": 100,
    }


def test_from_dict_reads_optional_fields():
    entry = Entry.from_dict({
        "id": "a",
        "text": "apple",
        "translation": "pomme",
        "createdAt": 100,
        "source": "video",
        "sourceURL": "https://example.com",
        "sentence": "An apple a day.",
        "tags": ["fruit"],
    })

    assert entry.source == "video"
    assert entry.source_url == "https://example.com"
    assert entry.sentence == "An apple a day."
    assert entry.tags == ["fruit"]


def test_create_strips_text_and_assigns_id():
    first = Entry.create("  apple ", "pomme", tags=["fruit"])
    second = Entry.create("apple", "pomme")

    assert first.text == "apple"
    assert first.id != second.id
    assert first.created_at > 0
    assert first.tags == ["fruit"]


def test_create_rejects_blank_text():
    with pytest.raises(ValueError):
        Entry.create("   ", "nothing")


def test_normalize_source_keeps_unknown_tags():
    assert normalize_source("podcast") == "podcast"
    assert normalize_source("") == "webpage"
    assert normalize_source(None) == "webpage"
