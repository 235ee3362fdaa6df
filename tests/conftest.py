"""Shared fixtures for word-book tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from wordbook import configuration
from wordbook.sync import Entry

REPO_CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


def make_entry(entry_id: str, created_at: int, text: str = "", **kwargs) -> Entry:
    return Entry(
        id=entry_id,
        text=text or f"word-{entry_id}",
        translation=kwargs.pop("translation", f"translation-{entry_id}"),
        created_at=created_at,
        **kwargs,
    )


@pytest.fixture
def home_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A word-book home backed by the repo defaults."""
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", REPO_CONFIG_DIR)
    home = tmp_path / "home"
    (home / "config").mkdir(parents=True)
    return home
