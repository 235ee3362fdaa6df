"""Tests for the /sync command using the file provider."""

from __future__ import annotations

from pathlib import Path

from conftest import make_entry
from wordbook.commands.sync import CLIENT_KEY, COMMAND
from wordbook.configuration import load_runtime_configuration
from wordbook.services import word_store_for
from wordbook.slash_commands import CommandRouter, SlashCommandContext
from wordbook.sync.client import SyncClient
from wordbook.sync.codec import decode
from wordbook.sync.store import StoreCredentials


def _context(home_dir: Path, overrides: str = "") -> SlashCommandContext:
    if overrides:
        (home_dir / "config" / "50-sync.yml").write_text(overrides, encoding="utf-8")
    bundle = load_runtime_configuration(home_dir)
    router = CommandRouter(bundle, metadata={})
    return SlashCommandContext(config=bundle, router=router, metadata=router.metadata)


def test_run_refuses_when_disabled(home_dir: Path):
    context = _context(home_dir)

    output = COMMAND.handler(context, ["run"])

    assert "disabled" in output


def test_run_with_file_provider_pushes_and_persists(home_dir: Path):
    context = _context(home_dir, "sync:\n  enabled: true\n  provider: file\n")
    store = word_store_for(context.config)
    store.save(make_entry("a", 2))
    remote_path = home_dir / "state" / "remote-wordbook.json"

    output = COMMAND.handler(context, ["run"])

    assert "Sync completed" in output
    assert "Pushed to remote: 1" in output
    assert [e.id for e in decode(remote_path.read_bytes()).entries] == ["a"]
    assert isinstance(context.metadata[CLIENT_KEY], SyncClient)


def test_run_pulls_remote_entries_into_word_book(home_dir: Path, tmp_path: Path):
    shared = tmp_path / "shared.json"
    context = _context(home_dir, "sync:\n  enabled: true\n  provider: file\n")
    COMMAND.handler(context, ["connect", "--path", str(shared)])
    other = SyncClient.from_home(tmp_path / "other", context.metadata[CLIENT_KEY].settings)
    other.store.configure(StoreCredentials(path=str(shared)))
    other.sync([make_entry("remote", 5)])

    output = COMMAND.handler(context, ["run"])

    assert "Added from remote: 1" in output
    assert [e.id for e in word_store_for(context.config).fetch_all()] == ["remote"]


def test_diff_previews_without_pushing(home_dir: Path):
    context = _context(home_dir, "sync:\n  enabled: true\n  provider: file\n")
    word_store_for(context.config).save(make_entry("a", 1, text="apple"))

    output = COMMAND.handler(context, ["diff"])

    assert "To Push" in output
    assert "apple" in output
    assert not (home_dir / "state" / "remote-wordbook.json").exists()


def test_status_renders_table(home_dir: Path):
    context = _context(home_dir, "sync:\n  provider: file\n")

    output = COMMAND.handler(context, ["status"])

    assert "Word Book Sync Status" in output
    assert "file" in output


def test_gist_status_before_connect(home_dir: Path):
    context = _context(home_dir)

    output = COMMAND.handler(context, [])

    assert "gist" in output
    assert "(none yet)" in output


def test_unknown_provider_blocks_sync_until_fixed(home_dir: Path):
    context = _context(home_dir, "sync:\n  provider: dropbox\n")
    context.router.register(COMMAND)

    output = context.router.handle("sync", ["status"])

    assert context.config.status == "invalid"
    assert "requires a ready configuration" in output


def test_connect_gist_without_token_fails(home_dir: Path):
    context = _context(home_dir)

    output = COMMAND.handler(context, ["connect"])

    assert "GitHub token is required" in output


def test_unknown_subcommand(home_dir: Path):
    assert "Unknown subcommand" in COMMAND.handler(_context(home_dir), ["bogus"])
