"""Tests for the /config command."""

from __future__ import annotations

from pathlib import Path

import pytest

yaml = pytest.importorskip("yaml")

from wordbook.commands.config import COMMAND
from wordbook.configuration import load_runtime_configuration
from wordbook.slash_commands import CommandRouter, SlashCommandContext


def _build_context(home_dir: Path) -> SlashCommandContext:
    bundle = load_runtime_configuration(home_dir)
    router = CommandRouter(bundle, metadata={})
    return SlashCommandContext(config=bundle, router=router, metadata=router.metadata)


def test_config_set_updates_override_file_and_reload(home_dir: Path):
    context = _build_context(home_dir)
    context.metadata["sync_client"] = object()

    output = COMMAND.handler(context, ["sync.enabled", "true"])

    override = home_dir / "config" / "99-cli-overrides.yml"
    data = yaml.safe_load(override.read_text(encoding="utf-8"))
    assert data["sync"]["enabled"] is True
    assert context.router.config.section("sync")["enabled"] is True
    assert "sync_client" not in context.metadata
    assert "sync.enabled" in output


def test_config_get_returns_value(home_dir: Path):
    context = _build_context(home_dir)
    COMMAND.handler(context, ["logging.level", "DEBUG"])

    output = COMMAND.handler(context, ["logging.level"])

    assert 'logging.level = "DEBUG"' in output


def test_config_set_rejects_lists(home_dir: Path):
    context = _build_context(home_dir)

    output = COMMAND.handler(context, ["logging.level", "[DEBUG, TRACE]"])

    assert "only scalar values" in output


def test_config_validate_reports_diagnostics(home_dir: Path):
    context = _build_context(home_dir)
    (home_dir / "config" / "broken.yml").write_text("sync: [\n", encoding="utf-8")
    context.config = load_runtime_configuration(home_dir)

    output = COMMAND.handler(context, ["validate"])

    assert "Diagnostics" in output
    assert "ERROR" in output


def test_config_view_masks_token(home_dir: Path):
    (home_dir / "config" / "50-secret.yml").write_text("sync:\n  token: hunter2\n", encoding="utf-8")
    context = _build_context(home_dir)

    output = COMMAND.handler(context, [])

    assert "hunter2" not in output
    assert "Merged Configuration" in output


def test_config_set_rejects_values_the_schema_would_reset(home_dir: Path):
    context = _build_context(home_dir)

    bad_choice = COMMAND.handler(context, ["sync.provider", "dropbox"])
    unknown = COMMAND.handler(context, ["sync.color", "blue"])

    assert "must be one of" in bad_choice
    assert "unknown setting" in unknown
    assert not (home_dir / "config" / "99-cli-overrides.yml").exists()


def test_config_unset_restores_default(home_dir: Path):
    context = _build_context(home_dir)
    COMMAND.handler(context, ["sync.timeout", "90"])

    output = COMMAND.handler(context, ["unset", "sync.timeout"])

    assert "reset to 30" in output
    assert context.router.config.section("sync")["timeout"] == 30
