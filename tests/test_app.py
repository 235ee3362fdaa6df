"""Tests for the interactive shell wiring."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from wordbook import app


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    logger = logging.getLogger("wordbook")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def test_bootstrap_registers_all_commands(home_dir: Path):
    router = app.bootstrap(home_dir)

    assert set(router.command_names) == {"config", "export", "help", "import", "sync", "words"}
    assert router.config.log_path == home_dir / "logs" / "wordbook.log"


def test_execute_command_routes_with_or_without_slash(home_dir: Path):
    router = app.bootstrap(home_dir)

    assert "/sync" in app.execute_command("/help", router)
    assert "Saved 'hola'" in app.execute_command('words add hola "hello there"', router)
    assert app.execute_command("   ", router) == ""
    assert "Could not parse" in app.execute_command('words add "unterminated', router)


def test_env_log_level_overrides_config(home_dir: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WORDBOOK_LOG_LEVEL", "debug")

    app.bootstrap(home_dir)

    assert logging.getLogger("wordbook").level == logging.DEBUG


def test_main_runs_single_command(home_dir: Path, monkeypatch: pytest.MonkeyPatch, capsys):
    monkeypatch.setenv("WORDBOOK_HOME", str(home_dir))

    app.main(["sync", "help"])

    assert "/sync connect" in capsys.readouterr().out


@pytest.mark.parametrize("raw, expected", [("yes", True), ("OFF", False), ("maybe", True)])
def test_parse_env_flag(raw, expected):
    assert app._parse_env_flag(raw) is expected


def test_help_for_single_command_shows_usage(home_dir: Path):
    router = app.bootstrap(home_dir)

    output = app.execute_command("? sync", router)

    assert "/sync run" in output
    assert "Aliases" not in output
