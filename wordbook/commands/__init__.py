"""Slash command registry."""

from __future__ import annotations

from .config import COMMAND as CONFIG_COMMAND
from .export import COMMAND as EXPORT_COMMAND
from .help import COMMAND as HELP_COMMAND
from .imports import COMMAND as IMPORT_COMMAND
from .sync import COMMAND as SYNC_COMMAND
from .words import COMMAND as WORDS_COMMAND

COMMANDS = [
    HELP_COMMAND,
    CONFIG_COMMAND,
    WORDS_COMMAND,
    SYNC_COMMAND,
    EXPORT_COMMAND,
    IMPORT_COMMAND,
]

__all__ = ["COMMANDS"]
