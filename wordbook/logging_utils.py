"""Logging helpers for the word book."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Union

LOG_SUBPATH = Path("logs") / "wordbook.log"
STRUCTURED_LOG_SUBPATH = Path("logs") / "wordbook.jsonl"
MAX_BYTES = 5 * 1024 * 1024  # 5 MB per log segment
BACKUP_COUNT = 3
REPO_ROOT = Path(__file__).resolve().parent.parent
FALLBACK_ROOT = REPO_ROOT / ".wordbook_runtime"
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# GitHub classic/fine-grained tokens and bearer headers
_SECRET_PATTERNS = [
    re.compile(r"\b(gh[pousr]_)[A-Za-z0-9]{20,}\b"),
    re.compile(r"\b(github_pat_)[A-Za-z0-9_]{20,}\b"),
    re.compile(r"(Bearer\s+)\S+", re.IGNORECASE),
]


def redact(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(r"\1****", text)
    return text


class RedactingFilter(logging.Filter):
    """Masks access tokens before any handler formats the record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(
    home_dir: Path,
    level: Union[str, int] = logging.WARNING,
    structured: bool = True,
    console: bool = False,
) -> Path:
    """Configure the ``wordbook`` logger hierarchy.

    Args:
        home_dir: Word-book home; logs go under ``<home>/logs``.
        level: Logging level (string name or int constant).
        structured: Also write JSON lines next to the text log.
        console: Mirror records to stderr.

    Returns:
        Path to the text log file.
    """
    text_formatter = logging.Formatter(TEXT_FORMAT)
    log_path = _resolve_path(home_dir, LOG_SUBPATH)

    handlers: List[logging.Handler] = [_rotating(log_path, text_formatter)]
    if structured:
        json_path = _resolve_path(home_dir, STRUCTURED_LOG_SUBPATH)
        handlers.append(_rotating(json_path, JSONFormatter()))
    if console:
        stream = logging.StreamHandler()
        stream.setFormatter(text_formatter)
        handlers.append(stream)

    logger = logging.getLogger("wordbook")
    _reset_handlers(logger)
    logger.setLevel(_resolve_level(level))
    for handler in handlers:
        handler.addFilter(RedactingFilter())
        logger.addHandler(handler)
    logger.propagate = False
    return log_path


def _rotating(path: Path, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8")
    handler.setFormatter(formatter)
    return handler


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return int(level)


def _resolve_path(home_dir: Path, subpath: Path) -> Path:
    primary = home_dir / subpath
    try:
        primary.parent.mkdir(parents=True, exist_ok=True)
        return primary
    except PermissionError:
        fallback = FALLBACK_ROOT / subpath
        fallback.parent.mkdir(parents=True, exist_ok=True)
        print(
            f"[config] Unable to write logs under '{home_dir}'; "
            f"falling back to '{fallback.parent}'.",
            file=sys.stderr,
        )
        return fallback


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


__all__ = [
    "FALLBACK_ROOT",
    "JSONFormatter",
    "LOG_SUBPATH",
    "RedactingFilter",
    "STRUCTURED_LOG_SUBPATH",
    "redact",
    "setup_logging",
]
