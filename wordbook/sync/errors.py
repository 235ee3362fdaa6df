"""Error taxonomy for word-book synchronization."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional


class ImportFailure(str, Enum):
    """Reasons a whole decode can fail."""
    MALFORMED = "malformed"
    UNSUPPORTED_VERSION = "unsupported_version"
    ALL_INVALID = "all_invalid"


class WordbookSyncError(RuntimeError):
    """Base class for sync errors."""


class ConfigError(WordbookSyncError):
    """Missing or invalid credentials or provider settings."""


class StoreError(WordbookSyncError):
    """A remote backend call failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class EntryImportError(WordbookSyncError):
    """Raised by ImportResult.raise_for_failure()."""

    def __init__(self, failure: ImportFailure, message: str, reasons: Optional[List[str]] = None):
        super().__init__(message)
        self.failure = failure
        self.reasons = list(reasons or [])


class MergeError(WordbookSyncError):
    """Reserved. merge_entries is total over well-formed entries."""


__all__ = [
    "ImportFailure",
    "WordbookSyncError",
    "ConfigError",
    "StoreError",
    "EntryImportError",
    "MergeError",
]
