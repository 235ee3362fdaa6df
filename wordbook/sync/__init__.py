"""Word-book synchronization: entries, codec, merge, remote stores."""

from __future__ import annotations

from .entry import Entry, SOURCE_SCREENSHOT, SOURCE_VIDEO, SOURCE_WEBPAGE, generate_entry_id, now_ms
from .envelope import SYNC_DATA_VERSION, EnvelopeMetadata, SyncEnvelope, create_envelope, load_device_id
from .codec import (
    ExportOptions,
    ImportResult,
    decode,
    decode_csv,
    encode,
    encode_csv,
    export_filename,
    filter_entries,
)
from .conflict import Conflict, ConflictResolver
from .merge import MergeResult, merge_entries
from .errors import (
    ConfigError,
    EntryImportError,
    ImportFailure,
    MergeError,
    StoreError,
    WordbookSyncError,
)
from .store import CredentialFile, FileStore, RemoteStore, StoreCredentials
from .gist import GistStore
from .client import SyncClient, SyncResult, SyncSettings, build_store

__all__ = [
    # Entry model
    "Entry",
    "SOURCE_WEBPAGE",
    "SOURCE_VIDEO",
    "SOURCE_SCREENSHOT",
    "generate_entry_id",
    "now_ms",
    # Envelope / codec
    "SYNC_DATA_VERSION",
    "EnvelopeMetadata",
    "SyncEnvelope",
    "create_envelope",
    "load_device_id",
    "ExportOptions",
    "ImportResult",
    "decode",
    "decode_csv",
    "encode",
    "encode_csv",
    "export_filename",
    "filter_entries",
    # Merge
    "Conflict",
    "ConflictResolver",
    "MergeResult",
    "merge_entries",
    # Errors
    "ConfigError",
    "EntryImportError",
    "ImportFailure",
    "MergeError",
    "StoreError",
    "WordbookSyncError",
    # Stores
    "CredentialFile",
    "FileStore",
    "GistStore",
    "RemoteStore",
    "StoreCredentials",
    # Client
    "SyncClient",
    "SyncResult",
    "SyncSettings",
    "build_store",
]
