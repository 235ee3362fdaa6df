"""Sync client: pull, merge, push."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from .conflict import Conflict, ConflictResolver
from .entry import Entry
from .envelope import create_envelope, load_device_id
from .errors import ConfigError
from .gist import DEFAULT_API_URL, DEFAULT_GIST_FILENAME, GistStore
from .merge import merge_entries
from .store import CredentialFile, FileStore, RemoteStore

logger = logging.getLogger("wordbook.sync.client")

NOT_CONFIGURED = "not configured"
ALREADY_RUNNING = "sync already in progress"


@dataclass
class SyncSettings:
    """Settings for sync operations."""

    enabled: bool = False
    provider: str = "gist"  # gist, file
    api_url: str = DEFAULT_API_URL
    gist_filename: str = DEFAULT_GIST_FILENAME
    private: bool = True
    file_path: str = "state/remote-wordbook.json"
    timeout: float = 30
    credentials_path: str = "state/sync_credentials.json"
    device_id_path: str = "state/device_id"

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SyncSettings":
        raw = config.get("sync", {}) if config else {}
        return cls(
            enabled=bool(raw.get("enabled", False)),
            provider=str(raw.get("provider", "gist")),
            api_url=str(raw.get("api_url", DEFAULT_API_URL)),
            gist_filename=str(raw.get("gist_filename", DEFAULT_GIST_FILENAME)),
            private=bool(raw.get("private", True)),
            file_path=str(raw.get("file_path", "state/remote-wordbook.json")),
            timeout=float(raw.get("timeout", 30)),
            credentials_path=str(raw.get("credentials_path", "state/sync_credentials.json")),
            device_id_path=str(raw.get("device_id_path", "state/device_id")),
        )


@dataclass
class SyncResult:
    """Result of a sync operation. ``merged`` is for the caller to persist."""

    success: bool
    added: int = 0
    updated: int = 0
    pushed: int = 0
    conflicts: List[Conflict] = field(default_factory=list)
    merged: List[Entry] = field(default_factory=list)
    remote_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": self.success,
            "added": self.added,
            "updated": self.updated,
            "pushed": self.pushed,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }
        if self.remote_id:
            result["remoteId"] = self.remote_id
        if self.error:
            result["error"] = self.error
        return result


def build_store(settings: SyncSettings, home: Path) -> RemoteStore:
    """Instantiate the remote store named by ``settings.provider``."""
    credential_file = CredentialFile(home / settings.credentials_path)
    provider = settings.provider.lower()

    if provider == "gist":
        return GistStore(
            credential_file,
            api_url=settings.api_url,
            filename=settings.gist_filename,
            timeout=settings.timeout,
        )
    if provider in ("file", "local"):
        default_path = Path(settings.file_path).expanduser()
        if not default_path.is_absolute():
            default_path = home / default_path
        return FileStore(credential_file, default_path=default_path)

    raise ConfigError(f"Unknown sync provider '{settings.provider}'")


class SyncClient:
    """Reconciles local entries with a remote store.

    The client never writes local storage; callers persist ``SyncResult.merged``.
    """

    def __init__(
        self,
        settings: SyncSettings,
        store: RemoteStore,
        device_id: Optional[str] = None,
        device_id_source: Optional[Callable[[], str]] = None,
        progress_callback: Optional[Callable[[str, int, int], None]] = None,
    ):
        self.settings = settings
        self.store = store
        self.progress_callback = progress_callback
        self._device_id = device_id
        self._device_id_source = device_id_source
        self._lock = threading.Lock()
        self.resolver = ConflictResolver()

    @classmethod
    def from_home(cls, home: Path, settings: SyncSettings, **kwargs: Any) -> "SyncClient":
        store = build_store(settings, home)
        device_path = home / settings.device_id_path
        return cls(settings, store, device_id_source=lambda: load_device_id(device_path), **kwargs)

    @property
    def device_id(self) -> str:
        if self._device_id is None:
            self._device_id = self._device_id_source() if self._device_id_source else "unknown"
        return self._device_id

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def sync(self, local_entries: Sequence[Entry]) -> SyncResult:
        """Pull, merge and push. Never raises; failures come back as results."""
        if not self.store.is_configured():
            logger.info("Sync skipped: store not configured")
            return SyncResult(success=False, error=NOT_CONFIGURED)

        if not self._lock.acquire(blocking=False):
            logger.warning("Sync requested while another sync is running")
            return SyncResult(success=False, error=ALREADY_RUNNING)

        try:
            return self._sync(list(local_entries))
        except Exception as e:
            logger.exception("Sync failed")
            return SyncResult(success=False, error=str(e) or e.__class__.__name__)
        finally:
            self._lock.release()

    async def sync_async(self, local_entries: Sequence[Entry]) -> SyncResult:
        """Run ``sync`` on a worker thread for asyncio callers."""
        return await asyncio.to_thread(self.sync, local_entries)

    def _sync(self, local_entries: List[Entry]) -> SyncResult:
        had_remote_id = bool(self.store.remote_id)

        self._report_progress("Pulling remote", 1, 4)
        remote_envelope = self.store.pull()
        remote_entries = remote_envelope.entries if remote_envelope else []

        self._report_progress("Merging", 2, 4)
        merge = merge_entries(local_entries, remote_entries, self.resolver)

        local_ids = {entry.id for entry in local_entries}
        remote_ids = {entry.id for entry in remote_entries}
        added = sum(1 for e in merge.merged if e.id not in local_ids and e.id in remote_ids)
        pushed = sum(1 for e in merge.merged if e.id in local_ids and e.id not in remote_ids)

        self._report_progress("Pushing", 3, 4)
        envelope = create_envelope(merge.merged, self.device_id)
        remote_id = self.store.push(envelope)

        if not had_remote_id:
            self.store.remember_remote_id(remote_id)
            logger.info("First push created remote resource %s", remote_id)

        self._report_progress("Sync complete", 4, 4)
        logger.info(
            "Sync complete: %d added, %d updated, %d pushed",
            added,
            len(merge.conflicts),
            pushed,
        )
        return SyncResult(
            success=True,
            added=added,
            updated=len(merge.conflicts),
            pushed=pushed,
            conflicts=merge.conflicts,
            merged=merge.merged,
            remote_id=remote_id,
        )

    def _report_progress(self, message: str, current: int, total: int) -> None:
        """Report progress if callback is configured."""
        if self.progress_callback:
            self.progress_callback(message, current, total)
        logger.debug("Sync progress: %s (%d/%d)", message, current, total)

    def get_status(self) -> Dict[str, Any]:
        """Get current sync status."""
        return {
            "enabled": self.settings.enabled,
            "provider": self.store.provider,
            "configured": self.store.is_configured(),
            "remote_id": self.store.remote_id or "(none yet)",
            "running": self.is_running,
        }


__all__ = [
    "SyncClient",
    "SyncSettings",
    "SyncResult",
    "build_store",
    "NOT_CONFIGURED",
    "ALREADY_RUNNING",
]
