"""Remote store abstraction and the file-backed ("local") provider."""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..fileio import atomic_write
from .codec import decode, encode_envelope
from .envelope import EnvelopeMetadata, SyncEnvelope
from .errors import ConfigError, StoreError

logger = logging.getLogger("wordbook.sync.store")


@dataclass
class StoreCredentials:
    """What ``configure`` accepts. Providers read the fields they need."""

    token: str = ""
    resource_id: Optional[str] = None
    private: bool = True
    path: Optional[str] = None


class CredentialFile:
    """Persists ``{token, resourceId, private}`` for a store, mode 0600."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load sync credentials from %s: %s", self.path, e)
            return None
        return data if isinstance(data, dict) else None

    def save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(self.path, json.dumps(data, indent=2).encode("utf-8"), mode=0o600)
        logger.debug("Saved sync credentials to %s", self.path)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info("Cleared sync credentials at %s", self.path)


class RemoteStore(ABC):
    """Persists a SyncEnvelope somewhere outside this device."""

    provider: str = ""

    def __init__(self, credential_file: CredentialFile):
        self.credentials = credential_file

    def remember_remote_id(self, remote_id: str) -> None:
        """Record the remote id returned by a push for future syncs."""
        config = self.credentials.load()
        if config is None or config.get("resourceId") == remote_id:
            return
        self.credentials.save({**config, "resourceId": remote_id})

    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    def configure(self, credentials: StoreCredentials) -> None:
        """Validate credentials live, then persist them. Raises ConfigError."""

    @abstractmethod
    def push(self, envelope: SyncEnvelope) -> str:
        """Create or update the remote blob and return its remote id."""

    @abstractmethod
    def pull(self) -> Optional[SyncEnvelope]:
        """Return the remote envelope, or None if nothing was pushed yet."""

    @abstractmethod
    def disconnect(self) -> None:
        """Forget local credentials; the remote resource is left alone."""

    @property
    @abstractmethod
    def remote_id(self) -> Optional[str]:
        ...


def envelope_from_payload(payload: bytes, origin: str) -> SyncEnvelope:
    """Decode a stored blob, raising StoreError if it is unusable."""
    result = decode(payload)
    if not result.success:
        raise StoreError(f"Remote data at {origin} is unreadable: {result.message}")
    metadata = result.metadata or EnvelopeMetadata(
        exported_at=0,
        device_id="",
        entry_count=len(result.entries),
    )
    return SyncEnvelope(
        metadata=metadata,
        version=result.version or 1,
        entries=result.entries,
    )


class FileStore(RemoteStore):
    """Keeps the envelope in a plain file, e.g. inside a synced folder."""

    provider = "file"

    def __init__(self, credential_file: CredentialFile, default_path: Optional[Path] = None):
        super().__init__(credential_file)
        self.default_path = default_path

    def _target(self) -> Optional[Path]:
        data = self.credentials.load() or {}
        raw = data.get("resourceId")
        if raw:
            return Path(raw).expanduser()
        return self.default_path

    @property
    def remote_id(self) -> Optional[str]:
        target = self._target()
        return str(target) if target else None

    def is_configured(self) -> bool:
        return self._target() is not None

    def configure(self, credentials: StoreCredentials) -> None:
        raw = credentials.path or credentials.resource_id
        target = Path(raw).expanduser() if raw else self.default_path
        if target is None:
            raise ConfigError("A file path is required for the file store")
        if target.exists() and target.is_dir():
            raise ConfigError(f"'{target}' is a directory")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Cannot create '{target.parent}': {e}") from e
        if not os.access(target.parent, os.W_OK):
            raise ConfigError(f"'{target.parent}' is not writable")

        self.credentials.save({"token": "", "resourceId": str(target), "private": True})
        logger.info("File store configured at %s", target)

    def push(self, envelope: SyncEnvelope) -> str:
        target = self._target()
        if target is None:
            raise StoreError("File store not configured")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(target, encode_envelope(envelope))
        except OSError as e:
            raise StoreError(f"Failed to write {target}: {e}") from e
        logger.info("Pushed %d entries to %s", len(envelope.entries), target)
        return str(target)

    def pull(self) -> Optional[SyncEnvelope]:
        target = self._target()
        if target is None or not target.exists():
            return None
        try:
            payload = target.read_bytes()
        except OSError as e:
            raise StoreError(f"Failed to read {target}: {e}") from e
        if not payload.strip():
            return None
        return envelope_from_payload(payload, str(target))

    def disconnect(self) -> None:
        self.credentials.clear()


__all__ = [
    "CredentialFile",
    "FileStore",
    "RemoteStore",
    "StoreCredentials",
    "envelope_from_payload",
]
