"""Wire configuration into the word store and sync client."""

from __future__ import annotations

from .configuration import ConfigurationBundle
from .store import JsonWordStore
from .sync import SyncClient, SyncSettings


def word_store_for(config: ConfigurationBundle) -> JsonWordStore:
    words_path = config.section("storage").get("words_path", "state/words.json")
    return JsonWordStore(config.resolve_path(words_path))


def sync_client_for(config: ConfigurationBundle) -> SyncClient:
    """Raises ConfigError when the provider is unknown."""
    settings = SyncSettings.from_config(config.merged)
    return SyncClient.from_home(config.home_dir, settings)


__all__ = ["sync_client_for", "word_store_for"]
