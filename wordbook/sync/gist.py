"""GitHub Gist backed remote store."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .codec import encode_envelope
from .envelope import SyncEnvelope
from .errors import ConfigError, StoreError
from .store import CredentialFile, RemoteStore, StoreCredentials, envelope_from_payload

logger = logging.getLogger("wordbook.sync.gist")

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_GIST_FILENAME = "translator-wordbook.json"
GIST_DESCRIPTION = "Translator Word Book Sync"
API_VERSION = "2022-11-28"


class GistStore(RemoteStore):
    """Stores the envelope as a single file inside a user-owned gist.

    Requires a personal access token with the ``gist`` scope. Only
    ``{token, resourceId, private}`` is kept locally.
    """

    provider = "gist"

    def __init__(
        self,
        credential_file: CredentialFile,
        api_url: str = DEFAULT_API_URL,
        filename: str = DEFAULT_GIST_FILENAME,
        timeout: float = 30,
    ):
        super().__init__(credential_file)
        self.api_url = api_url.rstrip("/")
        self.filename = filename
        self.timeout = timeout

    @property
    def remote_id(self) -> Optional[str]:
        config = self.credentials.load() or {}
        return config.get("resourceId") or None

    def is_configured(self) -> bool:
        config = self.credentials.load()
        return bool(config and config.get("token"))

    def configure(self, credentials: StoreCredentials) -> None:
        if not credentials.token:
            raise ConfigError("GitHub token is required")

        try:
            self._request("GET", "/user", token=credentials.token)
        except StoreError as e:
            raise ConfigError(f"Invalid GitHub token: {e}") from e

        self.credentials.save({
            "token": credentials.token,
            "resourceId": credentials.resource_id,
            "private": credentials.private,
        })
        logger.info("Gist sync configured (gist=%s)", credentials.resource_id or "new")

    def push(self, envelope: SyncEnvelope) -> str:
        config = self._require_config()
        content = encode_envelope(envelope).decode("utf-8")
        files = {self.filename: {"content": content}}
        gist_id = config.get("resourceId")

        if gist_id:
            self._request("PATCH", f"/gists/{gist_id}", body={"files": files})
            logger.info("Updated gist %s with %d entries", gist_id, len(envelope.entries))
            return gist_id

        response = self._request("POST", "/gists", body={
            "description": GIST_DESCRIPTION,
            "public": not config.get("private", True),
            "files": files,
        })
        gist_id = response.get("id")
        if not gist_id:
            raise StoreError("GitHub did not return a gist id")
        self.credentials.save({**config, "resourceId": gist_id})
        logger.info("Created gist %s with %d entries", gist_id, len(envelope.entries))
        return gist_id

    def pull(self) -> Optional[SyncEnvelope]:
        config = self._require_config()
        gist_id = config.get("resourceId")
        if not gist_id:
            return None

        try:
            response = self._request("GET", f"/gists/{gist_id}")
        except StoreError as e:
            if e.status == 404:
                logger.info("Gist %s not found; treating as never synced", gist_id)
                return None
            raise

        file_info = (response.get("files") or {}).get(self.filename) or {}
        if file_info.get("truncated") and file_info.get("raw_url"):
            payload = self._fetch_raw(file_info["raw_url"])
        else:
            payload = (file_info.get("content") or "").encode("utf-8")
        if not payload.strip():
            return None
        return envelope_from_payload(payload, f"gist {gist_id}")

    def disconnect(self) -> None:
        self.credentials.clear()

    def _fetch_raw(self, url: str) -> bytes:
        # Gist API truncates file content above ~1 MB
        req = Request(url, headers={"Authorization": f"Bearer {self._require_config()['token']}"})
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                return resp.read()
        except HTTPError as e:
            raise StoreError(f"GitHub raw fetch error: {e.code} {e.reason}", status=e.code) from e
        except (URLError, OSError) as e:
            raise StoreError(f"Connection error: {e}") from e

    def _require_config(self) -> Dict[str, Any]:
        config = self.credentials.load()
        if not config or not config.get("token"):
            raise StoreError("Gist sync not configured")
        return config

    def _request(
        self,
        method: str,
        endpoint: str,
        body: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Send an authenticated API request and return the decoded JSON body."""
        if token is None:
            token = self._require_config()["token"]

        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": API_VERSION,
        }
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"

        req = Request(
            f"{self.api_url}{endpoint}",
            data=data,
            headers=headers,
            method=method,
        )

        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8")
        except HTTPError as e:
            raise StoreError(f"GitHub API error: {e.code} {e.reason}", status=e.code) from e
        except URLError as e:
            raise StoreError(f"Connection error: {e.reason}") from e
        except OSError as e:
            raise StoreError(f"Connection error: {e}") from e

        if not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreError(f"GitHub returned invalid JSON: {e}") from e
        return parsed if isinstance(parsed, dict) else {}


__all__ = ["GistStore", "DEFAULT_API_URL", "DEFAULT_GIST_FILENAME"]
