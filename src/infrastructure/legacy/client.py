"""
Client for the legacy blob store (Convex file storage).

Before media moved to R2, uploads went into Convex's built-in file storage
and submissions stored the resulting storage id. Those rows still exist, so
the resolver needs a way to turn a storage id into a serving URL.

We reach Convex through its public HTTP API: queries and mutations are
POSTed as {"path": "module:function", "args": {...}, "format": "json"} and
answer with {"status": "success", "value": ...} or
{"status": "error", "errorMessage": "..."}.

Includes an in-memory mock for local development and tests.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ...core.storage.errors import LegacyStoreError
from ...core.storage.resolver import LegacyBlobStore

logger = logging.getLogger(__name__)


@dataclass
class ConvexLegacyConfig:
    """
    Where the legacy store lives and which functions to call.

    The function paths are configurable because they are just names in the
    Convex project, not part of the HTTP API.
    """
    deployment_url: str
    timeout_seconds: float = 10.0
    get_url_function: str = "files:getUrl"
    delete_function: str = "storage:deleteFile"
    upload_url_function: str = "files:generateUploadUrl"

    def __post_init__(self) -> None:
        if not self.deployment_url:
            raise ValueError("deployment_url is required")
        if not self.deployment_url.startswith(("http://", "https://")):
            raise ValueError("deployment_url must be an http(s) URL")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.deployment_url = self.deployment_url.rstrip("/")


class ConvexLegacyStore:
    """
    Legacy store backed by a Convex deployment.

    Every failure (transport, HTTP status, function error, bad payload)
    surfaces as LegacyStoreError so callers never see httpx types.
    """

    def __init__(
        self,
        config: ConvexLegacyConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(
            base_url=config.deployment_url,
            timeout=config.timeout_seconds,
        )

        logger.info(
            "Initialized Convex legacy store client",
            extra={"deployment_url": config.deployment_url}
        )

    async def get_url(self, storage_id: str) -> Optional[str]:
        value = await self._call("query", self._config.get_url_function, {"storageId": storage_id})
        if value is None:
            return None
        if not isinstance(value, str):
            raise LegacyStoreError(f"Expected a URL string, got {type(value).__name__}")
        return value

    async def delete(self, storage_id: str) -> None:
        await self._call("mutation", self._config.delete_function, {"storageId": storage_id})
        logger.info("Deleted legacy file", extra={"storage_id": storage_id})

    async def generate_upload_url(self) -> str:
        value = await self._call("mutation", self._config.upload_url_function, {})
        if not isinstance(value, str) or not value:
            raise LegacyStoreError("Legacy store did not return an upload URL")
        return value

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, kind: str, function_path: str, args: dict[str, Any]) -> Any:
        """POST one query or mutation and unwrap the response envelope."""
        body = {"path": function_path, "args": args, "format": "json"}

        try:
            response = await self._client.post(f"/api/{kind}", json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.error(
                "Legacy store request failed",
                extra={"function": function_path, "error": str(e)}
            )
            raise LegacyStoreError(f"Legacy store request failed: {e}") from e
        except ValueError as e:
            raise LegacyStoreError(f"Legacy store returned invalid JSON: {e}") from e

        if not isinstance(payload, dict) or payload.get("status") != "success":
            message = payload.get("errorMessage") if isinstance(payload, dict) else None
            logger.warning(
                "Legacy store function failed",
                extra={"function": function_path, "error": message}
            )
            raise LegacyStoreError(message or f"{function_path} failed")

        return payload.get("value")


# ---------------------------------------------------------------------------
# Mock Legacy Store for Local Development
# ---------------------------------------------------------------------------

class MockLegacyStore:
    """
    In-memory legacy store.

    Blobs are just ids in a set and "URLs" are mock URIs.
    """

    def __init__(self, storage_ids: Optional[list[str]] = None) -> None:
        self._blobs: set[str] = set(storage_ids or [])
        logger.info("Initialized mock legacy store (in-memory)")

    def add(self, storage_id: str) -> None:
        self._blobs.add(storage_id)

    async def get_url(self, storage_id: str) -> Optional[str]:
        if storage_id not in self._blobs:
            return None
        return f"mock://legacy/{storage_id}"

    async def delete(self, storage_id: str) -> None:
        if storage_id not in self._blobs:
            raise LegacyStoreError(f"Legacy file not found: {storage_id}")
        self._blobs.remove(storage_id)

    async def generate_upload_url(self) -> str:
        return f"mock://legacy/upload/{secrets.token_hex(8)}"

    async def aclose(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_legacy_store(
    config: Optional[ConvexLegacyConfig] = None,
    mock_mode: bool = False,
) -> LegacyBlobStore:
    """
    Create legacy store client based on configuration.

    Args:
        config: Convex configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory store
    """
    if mock_mode:
        return MockLegacyStore()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return ConvexLegacyStore(config)
