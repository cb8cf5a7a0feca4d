"""
Turns persisted file references into URLs a client can load.

Submissions written over the app's lifetime point at files in three
different ways: a full URL, an R2 object key, or an id in the legacy blob
store. The resolver hides that history. It classifies the reference once
and dispatches to the matching strategy.

Resolution failures are contained. A reference that cannot be resolved
becomes None (and a log line), never an exception that takes down a
whole page of submissions.
"""

import asyncio
import logging
from typing import Optional, Protocol, Sequence

from .errors import ResolutionFailure
from .models import DirectUrl, LegacyStorageId, ObjectKey, StorageConfig, classify_reference
from .signing import DEFAULT_EXPIRES_IN, build_presigned_url

logger = logging.getLogger(__name__)


class LegacyBlobStore(Protocol):
    """
    The legacy content store that predates the R2 bucket.

    Implementations live in infrastructure; tests use the in-memory one.
    """

    async def get_url(self, storage_id: str) -> Optional[str]:
        """Serving URL for a stored blob, or None if it does not exist."""
        ...

    async def delete(self, storage_id: str) -> None:
        ...

    async def generate_upload_url(self) -> str:
        """One-shot upload URL for a new blob."""
        ...

    async def aclose(self) -> None:
        ...


class ReferenceResolver:
    """
    Resolves file references, singly or in batches.

    Stateless apart from the read-only config and the store handle, so a
    single instance can serve concurrent requests.
    """

    def __init__(
        self,
        config: StorageConfig,
        legacy_store: Optional[LegacyBlobStore] = None,
        expires_in: int = DEFAULT_EXPIRES_IN,
    ) -> None:
        self._config = config
        self._legacy_store = legacy_store
        self._expires_in = expires_in

    async def resolve(self, ref: Optional[str]) -> Optional[str]:
        """
        Resolve one reference.

        - full URL: returned as-is
        - object key: public mirror URL if configured, else a presigned GET
        - legacy id: looked up in the legacy store

        Empty input returns None without touching any backend.
        """
        if not ref:
            return None

        try:
            match classify_reference(ref):
                case DirectUrl(url=url):
                    return url
                case ObjectKey(key=key):
                    return self._bucket_url(key)
                case LegacyStorageId(storage_id=storage_id):
                    return await self._legacy_url(storage_id)
        except ResolutionFailure as e:
            logger.warning(
                "Failed to resolve file reference",
                extra={"reference": ref, "reason": e.reason},
            )
            return None

    async def resolve_many(self, refs: Sequence[Optional[str]]) -> list[Optional[str]]:
        """
        Resolve a batch concurrently.

        The result lines up index-for-index with the input. Each entry
        fails on its own: a bad legacy id becomes None at its position
        while its siblings still resolve.
        """
        if not refs:
            return []
        results = await asyncio.gather(*(self.resolve(ref) for ref in refs))

        failed = sum(1 for ref, url in zip(refs, results) if ref and url is None)
        logger.debug(
            "Resolved file references",
            extra={"count": len(refs), "failed": failed},
        )
        return list(results)

    async def streamable_url(self, ref: Optional[str]) -> Optional[str]:
        """
        URL suitable for video/audio playback.

        Object keys ALWAYS get a presigned GET here, even when a public
        mirror is configured, because the mirror does not support the HTTP
        range requests media players rely on.
        """
        if not ref:
            return None

        try:
            match classify_reference(ref):
                case DirectUrl(url=url):
                    return url
                case ObjectKey(key=key):
                    return self._bucket_url(key, signed=True)
                case LegacyStorageId(storage_id=storage_id):
                    return await self._legacy_url(storage_id)
        except ResolutionFailure as e:
            logger.warning(
                "Failed to resolve streamable reference",
                extra={"reference": ref, "reason": e.reason},
            )
            return None

    def _bucket_url(self, key: str, *, signed: bool = False) -> str:
        try:
            key.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ResolutionFailure(key, "object key is not valid UTF-8") from e

        if not signed:
            public_url = self._config.public_url(key)
            if public_url:
                return public_url

        try:
            return build_presigned_url("GET", key, None, self._config, self._expires_in)
        except ValueError as e:
            # A malformed key fails this entry only; SigningComputationError propagates
            raise ResolutionFailure(key, str(e)) from e

    async def _legacy_url(self, storage_id: str) -> str:
        if self._legacy_store is None:
            raise ResolutionFailure(storage_id, "legacy store not configured")

        try:
            url = await self._legacy_store.get_url(storage_id)
        except Exception as e:
            # Whatever the store raised stays behind this boundary
            raise ResolutionFailure(storage_id, str(e)) from e

        if not url:
            raise ResolutionFailure(storage_id, "not found in legacy store")
        return url
