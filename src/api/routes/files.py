"""
File addressing API endpoints.

The mobile app never streams media through this service. It asks for URLs:
1. Before an upload: a presigned PUT plus the key to persist
2. When rendering a submission: a readable URL for each stored reference
3. For video/audio playback: a signed URL that supports range requests

Stored references may be full URLs, R2 object keys or legacy storage ids;
the resolver works out which.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from ...core.storage.errors import LegacyStoreError
from ...core.storage.models import strip_legacy_marker
from ...core.storage.resolver import LegacyBlobStore
from ..dependencies import (
    AuthenticatedUser,
    LegacyStoreDep,
    ReferenceResolverDep,
    SettingsDep,
    StorageClientDep,
)

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_BATCH_SIZE = 200


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class UploadUrlRequest(BaseModel):
    """Request for a presigned upload URL."""
    folder: str = Field(
        min_length=1,
        max_length=64,
        pattern=r"^[A-Za-z0-9_-]+(/[A-Za-z0-9_-]+)*$",
        description='Top-level folder, e.g. "images", "videos", "audio"',
    )
    filename: str = Field(
        min_length=1,
        max_length=255,
        description="Original filename. Only its extension is used.",
    )
    content_type: str = Field(
        min_length=1,
        max_length=127,
        description="MIME type the client will upload with. It is signed.",
    )


class UploadUrlResponse(BaseModel):
    """Presigned upload target."""
    upload_url: str = Field(description="Presigned PUT URL. Do not persist.")
    file_key: str = Field(description="Object key in the bucket")
    public_url: str = Field(description="Read URL to persist as the file reference")
    expires_in: int = Field(description="Seconds until upload_url expires")


class LegacyUploadUrlResponse(BaseModel):
    """Upload URL issued by the legacy store."""
    upload_url: str


class ResolvedUrlResponse(BaseModel):
    """A single resolved reference."""
    ref: str
    url: Optional[str] = Field(description="Usable URL, or null if it could not be resolved")


class BatchResolveRequest(BaseModel):
    """References to resolve in one call."""
    refs: list[Optional[str]] = Field(
        max_length=MAX_BATCH_SIZE,
        description="Stored file references. Empty entries resolve to null.",
    )


class BatchResolveResponse(BaseModel):
    """Resolved URLs, index-aligned with the request."""
    urls: list[Optional[str]]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/upload-url",
    response_model=UploadUrlResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a presigned upload URL",
)
async def create_upload_url(
    request: UploadUrlRequest,
    storage: StorageClientDep,
    settings: SettingsDep,
    api_key: AuthenticatedUser,
) -> UploadUrlResponse:
    """
    Generate a fresh object key and a presigned PUT for it.

    The client uploads straight to R2 with the returned URL and then saves
    public_url on the submission.
    """
    try:
        ticket = await storage.issue_upload_url(
            folder=request.folder,
            filename=request.filename,
            content_type=request.content_type,
            expires_in=settings.presign_expires_seconds,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    return UploadUrlResponse(
        upload_url=ticket.upload_url,
        file_key=ticket.file_key,
        public_url=ticket.public_url,
        expires_in=settings.presign_expires_seconds,
    )


@router.post(
    "/legacy/upload-url",
    response_model=LegacyUploadUrlResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a legacy store upload URL",
    description="Kept for older app builds that still upload to the legacy store.",
)
async def create_legacy_upload_url(
    legacy_store: LegacyStoreDep,
    api_key: AuthenticatedUser,
) -> LegacyUploadUrlResponse:
    store = _require_legacy_store(legacy_store)
    try:
        upload_url = await store.generate_upload_url()
    except LegacyStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Legacy store error: {e}",
        )
    return LegacyUploadUrlResponse(upload_url=upload_url)


@router.get(
    "/url",
    response_model=ResolvedUrlResponse,
    summary="Resolve a stored file reference",
)
async def resolve_url(
    resolver: ReferenceResolverDep,
    api_key: AuthenticatedUser,
    ref: str = Query(default="", max_length=2048),
) -> ResolvedUrlResponse:
    """
    Resolve a URL, object key or legacy id into a readable URL.

    Unresolvable references return url=null rather than an error, so
    clients can render a placeholder.
    """
    url = await resolver.resolve(ref)
    return ResolvedUrlResponse(ref=ref, url=url)


@router.post(
    "/urls",
    response_model=BatchResolveResponse,
    summary="Resolve many stored file references",
)
async def resolve_urls(
    request: BatchResolveRequest,
    resolver: ReferenceResolverDep,
    api_key: AuthenticatedUser,
) -> BatchResolveResponse:
    """Index-aligned batch resolution. One bad entry never fails the batch."""
    urls = await resolver.resolve_many(request.refs)
    return BatchResolveResponse(urls=urls)


@router.get(
    "/stream-url",
    response_model=ResolvedUrlResponse,
    summary="Resolve a reference for media playback",
    description="Object keys always get a signed S3 URL, which supports HTTP range requests.",
)
async def stream_url(
    resolver: ReferenceResolverDep,
    api_key: AuthenticatedUser,
    ref: str = Query(default="", max_length=2048),
) -> ResolvedUrlResponse:
    url = await resolver.streamable_url(ref)
    return ResolvedUrlResponse(ref=ref, url=url)


@router.delete(
    "/legacy/{storage_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a file from the legacy store",
)
async def delete_legacy_file(
    storage_id: str,
    legacy_store: LegacyStoreDep,
    api_key: AuthenticatedUser,
) -> None:
    store = _require_legacy_store(legacy_store)
    try:
        await store.delete(strip_legacy_marker(storage_id))
    except LegacyStoreError as e:
        logger.error(
            "Failed to delete legacy file",
            extra={"storage_id": storage_id, "error": str(e)}
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Legacy store error: {e}",
        )


def _require_legacy_store(legacy_store: Optional[LegacyBlobStore]) -> LegacyBlobStore:
    if legacy_store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Legacy store is not configured",
        )
    return legacy_store
