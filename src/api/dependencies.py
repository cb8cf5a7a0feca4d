"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests
- Configuration is centralized

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated, AsyncGenerator, Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings, load_storage_config
from ..core.storage.models import StorageConfig
from ..core.storage.resolver import LegacyBlobStore, ReferenceResolver
from ..infrastructure.legacy.client import ConvexLegacyConfig, create_legacy_store
from ..infrastructure.storage.client import (
    StorageClient,
    create_storage_client,
    mock_storage_config,
)

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Global mock instance (shared across requests for testing)
_mock_legacy_store = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.

    Raises 403 if key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8] if api_key else ""}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Storage Dependencies
# ---------------------------------------------------------------------------

def get_storage_config(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageConfig:
    """
    Provide the immutable storage config.

    Raises ConfigurationError when credentials are missing; the app-level
    handler turns that into a 503 before anything is signed.
    """
    if settings.r2_mock_mode:
        return mock_storage_config(
            bucket_name=settings.r2_bucket_name,
            public_url_base=settings.r2_public_url,
        )
    return load_storage_config(settings)


def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
    config: Annotated[StorageConfig, Depends(get_storage_config)],
) -> StorageClient:
    """Provide R2 client, or the mock client in mock mode."""
    client = create_storage_client(config=config, mock_mode=settings.r2_mock_mode)
    logger.debug("Created storage client", extra={"mock_mode": settings.r2_mock_mode})
    return client


async def get_legacy_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncGenerator[Optional[LegacyBlobStore], None]:
    """
    Provide the legacy blob store, or None when it is not configured.

    This is a generator so the HTTP client is closed after the request.
    In mock mode, we reuse the same store across requests so that
    seeded ids persist during the testing session.

    A missing store is not fatal: URLs and object keys still resolve,
    only legacy ids come back as None.
    """
    global _mock_legacy_store

    if settings.legacy_mock_mode:
        if _mock_legacy_store is None:
            _mock_legacy_store = create_legacy_store(mock_mode=True)
            logger.info("Created shared mock legacy store for session")
        yield _mock_legacy_store
        return

    try:
        config = ConvexLegacyConfig(
            deployment_url=settings.legacy_store_url,
            timeout_seconds=settings.legacy_store_timeout_seconds,
            get_url_function=settings.legacy_get_url_function,
            delete_function=settings.legacy_delete_function,
            upload_url_function=settings.legacy_upload_url_function,
        )
    except ValueError as e:
        logger.warning("Legacy store not configured", extra={"error": str(e)})
        yield None
        return

    store = create_legacy_store(config=config)
    try:
        yield store
    finally:
        await store.aclose()


def get_reference_resolver(
    settings: Annotated[Settings, Depends(get_settings)],
    config: Annotated[StorageConfig, Depends(get_storage_config)],
    legacy_store: Annotated[Optional[LegacyBlobStore], Depends(get_legacy_store)],
) -> ReferenceResolver:
    """The resolver is stateless, so we create a new instance per request."""
    return ReferenceResolver(
        config=config,
        legacy_store=legacy_store,
        expires_in=settings.presign_expires_seconds,
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
StorageConfigDep = Annotated[StorageConfig, Depends(get_storage_config)]
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
LegacyStoreDep = Annotated[Optional[LegacyBlobStore], Depends(get_legacy_store)]
ReferenceResolverDep = Annotated[ReferenceResolver, Depends(get_reference_resolver)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
