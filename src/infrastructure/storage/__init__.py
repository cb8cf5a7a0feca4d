"""
Object storage integration for submission media.

Issues presigned upload and download URLs for the R2 bucket.
Includes mock mode for local development without credentials.
"""

from .client import (
    MockStorageClient,
    R2StorageClient,
    StorageClient,
    create_storage_client,
    mock_storage_config,
)

__all__ = [
    "MockStorageClient",
    "R2StorageClient",
    "StorageClient",
    "create_storage_client",
    "mock_storage_config",
]
