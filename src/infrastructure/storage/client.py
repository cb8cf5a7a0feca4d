"""
Object storage client for submission media.

Targets Cloudflare R2 (S3-compatible). Using R2 instead of S3 because:
- No egress fees (important for video delivery)
- Same S3 API means we could swap to actual S3 if needed

The client never moves bytes itself. It hands out presigned URLs and the
mobile app talks to the bucket directly, so all we need are the
credentials and a SigV4 signer.

Mock mode hands out mock:// URLs, enabling API testing without
provisioning actual object storage.
"""

import logging
from typing import Optional, Protocol

from ...core.storage.keys import generate_file_key
from ...core.storage.models import StorageConfig, UploadTicket
from ...core.storage.signing import DEFAULT_EXPIRES_IN, build_presigned_url

logger = logging.getLogger(__name__)


class StorageClient(Protocol):
    """
    Protocol for bucket operations.

    Using a protocol means tests can provide mocks and we can
    swap storage backends without changing dependent code.
    """

    @property
    def config(self) -> StorageConfig:
        ...

    async def issue_upload_url(
        self,
        folder: str,
        filename: str,
        content_type: str,
        expires_in: int = DEFAULT_EXPIRES_IN,
    ) -> UploadTicket:
        """Generate a key and a PUT URL for it."""
        ...

    async def get_presigned_url(
        self,
        storage_path: str,
        expiry_seconds: int = DEFAULT_EXPIRES_IN,
    ) -> str:
        """Generate temporary download URL."""
        ...


class R2StorageClient:
    """
    Cloudflare R2 storage client.

    Signs requests itself with SigV4 rather than going through boto3:
    presigning is pure computation over the credentials, and the same
    code path has to work wherever the service is deployed.
    """

    def __init__(self, config: StorageConfig) -> None:
        self._config = config

        logger.info(
            "Initialized R2 storage client",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
                "public_mirror": bool(config.public_url_base),
            }
        )

    @property
    def config(self) -> StorageConfig:
        return self._config

    async def issue_upload_url(
        self,
        folder: str,
        filename: str,
        content_type: str,
        expires_in: int = DEFAULT_EXPIRES_IN,
    ) -> UploadTicket:
        """
        Issue a presigned PUT for a new object.

        Key structure: {folder}/{unix_millis}-{random}.{ext}
        Content-Type is part of the signature, so the client must upload
        with exactly the content type it asked for.

        The returned public_url is the read URL to persist: the public
        mirror when configured, else the raw endpoint URL (which the
        resolver will presign on read).
        """
        file_key = generate_file_key(folder, filename)
        upload_url = build_presigned_url("PUT", file_key, content_type, self._config, expires_in)
        public_url = self._config.public_url(file_key) or self._config.object_url(file_key)

        logger.info(
            "Issued upload URL",
            extra={
                "file_key": file_key,
                "content_type": content_type,
                "expires_in": expires_in,
            }
        )

        return UploadTicket(upload_url=upload_url, file_key=file_key, public_url=public_url)

    async def get_presigned_url(
        self,
        storage_path: str,
        expiry_seconds: int = DEFAULT_EXPIRES_IN,
    ) -> str:
        """
        Generate a temporary download URL.

        Presigned URLs enable:
        - Direct client downloads without routing through API
        - Time-limited access (security)
        - HTTP range requests for media playback
        """
        return build_presigned_url("GET", storage_path, None, self._config, expiry_seconds)


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

def mock_storage_config(
    bucket_name: str = "mock-bucket",
    public_url_base: Optional[str] = None,
) -> StorageConfig:
    """Placeholder credentials so the signer still runs in mock mode."""
    return StorageConfig(
        account_id="mock-account",
        access_key_id="mock-access-key",
        secret_access_key="mock-secret-key",
        bucket_name=bucket_name,
        public_url_base=public_url_base,
    )


class MockStorageClient:
    """
    In-memory stand-in for R2.

    Remembers which keys were issued and returns mock:// URLs. The
    persisted public_url is an http URL so it resolves unchanged later.
    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self, config: Optional[StorageConfig] = None) -> None:
        self._config = config or mock_storage_config()
        self.issued_keys: list[str] = []
        logger.info("Initialized mock storage client (in-memory)")

    @property
    def config(self) -> StorageConfig:
        return self._config

    async def issue_upload_url(
        self,
        folder: str,
        filename: str,
        content_type: str,
        expires_in: int = DEFAULT_EXPIRES_IN,
    ) -> UploadTicket:
        file_key = generate_file_key(folder, filename)
        self.issued_keys.append(file_key)

        logger.debug(
            "Issued mock upload URL",
            extra={"file_key": file_key, "content_type": content_type}
        )

        return UploadTicket(
            upload_url=f"mock://storage/upload/{file_key}",
            file_key=file_key,
            public_url=f"http://mock.storage/{file_key}",
        )

    async def get_presigned_url(
        self,
        storage_path: str,
        expiry_seconds: int = DEFAULT_EXPIRES_IN,
    ) -> str:
        return f"mock://storage/{storage_path}"


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (R2 or Mock)
    """
    if mock_mode:
        return MockStorageClient(config)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return R2StorageClient(config)
