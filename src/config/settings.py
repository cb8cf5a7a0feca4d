"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock modes enable local development without R2 or the legacy store.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.storage.errors import ConfigurationError
from ..core.storage.models import DEFAULT_BUCKET_NAME, StorageConfig


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Negosyo Digital Media API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys. Using a list enables key rotation without downtime."
    )

    # R2 Storage Configuration
    r2_account_id: str = Field(
        default="",
        description="Cloudflare account ID for R2"
    )
    r2_access_key_id: str = Field(
        default="",
        description="R2 access key ID"
    )
    r2_secret_access_key: str = Field(
        default="",
        description="R2 secret access key"
    )
    r2_bucket_name: str = Field(
        default=DEFAULT_BUCKET_NAME,
        description="R2 bucket holding submission media"
    )
    r2_public_url: Optional[str] = Field(
        default=None,
        description="Public mirror base URL (e.g. an r2.dev or custom domain). Optional."
    )
    r2_endpoint_host: Optional[str] = Field(
        default=None,
        description="S3 endpoint host. Derived from account_id if not provided."
    )
    r2_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real R2. Enables local dev without object storage."
    )
    presign_expires_seconds: int = Field(
        default=3600,
        ge=1,
        le=604800,
        description="Lifetime of presigned URLs. SigV4 caps this at 7 days."
    )

    # Legacy blob store (Convex file storage)
    legacy_store_url: str = Field(
        default="",
        description="Convex deployment URL, e.g. https://happy-otter-123.convex.cloud"
    )
    legacy_store_timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout for legacy store calls"
    )
    legacy_get_url_function: str = Field(
        default="files:getUrl",
        description="Convex query that returns a serving URL for a storage id"
    )
    legacy_delete_function: str = Field(
        default="storage:deleteFile",
        description="Convex mutation that deletes a stored file"
    )
    legacy_upload_url_function: str = Field(
        default="files:generateUploadUrl",
        description="Convex mutation that issues a legacy upload URL"
    )
    legacy_mock_mode: bool = Field(
        default=False,
        description="Use in-memory legacy store. Enables local dev without a Convex deployment."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:8081,http://localhost:19006",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def missing_storage_fields(self) -> list[str]:
        """R2 credentials that are not set, named as environment variables."""
        missing = []
        if not self.r2_account_id:
            missing.append("R2_ACCOUNT_ID")
        if not self.r2_access_key_id:
            missing.append("R2_ACCESS_KEY_ID")
        if not self.r2_secret_access_key:
            missing.append("R2_SECRET_ACCESS_KEY")
        if not self.r2_bucket_name:
            missing.append("R2_BUCKET_NAME")
        return missing

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        # R2 only required if not in mock mode
        if not self.r2_mock_mode:
            missing.extend(self.missing_storage_fields())

        # Legacy store only required if not in mock mode
        if not self.legacy_mock_mode and not self.legacy_store_url:
            missing.append("LEGACY_STORE_URL")

        return missing


def load_storage_config(settings: Optional[Settings] = None) -> StorageConfig:
    """
    Build the immutable StorageConfig from settings.

    Called once at startup; the result is passed by reference into
    everything that signs. A partial config is never returned: if any
    credential is missing this raises ConfigurationError naming all of
    them, before any signing can be attempted.
    """
    if settings is None:
        settings = get_settings()

    try:
        return StorageConfig(
            account_id=settings.r2_account_id,
            access_key_id=settings.r2_access_key_id,
            secret_access_key=settings.r2_secret_access_key,
            bucket_name=settings.r2_bucket_name,
            endpoint_host=settings.r2_endpoint_host or "",
            public_url_base=settings.r2_public_url,
        )
    except ConfigurationError as e:
        # Report the environment variables, not the dataclass fields
        raise ConfigurationError([f"R2_{name.upper()}" for name in e.missing_fields]) from e


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    This is safe because settings don't change during runtime.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
