"""
Value objects for object-storage addressing.

A stored file reference has no discriminator column. Its meaning is read off
its shape, and that reading happens in exactly one place:
classify_reference(). Everything downstream matches on the variant it
returns instead of repeating the string checks.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .errors import ConfigurationError

# Prefix some older rows carry in front of a legacy storage id
LEGACY_MARKER = "convex:"

DEFAULT_BUCKET_NAME = "negosyo-digital"


@dataclass(frozen=True)
class StorageConfig:
    """
    Credentials and addressing for the R2 bucket.

    Frozen because it is built once per process and then shared by every
    concurrent signing call.

    Raises ConfigurationError naming every empty credential field, so a
    partial config can never reach the signer.
    """
    account_id: str
    access_key_id: str
    secret_access_key: str
    bucket_name: str = DEFAULT_BUCKET_NAME
    endpoint_host: str = ""
    public_url_base: Optional[str] = None

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("account_id", "access_key_id", "secret_access_key", "bucket_name")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(missing)

        if not self.endpoint_host:
            # R2 endpoints are derived from the account id
            object.__setattr__(
                self, "endpoint_host", f"{self.account_id}.r2.cloudflarestorage.com"
            )
        if self.public_url_base:
            object.__setattr__(self, "public_url_base", self.public_url_base.rstrip("/"))
        else:
            object.__setattr__(self, "public_url_base", None)

    @property
    def endpoint_url(self) -> str:
        return f"https://{self.endpoint_host}"

    def object_path(self, key: str) -> str:
        """Path-style location of an object: /{bucket}/{key}."""
        return f"/{self.bucket_name}/{key}"

    def object_url(self, key: str) -> str:
        """Unsigned endpoint URL for an object. Only readable if the bucket allows it."""
        return f"{self.endpoint_url}{self.object_path(key)}"

    def public_url(self, key: str) -> Optional[str]:
        """Public mirror URL for an object, or None when no mirror is configured."""
        if not self.public_url_base:
            return None
        return f"{self.public_url_base}/{key}"

    def __repr__(self) -> str:
        # Keep the secret out of logs and tracebacks
        return (
            f"StorageConfig(account_id={self.account_id!r}, "
            f"access_key_id={self.access_key_id!r}, secret_access_key='***', "
            f"bucket_name={self.bucket_name!r}, endpoint_host={self.endpoint_host!r}, "
            f"public_url_base={self.public_url_base!r})"
        )


# ---------------------------------------------------------------------------
# File references
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DirectUrl:
    """An already-resolved URL. Returned unchanged."""
    url: str


@dataclass(frozen=True)
class ObjectKey:
    """A bucket object key: <folder>/<timestamp>-<random>.<ext>"""
    key: str


@dataclass(frozen=True)
class LegacyStorageId:
    """An identifier in the legacy blob store, marker already stripped."""
    storage_id: str


FileReference = Union[DirectUrl, ObjectKey, LegacyStorageId]


def strip_legacy_marker(value: str) -> str:
    if value.startswith(LEGACY_MARKER):
        return value[len(LEGACY_MARKER):]
    return value


def classify_reference(value: str) -> FileReference:
    """
    Classify a persisted file reference by its shape.

    Order matters: the http prefix is checked before the separator, since
    URLs contain slashes too. A legacy id never contains '/'.

    Raises:
        ValueError: if value is empty. Callers short-circuit empty
            references before classifying.
    """
    if not value:
        raise ValueError("Cannot classify an empty file reference")

    if value.startswith("http"):
        return DirectUrl(url=value)

    if "/" in value:
        return ObjectKey(key=value)

    return LegacyStorageId(storage_id=strip_legacy_marker(value))


# ---------------------------------------------------------------------------
# Upload issuance
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadTicket:
    """
    Everything a client needs to upload one file.

    public_url is what the caller persists as the file reference. The
    upload_url is signed for PUT and expires, so it must never be stored.
    """
    upload_url: str
    file_key: str
    public_url: str
