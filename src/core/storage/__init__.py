"""
Object-storage addressing and request signing.

Contains the storage value objects, SigV4 presigning, object key
generation and the file reference resolver.
"""

from .errors import (
    ConfigurationError,
    LegacyStoreError,
    ResolutionFailure,
    SigningComputationError,
    StorageError,
)
from .keys import generate_file_key
from .models import (
    DirectUrl,
    FileReference,
    LegacyStorageId,
    ObjectKey,
    StorageConfig,
    UploadTicket,
    classify_reference,
)
from .resolver import LegacyBlobStore, ReferenceResolver
from .signing import (
    build_canonical_request,
    build_presigned_url,
    build_string_to_sign,
    derive_signature,
    derive_signing_key,
)

__all__ = [
    "ConfigurationError",
    "LegacyStoreError",
    "ResolutionFailure",
    "SigningComputationError",
    "StorageError",
    "generate_file_key",
    "DirectUrl",
    "FileReference",
    "LegacyStorageId",
    "ObjectKey",
    "StorageConfig",
    "UploadTicket",
    "classify_reference",
    "LegacyBlobStore",
    "ReferenceResolver",
    "build_canonical_request",
    "build_presigned_url",
    "build_string_to_sign",
    "derive_signature",
    "derive_signing_key",
]
