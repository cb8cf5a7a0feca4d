"""
Error taxonomy for the storage subsystem.

Every error raised by the storage code derives from StorageError, so the API
layer can map the whole family in one place while callers that care about a
specific failure can still catch it precisely.
"""


class StorageError(Exception):
    """Base class for storage failures."""
    pass


class ConfigurationError(StorageError):
    """
    Raised when storage credentials are missing or invalid.

    This is fatal and never retried: a process with a partial config
    must not attempt to sign anything.
    """

    def __init__(self, missing_fields: list[str], message: str | None = None) -> None:
        self.missing_fields = list(missing_fields)
        if message is None:
            message = (
                "Storage credentials not configured. Missing: "
                + ", ".join(self.missing_fields)
            )
        super().__init__(message)


class SigningComputationError(StorageError):
    """Raised when a hashing primitive fails while signing a request."""
    pass


class ResolutionFailure(StorageError):
    """A single file reference could not be turned into a URL."""

    def __init__(self, reference: str, reason: str) -> None:
        self.reference = reference
        self.reason = reason
        super().__init__(f"Could not resolve {reference!r}: {reason}")


class LegacyStoreError(StorageError):
    """Raised by the legacy blob store client when a call fails."""
    pass
