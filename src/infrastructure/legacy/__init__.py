"""
Legacy blob store integration (Convex file storage).
"""

from .client import ConvexLegacyConfig, ConvexLegacyStore, MockLegacyStore, create_legacy_store

__all__ = [
    "ConvexLegacyConfig",
    "ConvexLegacyStore",
    "MockLegacyStore",
    "create_legacy_store",
]
