"""Suggestion-to-patch translation and edge config orchestration."""

from edgepatch.client import EdgeConfigClient
from edgepatch.errors import (
    CacheVerificationError,
    CdnInvalidationError,
    EdgePatchError,
    ErrorKind,
    StorageError,
    UnsupportedTypeError,
    ValidationError,
)

__all__ = [
    "CacheVerificationError",
    "CdnInvalidationError",
    "EdgeConfigClient",
    "EdgePatchError",
    "ErrorKind",
    "StorageError",
    "UnsupportedTypeError",
    "ValidationError",
]
