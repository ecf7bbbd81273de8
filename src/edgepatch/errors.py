"""Error taxonomy shared by the orchestrator and its collaborators."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Category of an EdgePatchError."""

    VALIDATION = "validation"
    UNSUPPORTED_TYPE = "unsupported_type"
    STORAGE = "storage"
    CDN_INVALIDATION = "cdn_invalidation"
    CACHE_VERIFICATION = "cache_verification"


class CacheFailure(str, Enum):
    """Why the cache verifier gave up."""

    TRANSPORT = "transport"
    HEADER_MISSING = "header_missing"


class EdgePatchError(Exception):
    """
    Base error carrying a kind and an HTTP-style status code.
    Callers that expose an API map `status` straight onto the response.
    """

    kind: ErrorKind = ErrorKind.VALIDATION
    status: int = 400

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "status": self.status, "message": self.message}


class ValidationError(EdgePatchError):
    """Missing or malformed required input. Never retried."""

    kind = ErrorKind.VALIDATION
    status = 400


class UnsupportedTypeError(EdgePatchError):
    """No mapper registered for the opportunity type."""

    kind = ErrorKind.UNSUPPORTED_TYPE
    status = 501


class StorageError(EdgePatchError):
    """Storage read/write failed for a reason other than not-found."""

    kind = ErrorKind.STORAGE
    status = 500


class CdnInvalidationError(EdgePatchError):
    """CDN invalidation failed. The orchestrator downgrades this to a result value."""

    kind = ErrorKind.CDN_INVALIDATION
    status = 502


class CacheVerificationError(EdgePatchError):
    """Edge cache never confirmed the new config within the retry budget."""

    kind = ErrorKind.CACHE_VERIFICATION
    status = 500

    def __init__(
        self,
        message: str,
        *,
        failure: CacheFailure,
        variant: str,
        max_retries: int,
        status: Optional[int] = None,
    ):
        super().__init__(message, status=status)
        self.failure = failure
        self.variant = variant
        self.max_retries = max_retries
