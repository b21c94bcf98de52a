from __future__ import annotations

from collections.abc import Sequence


class BucketFtpError(Exception):
    """Base error for bucketftp_core."""


class NotFoundError(BucketFtpError):
    """Raised when a key or directory prefix does not exist."""


class AlreadyExistsError(BucketFtpError):
    """Raised when creating something that always exists (the root directory)."""


class NotSupportedError(BucketFtpError):
    """Raised for operations the object store cannot emulate (seek, chmod, TLS)."""


class AuthFailureError(BucketFtpError):
    """Raised when a username/password pair does not match the configured credential."""


class InvalidPathError(BucketFtpError):
    """Raised when a protocol path cannot be mapped to an object key."""


class InvalidStateError(BucketFtpError):
    """Raised when a file handle is used outside its lifecycle state."""


class UpstreamError(BucketFtpError):
    """Wraps a failure reported by the object-store client."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class PartialFailureError(UpstreamError):
    """Raised when a batched request failed for some of its keys."""

    def __init__(self, message: str, *, failed_keys: Sequence[str]) -> None:
        super().__init__(message, code="PartialFailure")
        self.failed_keys = list(failed_keys)
