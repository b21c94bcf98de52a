"""Stable public imports for `bucketftp_core`.

Protocol engines integrate through ``BucketFtpDriver``/``BucketFtpSession``.
Lower-level pieces should be imported from their submodules explicitly.
"""

from bucketftp_core.api import BucketFtpDriver, BucketFtpSession, ServerSettings
from bucketftp_core.config import (
    AdapterConfig,
    S3ConnectionConfig,
    build_adapter_config_from_env,
    load_adapter_config,
)
from bucketftp_core.domain.file_info import FileInfo
from bucketftp_core.errors import (
    AlreadyExistsError,
    AuthFailureError,
    BucketFtpError,
    InvalidPathError,
    InvalidStateError,
    NotFoundError,
    NotSupportedError,
    PartialFailureError,
    UpstreamError,
)
from bucketftp_core.fs.streams import ObjectFileHandle
from bucketftp_core.io.paths import PathResolver
from bucketftp_core.store import Boto3ObjectStore, ObjectStoreClient

__all__ = [
    "AdapterConfig",
    "AlreadyExistsError",
    "AuthFailureError",
    "Boto3ObjectStore",
    "BucketFtpDriver",
    "BucketFtpError",
    "BucketFtpSession",
    "FileInfo",
    "InvalidPathError",
    "InvalidStateError",
    "NotFoundError",
    "NotSupportedError",
    "ObjectFileHandle",
    "ObjectStoreClient",
    "PartialFailureError",
    "PathResolver",
    "S3ConnectionConfig",
    "ServerSettings",
    "UpstreamError",
    "build_adapter_config_from_env",
    "load_adapter_config",
]
