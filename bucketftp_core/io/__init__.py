"""Path helpers shared by the filesystem emulation layer."""

from bucketftp_core.io.paths import (
    MAX_KEY_BYTES,
    PathResolver,
    as_directory_key,
    as_file_key,
    normalize_key,
    normalize_root_prefix,
)

__all__ = [
    "MAX_KEY_BYTES",
    "PathResolver",
    "as_directory_key",
    "as_file_key",
    "normalize_key",
    "normalize_root_prefix",
]
