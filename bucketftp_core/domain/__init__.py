from bucketftp_core.domain.file_info import (
    DIRECTORY_MODE,
    DIRECTORY_SIZE,
    EPOCH,
    FILE_MODE,
    FileInfo,
    display_name,
    synthesize_file_info,
)

__all__ = [
    "DIRECTORY_MODE",
    "DIRECTORY_SIZE",
    "EPOCH",
    "FILE_MODE",
    "FileInfo",
    "display_name",
    "synthesize_file_info",
]
