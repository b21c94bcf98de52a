"""Filesystem emulation over a flat object store."""

from bucketftp_core.fs.bulk import BulkObjectOps
from bucketftp_core.fs.directories import DirectoryEmulator
from bucketftp_core.fs.streams import ByteConduit, HandleState, ObjectFileHandle

__all__ = [
    "BulkObjectOps",
    "ByteConduit",
    "DirectoryEmulator",
    "HandleState",
    "ObjectFileHandle",
]
