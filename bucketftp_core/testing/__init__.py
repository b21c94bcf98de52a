"""Test doubles for the object store."""

from bucketftp_core.testing.memory_store import MemoryObjectStore, StoreOp

__all__ = ["MemoryObjectStore", "StoreOp"]
