from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, Protocol


@dataclass(frozen=True)
class ObjectSummary:
    """Key, content length and modification time of one stored object."""

    key: str
    size: int = 0
    last_modified: datetime | None = None


@dataclass(frozen=True)
class ListingPage:
    """Result of a prefix (and optionally delimiter) listing.

    ``common_prefixes`` are the immediate "subdirectories" (slash-terminated keys);
    ``contents`` are the objects directly under the prefix, possibly including the
    prefix's own directory marker.
    """

    common_prefixes: list[str] = field(default_factory=list)
    contents: list[ObjectSummary] = field(default_factory=list)

    @property
    def key_count(self) -> int:
        return len(self.common_prefixes) + len(self.contents)

    @property
    def keys(self) -> list[str]:
        return [obj.key for obj in self.contents]


class ReadableBody(Protocol):
    def read(self, size: int = -1) -> bytes: ...

    def close(self) -> None: ...


@dataclass
class ObjectBody:
    """An open GET response: a streaming body plus object metadata."""

    key: str
    body: ReadableBody
    size: int = 0
    last_modified: datetime | None = None


class ObjectStoreClient(Protocol):
    """Flat key-addressed object store bound to a single bucket.

    Implementations translate their client's failures into ``bucketftp_core.errors``:
    missing keys raise ``NotFoundError``, everything else ``UpstreamError``.
    Implementations must be safe for concurrent use from several sessions.
    """

    def list_objects(
        self, prefix: str, *, delimiter: str | None = None, max_keys: int | None = None
    ) -> ListingPage:
        """List keys under ``prefix``; all pages unless ``max_keys`` bounds the result."""

    def head_object(self, key: str) -> ObjectSummary | None:
        """Return object metadata, or None when the key does not exist."""

    def get_object(self, key: str) -> ObjectBody:
        """Open a streaming GET for ``key``."""

    def put_object(self, key: str, body: bytes = b"") -> None:
        """Create or replace ``key`` with ``body``."""

    def upload_stream(self, key: str, stream: BinaryIO) -> None:
        """Create or replace ``key`` by consuming ``stream`` until EOF in one upload call."""

    def copy_object(self, source_key: str, dest_key: str) -> None:
        """Server-side copy within the bucket."""

    def delete_objects(self, keys: list[str]) -> None:
        """Delete keys in batches; failures are aggregated into ``PartialFailureError``."""
