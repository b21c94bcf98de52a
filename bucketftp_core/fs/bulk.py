"""Recursive delete and rename emulated with per-key COPY plus batched DELETE.

Neither operation is atomic. A rename copies every key first and deletes the sources
only once all copies succeeded; a failed copy aborts the rename and leaves the keys
copied so far in place.
"""

from __future__ import annotations

import logging

from bucketftp_core.errors import BucketFtpError, InvalidPathError, NotFoundError
from bucketftp_core.fs.directories import DirectoryEmulator
from bucketftp_core.io.paths import PathResolver, as_directory_key, as_file_key
from bucketftp_core.observability import error_log_fields, log_event
from bucketftp_core.store.object_store import ObjectStoreClient

logger = logging.getLogger(__name__)


class BulkObjectOps:
    def __init__(
        self,
        store: ObjectStoreClient,
        resolver: PathResolver,
        directories: DirectoryEmulator | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._directories = directories or DirectoryEmulator(store, resolver)

    def probe(self, key: str) -> str:
        """Return the file key or the directory key ``key`` denotes.

        Probes for an object at ``key`` first, then for ``key/`` as a directory
        (its marker or any descendant).
        """

        if self._resolver.is_root(as_directory_key(key)):
            return as_directory_key(key)

        if not key.endswith("/") and self._store.head_object(key) is not None:
            return key

        dir_key = as_directory_key(key)
        if self._directories.exists(dir_key):
            return dir_key
        raise NotFoundError(f"No such file or directory: {self._resolver.to_path(key)}")

    def list_recursive(self, dir_key: str) -> list[str]:
        return self._store.list_objects(dir_key).keys

    def delete(self, key: str) -> list[str]:
        """Delete a file, or a directory with everything under it. Returns the deleted keys."""

        target = self.probe(key)
        if self._resolver.is_root(target):
            raise InvalidPathError("Refusing to delete the root directory")

        if target.endswith("/"):
            keys = self.list_recursive(target)
        else:
            keys = [target]

        log_event(logger, "bucketftp.delete", key=target, stage="start", key_count=len(keys))
        if keys:
            try:
                self._store.delete_objects(keys)
            except BucketFtpError as exc:
                log_event(
                    logger,
                    "bucketftp.delete",
                    level=logging.ERROR,
                    key=target,
                    stage="failed",
                    **error_log_fields(exc),
                )
                raise
        log_event(logger, "bucketftp.delete", key=target, stage="done", key_count=len(keys))
        return keys

    def plan_rename(self, source_key: str, dest_key: str) -> list[tuple[str, str]]:
        """Resolve the (source, destination) pairs of a rename without touching the store."""

        source = self.probe(source_key)
        if self._resolver.is_root(source):
            raise InvalidPathError("Refusing to rename the root directory")

        if not source.endswith("/"):
            dest = as_file_key(dest_key)
            if self._resolver.is_root(as_directory_key(dest)):
                raise InvalidPathError("Cannot rename a file onto the root directory")
            if dest == source:
                raise InvalidPathError(f"Source and destination are the same: {source!r}")
            if self._directories.exists(as_directory_key(dest)):
                raise InvalidPathError(
                    f"Cannot rename a file onto an existing directory: {self._resolver.to_path(dest)}"
                )
            return [(source, dest)]

        dest = as_directory_key(dest_key)
        if self._resolver.is_root(dest):
            raise InvalidPathError("Cannot rename a directory onto the root directory")
        if dest.startswith(source):
            raise InvalidPathError(f"Cannot move {source!r} into itself ({dest!r})")

        return [(key, dest + key[len(source) :]) for key in self.list_recursive(source)]

    def rename(self, source_key: str, dest_key: str) -> list[tuple[str, str]]:
        """Copy every key to its destination, then delete all sources in one batch."""

        batch = self.plan_rename(source_key, dest_key)
        log_event(
            logger,
            "bucketftp.rename",
            source=source_key,
            dest=dest_key,
            stage="start",
            key_count=len(batch),
        )

        copied = 0
        for src, dst in batch:
            try:
                self._store.copy_object(src, dst)
            except BucketFtpError as exc:
                # No rollback: destinations copied so far are left in place.
                log_event(
                    logger,
                    "bucketftp.rename",
                    level=logging.ERROR,
                    source=src,
                    dest=dst,
                    stage="failed",
                    copied=copied,
                    **error_log_fields(exc),
                )
                raise
            copied += 1

        log_event(logger, "bucketftp.rename", source=source_key, stage="delete", key_count=copied)
        self._store.delete_objects([src for src, _ in batch])
        log_event(
            logger, "bucketftp.rename", source=source_key, dest=dest_key, stage="done", key_count=copied
        )
        return batch
