"""Directory emulation over flat keys.

A directory exists when it is the root, when its zero-byte marker (``dir/``) exists, or
implicitly when any key lives under ``dir/``.
"""

from __future__ import annotations

import logging

from bucketftp_core.domain.file_info import FileInfo, synthesize_file_info
from bucketftp_core.errors import AlreadyExistsError, NotFoundError
from bucketftp_core.io.paths import PathResolver, as_directory_key
from bucketftp_core.observability import log_event
from bucketftp_core.store.object_store import ObjectStoreClient

logger = logging.getLogger(__name__)

DELIMITER = "/"


class DirectoryEmulator:
    def __init__(self, store: ObjectStoreClient, resolver: PathResolver) -> None:
        self._store = store
        self._resolver = resolver

    def exists(self, key: str) -> bool:
        """Return True when ``key`` (taken as a directory) is the root or lists anything."""

        dir_key = as_directory_key(key)
        if self._resolver.is_root(dir_key):
            return True
        page = self._store.list_objects(dir_key, delimiter=DELIMITER, max_keys=1)
        return page.key_count > 0

    def change_directory(self, key: str) -> str:
        """Validate ``key`` as a directory and return its slash-terminated form."""

        dir_key = as_directory_key(key)
        if not self.exists(dir_key):
            raise NotFoundError(f"No such directory: {self._resolver.to_path(dir_key)}")
        return dir_key

    def require_parent(self, key: str) -> None:
        """Fail with ``NotFoundError`` unless the directory containing ``key`` exists."""

        parent = self._resolver.parent_key(key)
        try:
            self.change_directory(parent)
        except NotFoundError as exc:
            raise NotFoundError(
                f"Parent directory does not exist: {self._resolver.to_path(parent)}"
            ) from exc

    def make_directory(self, key: str, *, require_parent: bool = True) -> str:
        dir_key = as_directory_key(key)
        if self._resolver.is_root(dir_key):
            raise AlreadyExistsError("The root directory always exists")
        if require_parent:
            self.require_parent(dir_key)

        self._store.put_object(dir_key, b"")
        log_event(logger, "bucketftp.mkdir", key=dir_key)
        return dir_key

    def list_files(self, cwd_key: str) -> list[FileInfo]:
        """List the immediate children of ``cwd_key`` in store order.

        Subdirectories come first (common prefixes), then files; the directory's own
        marker is never listed.
        """

        dir_key = as_directory_key(cwd_key)
        page = self._store.list_objects(dir_key, delimiter=DELIMITER)
        if page.key_count == 0 and not self._resolver.is_root(dir_key):
            raise NotFoundError(f"No such directory: {self._resolver.to_path(dir_key)}")

        files: list[FileInfo] = []
        for prefix in page.common_prefixes:
            # The marker may be missing when the directory only exists implicitly.
            marker = self._store.head_object(prefix)
            files.append(
                synthesize_file_info(
                    prefix,
                    modified=marker.last_modified if marker else None,
                    cwd_key=dir_key,
                    basename=True,
                )
            )

        for obj in page.contents:
            if obj.key == dir_key:
                continue
            files.append(
                synthesize_file_info(
                    obj.key,
                    obj.size,
                    obj.last_modified,
                    cwd_key=dir_key,
                    basename=True,
                )
            )
        return files
