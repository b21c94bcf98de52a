"""Filesystem driver consumed by the FTP protocol engine.

``BucketFtpDriver`` is created once per server; ``authenticate`` hands out one
``BucketFtpSession`` per connection. Sessions share the driver's store client and keep
their own current directory. Paths may be absolute or relative to that directory.
"""

from __future__ import annotations

import dataclasses
import hmac
import logging
import weakref
from dataclasses import dataclass

from bucketftp_core.config import AdapterConfig
from bucketftp_core.domain.file_info import FileInfo, synthesize_file_info
from bucketftp_core.errors import (
    AuthFailureError,
    InvalidPathError,
    NotFoundError,
    NotSupportedError,
)
from bucketftp_core.fs.bulk import BulkObjectOps
from bucketftp_core.fs.directories import DirectoryEmulator
from bucketftp_core.fs.streams import READ_MODES, WRITE_MODES, ObjectFileHandle
from bucketftp_core.io.paths import PathResolver, as_directory_key
from bucketftp_core.observability import log_event
from bucketftp_core.store.object_store import ObjectStoreClient
from bucketftp_core.store.stores import Boto3ObjectStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerSettings:
    host: str
    port: int
    max_connections: int


def _matches(given: str, expected: str) -> bool:
    # An unset credential never matches, not even an empty string.
    if not expected:
        return False
    return hmac.compare_digest((given or "").encode("utf-8"), expected.encode("utf-8"))


class BucketFtpDriver:
    def __init__(self, config: AdapterConfig, store: ObjectStoreClient | None = None) -> None:
        self.config = config
        self.store = store if store is not None else Boto3ObjectStore.from_config(config)
        self.resolver = PathResolver(config.root_prefix)

    def welcome(self) -> str:
        return self.config.welcome_message

    def get_settings(self) -> ServerSettings:
        return ServerSettings(
            host=self.config.host,
            port=self.config.port,
            max_connections=self.config.max_connections,
        )

    def get_tls_config(self) -> None:
        raise NotSupportedError("TLS is not implemented")

    def authenticate(self, user: str, password: str) -> BucketFtpSession:
        if not _matches(user, self.config.ftp_user):
            log_event(logger, "bucketftp.auth", level=logging.WARNING, user=user, status="unknown_user")
            raise AuthFailureError(f"incorrect username: {user}")
        if not _matches(password, self.config.ftp_password):
            log_event(logger, "bucketftp.auth", level=logging.WARNING, user=user, status="bad_password")
            raise AuthFailureError("incorrect password")

        log_event(logger, "bucketftp.auth", user=user, status="ok")
        return BucketFtpSession(
            store=self.store, resolver=self.resolver, config=self.config, user=user
        )


class BucketFtpSession:
    """One authenticated connection's view of the bucket."""

    def __init__(
        self,
        *,
        store: ObjectStoreClient,
        resolver: PathResolver,
        config: AdapterConfig,
        user: str,
    ) -> None:
        self.user = user
        self._store = store
        self._resolver = resolver
        self._config = config
        self._directories = DirectoryEmulator(store, resolver)
        self._bulk = BulkObjectOps(store, resolver, self._directories)
        self._cwd = resolver.root_key
        self._handles: weakref.WeakSet[ObjectFileHandle] = weakref.WeakSet()

    @property
    def cwd_key(self) -> str:
        return self._cwd

    def _resolve(self, path: str, *, directory: bool = False) -> str:
        return self._resolver.resolve(self._resolver.join(self._cwd, path), directory=directory)

    def current_directory(self) -> str:
        return self._resolver.to_path(self._cwd)

    def change_directory(self, path: str) -> str:
        key = self._resolve(path, directory=True)
        self._cwd = self._directories.change_directory(key)
        log_event(logger, "bucketftp.cwd", user=self.user, key=self._cwd)
        return self.current_directory()

    def make_directory(self, path: str) -> None:
        key = self._resolve(path, directory=True)
        self._directories.make_directory(
            key, require_parent=self._config.require_parent_directory
        )

    def list_files(self, path: str | None = None) -> list[FileInfo]:
        key = self._cwd if path is None else self._resolve(path, directory=True)
        return self._directories.list_files(key)

    def open_file(self, path: str, mode: str = "rb") -> ObjectFileHandle:
        if mode not in READ_MODES | WRITE_MODES:
            raise NotSupportedError(f"Unsupported open mode: {mode!r}")

        key = self._resolve(path)
        if key.endswith("/") or self._resolver.is_root(key):
            if mode in WRITE_MODES:
                raise InvalidPathError(f"Cannot open a directory for writing: {path!r}")
            raise NotFoundError(f"Not a file: {path!r}")

        if mode in WRITE_MODES and self._config.require_parent_directory:
            self._directories.require_parent(key)
        handle = ObjectFileHandle(
            self._store, key, mode, conduit_capacity=self._config.conduit_capacity
        )
        self._handles.add(handle)
        return handle

    def stat_file(self, path: str) -> FileInfo:
        key = self._resolve(path)
        if self._resolver.is_root(as_directory_key(key)):
            root = synthesize_file_info(self._resolver.root_key, cwd_key=self._resolver.root_key)
            return dataclasses.replace(root, name="/")

        if not key.endswith("/"):
            summary = self._store.head_object(key)
            if summary is not None:
                return synthesize_file_info(
                    key, summary.size, summary.last_modified, cwd_key=self._cwd
                )

        dir_key = as_directory_key(key)
        if not self._directories.exists(dir_key):
            raise NotFoundError(f"No such file or directory: {self._resolver.to_path(key)}")
        marker = self._store.head_object(dir_key)
        return synthesize_file_info(
            dir_key, modified=marker.last_modified if marker else None, cwd_key=self._cwd
        )

    def delete_file(self, path: str) -> None:
        self._bulk.delete(self._resolve(path))

    def rename_file(self, source: str, dest: str) -> None:
        source_key = self._resolve(source)
        dest_key = self._resolve(dest)
        if self._config.require_parent_directory:
            self._directories.require_parent(dest_key)
        self._bulk.rename(source_key, dest_key)

    def can_allocate(self, size: int) -> bool:
        return True

    def chmod(self, path: str, mode: int) -> None:
        raise NotSupportedError("chmod is not supported by the object store")

    def close(self) -> None:
        """Abort every handle the client left open; pending uploads are discarded."""

        leftover = [handle for handle in list(self._handles) if not handle.closed]
        for handle in leftover:
            handle.abort()
        self._handles.clear()
        log_event(
            logger, "bucketftp.session", user=self.user, stage="closed", aborted=len(leftover)
        )
