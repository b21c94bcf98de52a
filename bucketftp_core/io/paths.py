"""Protocol path to object key resolution.

Keys are root-relative and never start with ``/``. Directory keys end with ``/``;
file keys never do. The store root is the empty key, or the configured root prefix.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

from bucketftp_core.errors import InvalidPathError

# S3 rejects keys longer than 1024 bytes of UTF-8.
MAX_KEY_BYTES = 1024


def normalize_key(path: str, *, directory: bool = False) -> str:
    """Normalize a protocol path into a root-relative key.

    - Leading slashes are dropped, ``.``/``..`` and duplicate slashes are collapsed.
    - ``..`` never climbs above the root.
    - The root (``""``, ``/``, ``.``, ``./``) is always the empty key.
    - A trailing slash is kept when ``directory`` is set or the input already has one.
    """

    value = path or ""
    if "\x00" in value:
        raise InvalidPathError(f"Path contains a NUL character: {value!r}")

    last_segment = value.rstrip("/").rsplit("/", 1)[-1]
    wants_directory = directory or value.endswith("/") or last_segment in {".", ".."}

    cleaned = posixpath.normpath("/" + value.lstrip("/")).lstrip("/")
    if not cleaned:
        return ""
    if wants_directory:
        return cleaned + "/"
    return cleaned


def normalize_root_prefix(prefix: str | None) -> str:
    """Normalize a configured root prefix to ``""`` or a slash-terminated key."""

    return normalize_key(prefix or "", directory=True)


def as_directory_key(key: str) -> str:
    if not key or key.endswith("/"):
        return key
    return key + "/"


def as_file_key(key: str) -> str:
    return key.rstrip("/")


@dataclass(frozen=True)
class PathResolver:
    """Map protocol paths to keys under ``root_prefix`` and back."""

    root_prefix: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "root_prefix", normalize_root_prefix(self.root_prefix))

    @property
    def root_key(self) -> str:
        return self.root_prefix

    def resolve(self, path: str, *, directory: bool = False) -> str:
        key = self.root_prefix + normalize_key(path, directory=directory)
        if len(key.encode("utf-8")) > MAX_KEY_BYTES:
            raise InvalidPathError(f"Object key exceeds {MAX_KEY_BYTES} bytes: {path!r}")
        return key

    def is_root(self, key: str) -> bool:
        return key == self.root_prefix

    def relative(self, key: str) -> str:
        """Return ``key`` relative to the root prefix."""

        if not key.startswith(self.root_prefix):
            raise InvalidPathError(f"Key is outside the root prefix: {key!r}")
        return key[len(self.root_prefix) :]

    def to_path(self, key: str) -> str:
        """Return the absolute protocol path for ``key`` (``/`` for the root)."""

        return "/" + self.relative(key).rstrip("/")

    def parent_key(self, key: str) -> str:
        """Return the directory key containing ``key``; the root is its own parent."""

        if self.is_root(key):
            return key
        head = posixpath.dirname(self.relative(key).rstrip("/"))
        return self.root_prefix + (head + "/" if head else "")

    def join(self, cwd_key: str, path: str) -> str:
        """Resolve a possibly relative protocol path against the current directory."""

        if path.startswith("/"):
            return path
        return posixpath.join(self.to_path(cwd_key), path)
