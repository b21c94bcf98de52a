from __future__ import annotations

import posixpath
import stat
from dataclasses import dataclass
from datetime import datetime, timezone

# The store tracks neither directory sizes nor permissions.
DIRECTORY_SIZE = 0
FILE_MODE = stat.S_IFREG | 0o666
DIRECTORY_MODE = stat.S_IFDIR | 0o666
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class FileInfo:
    """Synthesized metadata for one object or emulated directory."""

    name: str
    size: int
    mode: int
    modified: datetime
    is_dir: bool

    @property
    def permissions(self) -> str:
        """``ls -l`` style mode string, e.g. ``drw-rw-rw-``."""

        return stat.filemode(self.mode)


def display_name(key: str, cwd_key: str = "", *, basename: bool = False) -> str:
    """Return ``key`` relative to ``cwd_key`` without its trailing slash.

    Keys outside the current directory are shown as-is; the current directory itself is ``.``.
    """

    name = key
    if cwd_key and key.startswith(cwd_key):
        name = key[len(cwd_key) :]
    name = name.rstrip("/")
    if not name:
        return "."
    if basename:
        return posixpath.basename(name)
    return name


def synthesize_file_info(
    key: str,
    size: int = 0,
    modified: datetime | None = None,
    *,
    cwd_key: str = "",
    basename: bool = False,
) -> FileInfo:
    is_dir = key.endswith("/") or key == cwd_key
    return FileInfo(
        name=display_name(key, cwd_key, basename=basename),
        size=DIRECTORY_SIZE if is_dir else int(size),
        mode=DIRECTORY_MODE if is_dir else FILE_MODE,
        modified=modified or EPOCH,
        is_dir=is_dir,
    )
