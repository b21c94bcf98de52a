from __future__ import annotations

import pytest

from bucketftp_core.errors import InvalidPathError
from bucketftp_core.io.paths import MAX_KEY_BYTES, PathResolver, normalize_key


@pytest.mark.parametrize(
    ("root_prefix", "path", "expected"),
    [
        ("", "", ""),
        ("", "/", ""),
        ("", ".", ""),
        ("", "./", ""),
        ("", "/path", "path"),
        ("", "/path/", "path/"),
        ("", "/path//", "path/"),
        ("", "/path with spaces/", "path with spaces/"),
        ("", "/nested/path/", "nested/path/"),
        ("testprefix/", "", "testprefix/"),
        ("testprefix/", "/", "testprefix/"),
        ("testprefix/", ".", "testprefix/"),
        ("testprefix/", "/path", "testprefix/path"),
        ("testprefix/", "/path/", "testprefix/path/"),
        ("testprefix/", "/path//", "testprefix/path/"),
        ("testprefix/", "/path with spaces/", "testprefix/path with spaces/"),
        ("testprefix/", "/nested/path/", "testprefix/nested/path/"),
    ],
)
def test_resolve_maps_protocol_paths_to_keys(root_prefix: str, path: str, expected: str) -> None:
    assert PathResolver(root_prefix).resolve(path) == expected


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("a/./b", "a/b"),
        ("a//b///c", "a/b/c"),
        ("a/b/../c", "a/c"),
        ("../../etc/passwd", "etc/passwd"),
        ("/a/..", ""),
        ("/a/b/..", "a/"),
        ("dir/.", "dir/"),
    ],
)
def test_normalize_key_collapses_segments_and_clamps_at_root(path: str, expected: str) -> None:
    assert normalize_key(path) == expected


@pytest.mark.parametrize("path", ["", "/", "a", "a/", "a//b/", "x/../y", "/p q/r"])
def test_normalize_key_is_idempotent(path: str) -> None:
    once = normalize_key(path)
    assert normalize_key(once) == once


def test_normalize_key_directory_flag_adds_trailing_slash() -> None:
    assert normalize_key("dir", directory=True) == "dir/"
    assert normalize_key("dir/", directory=True) == "dir/"
    assert normalize_key("/", directory=True) == ""


def test_root_prefix_is_normalized() -> None:
    assert PathResolver("/testprefix").root_prefix == "testprefix/"
    assert PathResolver("a//b/").root_prefix == "a/b/"
    assert PathResolver("/").root_prefix == ""


def test_resolve_rejects_nul() -> None:
    with pytest.raises(InvalidPathError, match="NUL"):
        PathResolver().resolve("bad\x00name")


def test_resolve_rejects_keys_longer_than_limit() -> None:
    resolver = PathResolver("prefix/")
    ok = "a" * (MAX_KEY_BYTES - len("prefix/"))
    assert resolver.resolve(ok) == "prefix/" + ok

    with pytest.raises(InvalidPathError, match="exceeds"):
        resolver.resolve(ok + "a")


def test_resolve_counts_utf8_bytes() -> None:
    # Two bytes per character.
    with pytest.raises(InvalidPathError):
        PathResolver().resolve("é" * (MAX_KEY_BYTES // 2 + 1))


def test_to_path_and_relative() -> None:
    resolver = PathResolver("testprefix/")
    assert resolver.to_path("testprefix/") == "/"
    assert resolver.to_path("testprefix/a/b/") == "/a/b"
    assert resolver.to_path("testprefix/a/file.txt") == "/a/file.txt"

    with pytest.raises(InvalidPathError, match="outside"):
        resolver.relative("other/a")


def test_parent_key() -> None:
    resolver = PathResolver("root/")
    assert resolver.parent_key("root/") == "root/"
    assert resolver.parent_key("root/a") == "root/"
    assert resolver.parent_key("root/a/") == "root/"
    assert resolver.parent_key("root/a/b/c.txt") == "root/a/b/"


def test_join_resolves_relative_paths_against_cwd() -> None:
    resolver = PathResolver("root/")
    assert resolver.join("root/a/", "b") == "/a/b"
    assert resolver.join("root/a/", "/c") == "/c"
    assert resolver.join("root/a/", "..") == "/a/.."
    assert resolver.resolve(resolver.join("root/a/", ".."), directory=True) == "root/"
    assert resolver.join("root/", "x") == "/x"
