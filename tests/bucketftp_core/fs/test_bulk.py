from __future__ import annotations

import pytest

from bucketftp_core.errors import InvalidPathError, NotFoundError, PartialFailureError, UpstreamError
from bucketftp_core.fs.bulk import BulkObjectOps
from bucketftp_core.fs.directories import DirectoryEmulator
from bucketftp_core.io.paths import PathResolver
from bucketftp_core.testing.memory_store import MemoryObjectStore


def _ops(objects=None, root_prefix: str = "") -> tuple[BulkObjectOps, MemoryObjectStore]:
    store = MemoryObjectStore(objects)
    return BulkObjectOps(store, PathResolver(root_prefix)), store


def test_probe_prefers_file_then_directory() -> None:
    bulk, _ = _ops({"name": b"file", "name/child": b"c", "implicit/x": b"x"})

    assert bulk.probe("name") == "name"
    assert bulk.probe("implicit") == "implicit/"
    assert bulk.probe("") == ""
    with pytest.raises(NotFoundError):
        bulk.probe("ghost")


def test_delete_directory_removes_all_descendants_in_one_batch() -> None:
    bulk, store = _ops(
        {
            "d/": b"",
            "d/a.txt": b"a",
            "d/sub/": b"",
            "d/sub/b.txt": b"b",
            "dx/keep.txt": b"k",
        }
    )

    deleted = bulk.delete("d")

    assert deleted == ["d/", "d/a.txt", "d/sub/", "d/sub/b.txt"]
    assert store.keys() == ["dx/keep.txt"]
    assert [op.name for op in store.ops].count("delete_objects") == 1
    with pytest.raises(NotFoundError):
        DirectoryEmulator(store, PathResolver()).change_directory("d/")


def test_delete_single_file_leaves_siblings() -> None:
    bulk, store = _ops({"d/a.txt": b"a", "d/b.txt": b"b"})

    assert bulk.delete("d/a.txt") == ["d/a.txt"]
    assert store.keys() == ["d/b.txt"]


def test_delete_root_is_refused() -> None:
    bulk, store = _ops({"a": b"1"}, root_prefix="tenant/")

    with pytest.raises(InvalidPathError):
        bulk.delete("tenant/")
    assert not any(op.name == "delete_objects" for op in store.ops)


def test_delete_missing_path_fails() -> None:
    bulk, _ = _ops()
    with pytest.raises(NotFoundError):
        bulk.delete("ghost")


def test_delete_partial_failure_is_reported() -> None:
    bulk, store = _ops({"d/a": b"a", "d/b": b"b", "d/c": b"c"})
    store.fail("delete_objects", "d/b")

    with pytest.raises(PartialFailureError) as excinfo:
        bulk.delete("d/")

    assert excinfo.value.failed_keys == ["d/b"]
    assert store.keys() == ["d/b"]


def test_rename_file() -> None:
    bulk, store = _ops({"old.txt": b"payload"})

    assert bulk.rename("old.txt", "new.txt") == [("old.txt", "new.txt")]
    assert store.keys() == ["new.txt"]
    assert store.read("new.txt") == b"payload"


def test_rename_directory_mirrors_every_key() -> None:
    objects = {f"src/f{i:02d}.txt": f"{i}".encode() for i in range(12)}
    objects["src/"] = b""
    objects["src/nested/deep.txt"] = b"deep"
    bulk, store = _ops(objects)

    bulk.rename("src", "dst")

    assert not any(key.startswith("src/") for key in store.keys())
    assert store.read("dst/") == b""
    assert store.read("dst/nested/deep.txt") == b"deep"
    for i in range(12):
        assert store.read(f"dst/f{i:02d}.txt") == f"{i}".encode()

    names = [op.name for op in store.ops]
    assert names.count("copy_object") == 14
    assert names.count("delete_objects") == 1
    # Every copy happens before the delete.
    assert names.index("delete_objects") > max(i for i, n in enumerate(names) if n == "copy_object")


def test_rename_copy_failure_leaves_copies_and_deletes_nothing() -> None:
    bulk, store = _ops({"src/a": b"a", "src/b": b"b", "src/c": b"c"})
    store.fail("copy_object", "src/b")

    with pytest.raises(UpstreamError):
        bulk.rename("src/", "dst/")

    assert store.keys() == ["dst/a", "src/a", "src/b", "src/c"]
    assert not any(op.name == "delete_objects" for op in store.ops)


@pytest.mark.parametrize(
    ("source", "dest"),
    [
        ("", ""),
        ("", "elsewhere"),
        ("d", "d"),
        ("d/", "d/inner"),
        ("d", ""),
        ("f.txt", "f.txt"),
        ("f.txt", ""),
    ],
)
def test_invalid_renames_are_refused(source: str, dest: str) -> None:
    bulk, store = _ops({"d/x": b"x", "f.txt": b"f"})

    with pytest.raises(InvalidPathError):
        bulk.rename(source, dest)
    assert not any(op.name in {"copy_object", "delete_objects"} for op in store.ops)


def test_rename_missing_source_fails() -> None:
    bulk, _ = _ops()
    with pytest.raises(NotFoundError):
        bulk.rename("ghost", "other")


@pytest.mark.parametrize("dest", ["d", "d/", "implicit"])
def test_rename_file_onto_existing_directory_is_refused(dest: str) -> None:
    objects = {"a.txt": b"a", "d/": b"", "implicit/x": b"x"}
    bulk, store = _ops(objects)

    with pytest.raises(InvalidPathError, match="existing directory"):
        bulk.rename("a.txt", dest)

    assert store.keys() == sorted(objects)
    assert not any(op.name in {"copy_object", "delete_objects"} for op in store.ops)
