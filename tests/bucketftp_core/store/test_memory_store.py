from __future__ import annotations

import pytest

from bucketftp_core.errors import NotFoundError, PartialFailureError, UpstreamError
from bucketftp_core.testing.memory_store import MemoryObjectStore


def _seeded() -> MemoryObjectStore:
    return MemoryObjectStore(
        {
            "a/": b"",
            "a/x.txt": b"x",
            "a/sub/y.txt": b"yy",
            "ab/z.txt": b"z",
            "top.txt": b"t",
        }
    )


def test_list_objects_is_string_prefix_match() -> None:
    page = _seeded().list_objects("a")
    assert page.keys == ["a/", "a/sub/y.txt", "a/x.txt", "ab/z.txt"]
    assert page.common_prefixes == []


def test_list_objects_with_delimiter_groups_common_prefixes() -> None:
    store = _seeded()

    root = store.list_objects("", delimiter="/")
    assert root.common_prefixes == ["a/", "ab/"]
    assert root.keys == ["top.txt"]

    inside = store.list_objects("a/", delimiter="/")
    assert inside.common_prefixes == ["a/sub/"]
    assert inside.keys == ["a/", "a/x.txt"]


def test_list_objects_max_keys_counts_prefixes_and_objects() -> None:
    page = _seeded().list_objects("", delimiter="/", max_keys=1)
    assert page.key_count == 1
    assert page.common_prefixes == ["a/"]


def test_get_and_head_missing_key() -> None:
    store = MemoryObjectStore()
    assert store.head_object("nope") is None
    with pytest.raises(NotFoundError):
        store.get_object("nope")


def test_ops_are_recorded_in_order() -> None:
    store = MemoryObjectStore()
    store.put_object("k", b"v")
    store.copy_object("k", "k2")
    store.delete_objects(["k"])

    assert [op.name for op in store.ops] == ["put_object", "copy_object", "delete_objects"]
    assert store.ops[2].args == (["k"],)
    assert store.keys() == ["k2"]


def test_injected_failure_targets_one_key() -> None:
    store = MemoryObjectStore({"a": b"1", "b": b"2"})
    store.fail("copy_object", "b")

    store.copy_object("a", "a2")
    with pytest.raises(UpstreamError, match="injected"):
        store.copy_object("b", "b2")


def test_delete_objects_failure_is_partial() -> None:
    store = MemoryObjectStore({"a": b"1", "b": b"2", "c": b"3"})
    store.fail("delete_objects", "b")

    with pytest.raises(PartialFailureError) as excinfo:
        store.delete_objects(["a", "b", "c", "missing"])

    assert excinfo.value.failed_keys == ["b"]
    assert store.keys() == ["b"]
