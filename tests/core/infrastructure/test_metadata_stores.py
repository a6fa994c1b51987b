"""Unit tests for the per-variant metadata stores."""

import json
import threading
import time
from datetime import datetime, timezone

import pytest

from portfolio.core.codecs.metadata_codec import encode_native_metadata
from portfolio.core.infrastructure.local.local_object_store import LocalObjectStore
from portfolio.core.infrastructure.memory.in_memory_key_value_store import InMemoryKeyValueStore
from portfolio.core.infrastructure.memory.in_memory_object_store import InMemoryObjectStore
from portfolio.core.infrastructure.metadata_stores import (
    BulkMetadataStore,
    FilenameMetadataStore,
    NativeMetadataStore,
    SidecarMetadataStore,
)
from portfolio.core.models.errors import ConfigurationError, StorageError
from portfolio.core.models.photo import PhotoRecord
from portfolio.core.utils.constants import ERROR_CODE_METADATA_DECODE_FAILED

UUID = "0f8fad5b-d9cb-469f-a165-70867728950e"


def make_record(record_id: str, *, title: str = "Title", sort_key: int = 1) -> PhotoRecord:
    return PhotoRecord(
        id=record_id,
        title=title,
        upload_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        sort_key=sort_key,
        key=f"photos/{record_id}.jpg",
    )


class SlowKeyValueStore(InMemoryKeyValueStore):
    """Widens the read-modify-write window of the bulk collection."""

    def get(self, key: str) -> str | None:
        value = super().get(key)
        time.sleep(0.05)
        return value


class RendezvousKeyValueStore(InMemoryKeyValueStore):
    """Holds the first read of each of two writers until both have read."""

    def __init__(self) -> None:
        super().__init__()
        self._barrier = threading.Barrier(2, timeout=5)
        self._waiting = 2

    def get(self, key: str) -> str | None:
        value = super().get(key)
        if self._waiting > 0:
            self._waiting -= 1
            self._barrier.wait()
        return value


class TestSidecarMetadataStore:
    def test_save_load_remove(self) -> None:
        kv = InMemoryKeyValueStore()
        store = SidecarMetadataStore(kv)

        store.save(make_record("a"))
        store.save(make_record("b"))

        assert sorted(store.load([])) == ["a", "b"]
        assert kv.get("photo:a") is not None
        assert store.remove("a") is True
        assert store.remove("a") is False
        assert list(store.load([])) == ["b"]

    def test_corrupt_document_becomes_placeholder(self) -> None:
        kv = InMemoryKeyValueStore({"photo:a": "{broken"})

        records = SidecarMetadataStore(kv).load([])

        assert records["a"].placeholder is True

    def test_document_under_wrong_key_becomes_placeholder(self) -> None:
        kv = InMemoryKeyValueStore()
        SidecarMetadataStore(kv).save(make_record("a"))
        kv.set("photo:b", kv.get("photo:a"))

        records = SidecarMetadataStore(kv).load([])

        assert records["a"].placeholder is False
        assert records["b"].placeholder is True

    def test_unrelated_keys_ignored(self) -> None:
        kv = InMemoryKeyValueStore({"photos": "[]", "session:1": "x"})

        assert SidecarMetadataStore(kv).load([]) == {}


class TestNativeMetadataStore:
    def test_rejects_store_without_native_metadata(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError):
            NativeMetadataStore(LocalObjectStore(tmp_path))

    def test_load_reads_attached_metadata(self) -> None:
        objects = InMemoryObjectStore()
        record = make_record(UUID, title="Native")
        objects.put_object(
            key=record.key,
            data=b"img",
            content_type="image/jpeg",
            metadata=encode_native_metadata(record),
        )
        store = NativeMetadataStore(objects)

        records = store.load(objects.list_objects(prefix="photos/"))

        assert records[UUID].title == "Native"

    def test_objects_without_metadata_are_skipped(self) -> None:
        objects = InMemoryObjectStore()
        objects.put_object(key="photos/plain.jpg", data=b"img", content_type="image/jpeg")

        assert NativeMetadataStore(objects).load(objects.list_objects(prefix="photos/")) == {}

    def test_mismatched_id_becomes_placeholder(self) -> None:
        objects = InMemoryObjectStore()
        objects.put_object(
            key=f"photos/{UUID}.jpg",
            data=b"img",
            content_type="image/jpeg",
            metadata=encode_native_metadata(make_record("someone-else")),
        )

        records = NativeMetadataStore(objects).load(objects.list_objects(prefix="photos/"))

        assert records[UUID].placeholder is True

    def test_writes_are_no_ops(self) -> None:
        store = NativeMetadataStore(InMemoryObjectStore())

        store.save(make_record("a"))

        assert store.remove("a") is False
        assert store.object_metadata(make_record("a"))["photo-id"] == "a"


class TestFilenameMetadataStore:
    def test_object_key_encodes_timestamp_id_and_title(self) -> None:
        key = FilenameMetadataStore().object_key(
            record_id=UUID, title="Sunset Over Bay", sort_key=1_700_000_000_000
        )

        assert key == f"photos/1700000000000-{UUID}-Sunset%20Over%20Bay.jpg"

    def test_nothing_to_load_or_remove(self) -> None:
        store = FilenameMetadataStore()

        assert store.load([]) == {}
        assert store.remove(UUID) is False


class TestBulkMetadataStore:
    def test_save_appends_to_collection(self) -> None:
        kv = InMemoryKeyValueStore()
        store = BulkMetadataStore(kv)

        store.save(make_record("a"))
        store.save(make_record("b"))

        assert [item["id"] for item in json.loads(kv.get("photos"))] == ["a", "b"]

    def test_save_replaces_existing_id(self) -> None:
        kv = InMemoryKeyValueStore()
        store = BulkMetadataStore(kv)

        store.save(make_record("a", title="old"))
        store.save(make_record("a", title="new"))

        assert [item["title"] for item in json.loads(kv.get("photos"))] == ["new"]

    def test_remove_and_prune(self) -> None:
        kv = InMemoryKeyValueStore()
        store = BulkMetadataStore(kv)
        for record_id in "abc":
            store.save(make_record(record_id))

        assert store.remove("b") is True
        assert store.remove("b") is False
        assert store.prune(["a", "zzz"]) == ["a"]
        assert list(store.load([])) == ["c"]

    def test_rewrite_preserves_undecodable_items(self) -> None:
        junk = {"id": "junk", "title": 7}
        kv = InMemoryKeyValueStore({"photos": json.dumps([junk])})
        store = BulkMetadataStore(kv)

        store.save(make_record("a"))

        assert json.loads(kv.get("photos"))[0] == junk

    def test_corrupt_collection_loads_empty_and_refuses_writes(self) -> None:
        kv = InMemoryKeyValueStore({"photos": "not json"})
        store = BulkMetadataStore(kv)

        assert store.load([]) == {}
        with pytest.raises(StorageError) as exc:
            store.save(make_record("a"))

        assert exc.value.error_code == ERROR_CODE_METADATA_DECODE_FAILED
        assert kv.get("photos") == "not json"

    def test_duplicate_ids_first_wins(self) -> None:
        first = make_record("a", title="first").to_wire()
        second = make_record("a", title="second").to_wire()
        kv = InMemoryKeyValueStore({"photos": json.dumps([first, second])})

        assert BulkMetadataStore(kv).load([])["a"].title == "first"

    def test_custom_collection_key(self) -> None:
        kv = InMemoryKeyValueStore()

        BulkMetadataStore(kv, collection_key="gallery").save(make_record("a"))

        assert kv.get("photos") is None
        assert kv.get("gallery") is not None


class TestBulkConcurrency:
    def test_concurrent_puts_on_one_instance_keep_both_records(self) -> None:
        kv = SlowKeyValueStore()
        store = BulkMetadataStore(kv)

        threads = [
            threading.Thread(target=store.save, args=(make_record(record_id),))
            for record_id in ("a", "b")
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(item["id"] for item in json.loads(kv.get("photos"))) == ["a", "b"]

    def test_uncoordinated_writers_lose_exactly_one_record(self) -> None:
        kv = RendezvousKeyValueStore()
        writers = [BulkMetadataStore(kv), BulkMetadataStore(kv)]

        threads = [
            threading.Thread(target=writer.save, args=(make_record(record_id),))
            for writer, record_id in zip(writers, ("a", "b"))
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        items = json.loads(kv.get("photos"))
        assert len(items) == 1
        assert items[0]["id"] in {"a", "b"}
        assert items[0] == make_record(items[0]["id"]).to_wire()
