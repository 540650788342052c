"""
Unit tests for MongoRecordStore.

Uses mongomock to exercise the store without a live MongoDB, and mocks to
inject driver failures.
"""

from unittest.mock import MagicMock

import pytest
from pymongo.errors import (
    AutoReconnect,
    ExecutionTimeout,
    ServerSelectionTimeoutError,
)

from libs.lineage import (
    ConcurrencyConflictError,
    MongoRecordStore,
    StoreError,
    StoreTimeoutError,
    StoreWriteError,
)
from libs.lineage.store import ETAG_FIELD
from libs.models import LineageRecord, LineageStoreSettings


# =============================================================================
# Insert / Query
# =============================================================================


def test_insert_persists_alias_layout_with_etag(store, lineage_collection, build_record):
    stored = store.insert(build_record)

    assert stored.etag is not None
    document = lineage_collection.find_one({"RowKey": build_record.row_key})
    assert document["PartitionKey"] == "hello-spk"
    assert document["imageTag"] == "hello-spk-master-1234"
    assert document[ETAG_FIELD] == stored.etag
    assert "p2" not in document


def test_insert_duplicate_key_raises_store_write_error(store, build_record):
    store.insert(build_record)

    with pytest.raises(StoreWriteError, match="already exists"):
        store.insert(build_record)


def test_query_filters_by_partition_and_field(store, build_record):
    document = build_record.to_document()
    store.insert(build_record)
    store.insert(LineageRecord(**{**document, "RowKey": "othertag0001", "imageTag": "other-tag"}))
    store.insert(LineageRecord(**{**document, "PartitionKey": "other"}))

    results = store.query("hello-spk", "imageTag", "hello-spk-master-1234")

    assert [record.row_key for record in results] == [build_record.row_key]
    assert results[0].etag is not None


def test_query_is_case_sensitive(store, build_record):
    store.insert(build_record)
    assert store.query("hello-spk", "imageTag", "HELLO-SPK-MASTER-1234") == []


def test_query_preserves_insertion_order(store, build_record):
    keys = ["k00000000001", "k00000000002", "k00000000003"]
    for key in keys:
        store.insert(LineageRecord(**{**build_record.to_document(), "RowKey": key}))

    results = store.query("hello-spk", "imageTag", build_record.image_tag)
    assert [record.row_key for record in results] == keys


def test_query_returns_empty_list_when_nothing_matches(store):
    assert store.query("hello-spk", "imageTag", "missing") == []


# =============================================================================
# Replace
# =============================================================================


def test_replace_with_current_etag_succeeds(store, lineage_collection, build_record):
    stored = store.insert(build_record)

    replaced = store.replace(stored.with_updates(p2="5678", env="QA"))

    assert replaced.etag != stored.etag
    document = lineage_collection.find_one({"RowKey": build_record.row_key})
    assert document["p2"] == "5678"
    assert document["env"] == "qa"
    assert document[ETAG_FIELD] == replaced.etag


def test_replace_with_stale_etag_raises_conflict(store, lineage_collection, build_record):
    stored = store.insert(build_record)
    store.replace(stored.with_updates(p2="first"))

    with pytest.raises(ConcurrencyConflictError):
        store.replace(stored.with_updates(p2="second"))

    document = lineage_collection.find_one({"RowKey": build_record.row_key})
    assert document["p2"] == "first"


def test_conflict_is_a_store_write_error():
    assert issubclass(ConcurrencyConflictError, StoreWriteError)


def test_replace_missing_record_raises_not_found(store, build_record):
    with pytest.raises(StoreWriteError, match="not found") as exc_info:
        store.replace(build_record.model_copy(update={"etag": "v1"}))
    assert not isinstance(exc_info.value, ConcurrencyConflictError)


def test_replace_document_without_etag(store, lineage_collection, build_record):
    lineage_collection.insert_one(build_record.to_document())
    [legacy] = store.query("hello-spk", "imageTag", build_record.image_tag)
    assert legacy.etag is None

    replaced = store.replace(legacy.with_updates(p2="1"))

    assert replaced.etag is not None
    assert lineage_collection.find_one({"RowKey": build_record.row_key})["p2"] == "1"


# =============================================================================
# Delete
# =============================================================================


def test_delete_removes_record(store, lineage_collection, build_record):
    store.insert(build_record)
    store.delete(build_record.partition_key, build_record.row_key)
    assert lineage_collection.count_documents({}) == 0


def test_delete_missing_record_raises(store):
    with pytest.raises(StoreWriteError):
        store.delete("hello-spk", "missing")


# =============================================================================
# Error translation
# =============================================================================


@pytest.fixture
def failing_collection():
    return MagicMock()


def test_query_timeout_raises_store_timeout(failing_collection):
    failing_collection.find.side_effect = ExecutionTimeout("operation exceeded time limit")
    store = MongoRecordStore(failing_collection)

    with pytest.raises(StoreTimeoutError):
        store.query("hello-spk", "imageTag", "tag")


def test_server_selection_timeout_raises_store_timeout(failing_collection, build_record):
    failing_collection.insert_one.side_effect = ServerSelectionTimeoutError("no servers")
    store = MongoRecordStore(failing_collection)

    with pytest.raises(StoreTimeoutError):
        store.insert(build_record)


def test_query_failure_raises_store_error(failing_collection):
    failing_collection.find.side_effect = AutoReconnect("connection reset")
    store = MongoRecordStore(failing_collection)

    with pytest.raises(StoreError) as exc_info:
        store.query("hello-spk", "imageTag", "tag")
    assert not isinstance(exc_info.value, StoreWriteError)


def test_write_failure_raises_store_write_error(failing_collection, build_record):
    failing_collection.replace_one.side_effect = AutoReconnect("connection reset")
    store = MongoRecordStore(failing_collection)

    with pytest.raises(StoreWriteError):
        store.replace(build_record)


def test_indexes_created_once(failing_collection, build_record):
    store = MongoRecordStore(failing_collection)
    store.insert(build_record)
    store.insert(build_record.model_copy(update={"row_key": "other"}))

    index_names = [call.kwargs["name"] for call in failing_collection.create_index.call_args_list]
    assert index_names.count("partition_row_key") == 1
    assert "partition_imageTag" in index_names


def test_from_settings_applies_timeout(monkeypatch):
    captured = {}

    def fake_client(*args, **kwargs):
        captured["args"] = args
        captured["kwargs"] = kwargs
        return MagicMock()

    monkeypatch.setattr("libs.lineage.store.MongoClient", fake_client)
    settings = LineageStoreSettings(
        LINEAGE_MONGO_URI="mongodb://localhost:27017",
        LINEAGE_PARTITION_KEY="hello-spk",
        LINEAGE_TIMEOUT_MS=1500,
        _env_file=None,
    )

    MongoRecordStore.from_settings(settings)

    assert captured["args"] == ("mongodb://localhost:27017",)
    assert captured["kwargs"]["timeoutMS"] == 1500
    assert captured["kwargs"]["serverSelectionTimeoutMS"] == 1500
