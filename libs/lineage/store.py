# =============================================================================
# Lineage Record Store
# =============================================================================
# Query/insert/replace/delete primitives over the shared lineage table, with
# optimistic concurrency via a per-record version token (_etag).
# =============================================================================

"""
Record store client for the lineage table.

`RecordStore` is the contract the resolvers depend on. `MongoRecordStore`
implements it over a MongoDB collection; every document carries an `_etag`
that is regenerated on each write, and `replace` only succeeds while the
stored `_etag` still equals the one read at query time.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Protocol
from uuid import uuid4

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import (
    DuplicateKeyError,
    ExecutionTimeout,
    NetworkTimeout,
    PyMongoError,
    ServerSelectionTimeoutError,
    WTimeoutError,
)

from libs.models import LineageRecord, LineageStoreSettings

from .errors import (
    ConcurrencyConflictError,
    StoreError,
    StoreTimeoutError,
    StoreWriteError,
)

__all__ = ["RecordStore", "MongoRecordStore", "ETAG_FIELD"]

logger = logging.getLogger(__name__)

ETAG_FIELD = "_etag"

_TIMEOUT_ERRORS = (
    ExecutionTimeout,
    NetworkTimeout,
    ServerSelectionTimeoutError,
    WTimeoutError,
)

# Fields the resolvers query by; each gets a (PartitionKey, field) index.
_INDEXED_FIELDS = ("imageTag", "hldCommitId", "pr", "p3", "service")


class RecordStore(Protocol):
    """Primitives the lineage engine needs from the shared table."""

    def query(self, partition_key: str, field_name: str, field_value: str) -> list[LineageRecord]:
        ...

    def insert(self, record: LineageRecord) -> LineageRecord:
        ...

    def replace(self, record: LineageRecord) -> LineageRecord:
        ...

    def delete(self, partition_key: str, row_key: str) -> None:
        ...


@contextmanager
def _store_errors(action: str, *, write: bool = False) -> Iterator[None]:
    """Translate driver exceptions into lineage store errors."""
    try:
        yield
    except _TIMEOUT_ERRORS as exc:
        raise StoreTimeoutError(f"{action} timed out: {exc}") from exc
    except PyMongoError as exc:
        error_cls = StoreWriteError if write else StoreError
        raise error_cls(f"{action} failed: {exc}") from exc


def _new_etag() -> str:
    return uuid4().hex


class MongoRecordStore:
    """
    Lineage table backed by a MongoDB collection.

    Documents are stored in the LineageRecord alias layout plus `_etag`.
    A unique index on (PartitionKey, RowKey) makes `insert` fail rather than
    overwrite when the key already exists.
    """

    def __init__(self, collection: Collection) -> None:
        self._collection = collection
        self._indexes_ready = False

    @classmethod
    def from_settings(cls, settings: LineageStoreSettings) -> "MongoRecordStore":
        """
        Build a store from settings.

        The timeout is applied client-wide (`timeoutMS`), so every query and
        write carries the same deadline.
        """
        client: MongoClient = MongoClient(
            settings.mongo_uri,
            timeoutMS=settings.timeout_ms,
            serverSelectionTimeoutMS=settings.timeout_ms,
        )
        return cls(client[settings.database][settings.collection])

    @property
    def collection(self) -> Collection:
        return self._collection

    def ensure_indexes(self) -> None:
        """Create the identity and correlation-key indexes (idempotent)."""
        if self._indexes_ready:
            return
        with _store_errors("create lineage indexes"):
            self._collection.create_index(
                [("PartitionKey", ASCENDING), ("RowKey", ASCENDING)],
                unique=True,
                name="partition_row_key",
            )
            for field_name in _INDEXED_FIELDS:
                self._collection.create_index(
                    [("PartitionKey", ASCENDING), (field_name, ASCENDING)],
                    name=f"partition_{field_name}",
                )
        self._indexes_ready = True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(self, partition_key: str, field_name: str, field_value: str) -> list[LineageRecord]:
        """
        Return every record in the partition whose field equals the value.

        Records come back in the collection's natural order, which the
        resolvers rely on to treat the last element as the most recent.
        """
        with _store_errors(f"query {field_name}={field_value!r}"):
            documents = list(
                self._collection.find({"PartitionKey": partition_key, field_name: field_value})
            )
        return [self._to_record(document) for document in documents]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, record: LineageRecord) -> LineageRecord:
        self.ensure_indexes()
        etag = _new_etag()
        document = {**record.to_document(), ETAG_FIELD: etag}
        with _store_errors(f"insert {record.partition_key}/{record.row_key}", write=True):
            try:
                self._collection.insert_one(document)
            except DuplicateKeyError as exc:
                raise StoreWriteError(
                    f"Record {record.partition_key}/{record.row_key} already exists"
                ) from exc
        logger.debug(f"Inserted lineage record {record.partition_key}/{record.row_key}")
        return record.model_copy(update={"etag": etag})

    def replace(self, record: LineageRecord) -> LineageRecord:
        """
        Replace a stored record, checking its version token.

        A record read from a document without `_etag` (written by another
        tool) carries `etag=None` and only replaces a document that still has
        no `_etag`.

        Raises:
            ConcurrencyConflictError: The stored record changed since it was read
            StoreWriteError: The record does not exist or the write failed
        """
        identity = {"PartitionKey": record.partition_key, "RowKey": record.row_key}
        version = record.etag if record.etag is not None else {"$exists": False}
        etag = _new_etag()
        document = {**record.to_document(), ETAG_FIELD: etag}

        action = f"replace {record.partition_key}/{record.row_key}"
        with _store_errors(action, write=True):
            result = self._collection.replace_one({**identity, ETAG_FIELD: version}, document)
            if result.matched_count == 0:
                exists = self._collection.count_documents(identity) > 0
            else:
                exists = True

        if result.matched_count == 0:
            if exists:
                raise ConcurrencyConflictError(
                    f"Record {record.partition_key}/{record.row_key} was modified "
                    f"since it was read (etag {record.etag})"
                )
            raise StoreWriteError(f"Record {record.partition_key}/{record.row_key} not found")

        logger.debug(f"Replaced lineage record {record.partition_key}/{record.row_key}")
        return record.model_copy(update={"etag": etag})

    def delete(self, partition_key: str, row_key: str) -> None:
        with _store_errors(f"delete {partition_key}/{row_key}", write=True):
            result = self._collection.delete_one({"PartitionKey": partition_key, "RowKey": row_key})
        if result.deleted_count == 0:
            raise StoreWriteError(f"Record {partition_key}/{row_key} not found")
        logger.debug(f"Deleted lineage record {partition_key}/{row_key}")

    @staticmethod
    def _to_record(document: dict) -> LineageRecord:
        stripped = dict(document)
        stripped.pop("_id", None)
        return LineageRecord.model_validate(stripped)
