"""Lineage Store Resource - Deployment lineage table operations."""

from __future__ import annotations

from functools import cached_property
from typing import Any, Mapping

from dagster import ConfigurableResource
from pydantic import Field
from pymongo import MongoClient

from libs.lineage import MongoRecordStore, record_stage_event, run_self_test
from libs.models import LineageRecord

__all__ = ["LineageStoreResource"]


class LineageStoreResource(ConfigurableResource):
    """
    Dagster resource for the shared deployment lineage table.

    Holds the connection and partition settings and exposes the lineage
    engine to ops and assets, so they never build store clients themselves.
    """

    connection_string: str = Field(..., description="MongoDB connection URI")
    database: str = Field("deployments", description="MongoDB database name")
    collection: str = Field("lineage", description="Lineage collection name")
    partition_key: str = Field(..., description="Deployment channel partition key")
    timeout_ms: int = Field(10000, description="Deadline for each store call in milliseconds")

    @cached_property
    def _client(self) -> MongoClient:
        return MongoClient(
            self.connection_string,
            timeoutMS=self.timeout_ms,
            serverSelectionTimeoutMS=self.timeout_ms,
        )

    @cached_property
    def _store(self) -> MongoRecordStore:
        return MongoRecordStore(self._client[self.database][self.collection])

    def get_store(self) -> MongoRecordStore:
        """Return the record store bound to the configured collection."""
        return self._store

    def record_stage_event(self, fields: Mapping[str, Any]) -> LineageRecord:
        """
        Record a stage event (camelCase fields) in the configured partition.
        """
        return record_stage_event(self._store, self.partition_key, fields)

    def run_self_test(self) -> bool:
        """
        Write and delete synthetic lineage data in the configured partition.
        """
        return run_self_test(self._store, self.partition_key)
