"""
Shared pytest fixtures for lineage tests.

Provides an in-memory lineage table (mongomock) and reusable record data.
"""

import mongomock
import pytest

from libs.lineage import MongoRecordStore
from libs.models import LineageRecord
from services.dagster.lineage_pipelines.resources import LineageStoreResource


PARTITION_KEY = "hello-spk"


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def mongomock_client():
    """In-memory MongoDB client for tests."""
    return mongomock.MongoClient()


@pytest.fixture
def lineage_collection(mongomock_client):
    """Raw lineage collection, for asserting on persisted documents."""
    return mongomock_client["deployments"]["lineage"]


@pytest.fixture
def store(lineage_collection):
    """MongoRecordStore over the in-memory lineage collection."""
    return MongoRecordStore(lineage_collection)


@pytest.fixture
def partition_key():
    """Deployment channel partition used across tests."""
    return PARTITION_KEY


# =============================================================================
# Record Fixtures
# =============================================================================

@pytest.fixture
def build_record_dict():
    """Persisted layout of a stage 1 record."""
    return {
        "PartitionKey": PARTITION_KEY,
        "RowKey": "aaaaaaaaaaaa",
        "commitId": "abc123",
        "imageTag": "hello-spk-master-1234",
        "service": "svcA",
        "p1": "1234",
        "sourceRepo": "https://github.com/org/hello-spk",
    }


@pytest.fixture
def build_record(build_record_dict):
    """Stage 1 LineageRecord instance."""
    return LineageRecord(**build_record_dict)


@pytest.fixture
def release_record_dict(build_record_dict):
    """Persisted layout of a record that has passed stage 2."""
    return {
        **build_record_dict,
        "RowKey": "bbbbbbbbbbbb",
        "p2": "5678",
        "env": "qa",
        "hldCommitId": "def456",
        "pr": "42",
        "hldRepo": "https://github.com/org/hld",
    }


@pytest.fixture
def release_record(release_record_dict):
    """Stage 2 LineageRecord instance."""
    return LineageRecord(**release_record_dict)


# =============================================================================
# Resource Fixtures
# =============================================================================

@pytest.fixture
def lineage_resource(monkeypatch, mongomock_client):
    """LineageStoreResource configured to use the mongomock client."""
    monkeypatch.setattr(
        "services.dagster.lineage_pipelines.resources.lineage_store_resource.MongoClient",
        lambda *args, **kwargs: mongomock_client,
    )
    return LineageStoreResource(
        connection_string="mongodb://localhost:27017",
        partition_key=PARTITION_KEY,
    )
