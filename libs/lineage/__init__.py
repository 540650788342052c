# =============================================================================
# Deployment Lineage Library
# =============================================================================
# Correlation and upsert engine for the shared deployment lineage table.
# =============================================================================

"""
Deployment lineage engine.

This library provides:
- Stage resolvers: record_build, record_release, record_manifest_generation,
  record_manifest_commit
- record_stage_event: routes a flat event payload to its resolver
- Record store: RecordStore protocol and MongoRecordStore
- find_candidates / CorrelationKey: candidate lookup
- Pure policy: plan_release, plan_manifest_generation, plan_manifest_commit
- Self-test: run_self_test
"""

from .errors import (
    ConcurrencyConflictError,
    LineageError,
    NoCorrelationFoundError,
    StoreError,
    StoreTimeoutError,
    StoreWriteError,
    ValidationError,
)
from .row_key import new_row_key
from .store import MongoRecordStore, RecordStore
from .query import CorrelationKey, find_candidates
from .policy import (
    Resolution,
    ResolutionAction,
    plan_manifest_commit,
    plan_manifest_generation,
    plan_release,
)
from .resolvers import (
    record_build,
    record_manifest_commit,
    record_manifest_generation,
    record_release,
)
from .dispatch import record_stage_event
from .self_test import run_self_test

__all__ = [
    # Errors
    "LineageError",
    "StoreError",
    "StoreWriteError",
    "ConcurrencyConflictError",
    "StoreTimeoutError",
    "NoCorrelationFoundError",
    "ValidationError",
    # Store and lookup
    "new_row_key",
    "RecordStore",
    "MongoRecordStore",
    "CorrelationKey",
    "find_candidates",
    # Policy
    "Resolution",
    "ResolutionAction",
    "plan_release",
    "plan_manifest_generation",
    "plan_manifest_commit",
    # Resolvers
    "record_build",
    "record_release",
    "record_manifest_generation",
    "record_manifest_commit",
    "record_stage_event",
    "run_self_test",
]
