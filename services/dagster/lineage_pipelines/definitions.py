"""Dagster Definitions - Repository Configuration.

Defines assets, jobs and resources for deployment lineage tracking.
"""

import os

from dagster import Definitions, EnvVar, define_asset_job

from .assets import lineage_self_test
from .jobs import record_stage_event_job
from .resources import LineageStoreResource


# =============================================================================
# Resources
# =============================================================================

def lineage_store_from_env() -> LineageStoreResource:
    """
    Build the lineage store resource from the LINEAGE_* environment.

    The connection string and partition key are resolved by Dagster at run
    time; database, collection and timeout fall back to the same defaults as
    LineageStoreSettings when unset.
    """
    return LineageStoreResource(
        connection_string=EnvVar("LINEAGE_MONGO_URI"),
        partition_key=EnvVar("LINEAGE_PARTITION_KEY"),
        database=os.getenv("LINEAGE_DATABASE", "deployments"),
        collection=os.getenv("LINEAGE_COLLECTION", "lineage"),
        timeout_ms=int(os.getenv("LINEAGE_TIMEOUT_MS", "10000")),
    )


# =============================================================================
# Asset Jobs
# =============================================================================

lineage_self_test_job = define_asset_job(
    "lineage_self_test_job",
    selection=[lineage_self_test],
    description="Self-test for the deployment lineage table",
)


# =============================================================================
# Definitions
# =============================================================================

defs = Definitions(
    assets=[
        lineage_self_test,
    ],
    jobs=[
        lineage_self_test_job,
        record_stage_event_job,
    ],
    resources={
        "lineage_store": lineage_store_from_env(),
    },
    schedules=[],
    sensors=[],
)
