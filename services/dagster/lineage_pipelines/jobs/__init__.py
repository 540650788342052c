"""Dagster Jobs - Executable Workflows.

Note: The self-test asset job (lineage_self_test_job) is defined in
definitions.py, not here. This module only contains op-based jobs.
"""

from .record_stage_event_job import record_stage_event_job

__all__ = ["record_stage_event_job"]
