"""Dagster Ops - Reusable Computation Units."""

from .lineage_ops import StageEventConfig, record_stage_event_op

__all__ = [
    "StageEventConfig",
    "record_stage_event_op",
]
