# =============================================================================
# Lineage Ops - Record pipeline stage events
# =============================================================================
# Operations that write stage events from build, release and manifest
# generation pipelines into the deployment lineage table.
# =============================================================================

"""Ops that record deployment stage events."""

from typing import Optional

from dagster import Config, OpExecutionContext, op
from pydantic import Field

from libs.lineage.dispatch import EVENT_FIELDS

__all__ = ["StageEventConfig", "record_stage_event_op"]


class StageEventConfig(Config):
    """
    Run config for a single stage event.

    Set the run id of the stage being reported (p1, p2 or p3) plus the fields
    that stage requires. Unset fields are treated as not given.
    """

    p1: Optional[str] = Field(None, description="Source build run id (stage 1)")
    p2: Optional[str] = Field(None, description="Release run id (stage 2)")
    p3: Optional[str] = Field(None, description="Manifest generation run id (stage 3)")
    image_tag: Optional[str] = Field(None, description="Artifact image tag")
    commit_id: Optional[str] = Field(None, description="Source commit id")
    service: Optional[str] = Field(None, description="Service name")
    env: Optional[str] = Field(None, description="Target environment")
    hld_commit_id: Optional[str] = Field(None, description="Deployment-definition commit id")
    manifest_commit_id: Optional[str] = Field(None, description="Manifest commit id")
    pr: Optional[str] = Field(None, description="Pull request id")
    repository: Optional[str] = Field(None, description="Repository URL for this stage")

    def to_event_fields(self) -> dict:
        """Return the set values keyed by their camelCase event field names."""
        values = {
            "p1": self.p1,
            "p2": self.p2,
            "p3": self.p3,
            "imageTag": self.image_tag,
            "commitId": self.commit_id,
            "service": self.service,
            "env": self.env,
            "hldCommitId": self.hld_commit_id,
            "manifestCommitId": self.manifest_commit_id,
            "pr": self.pr,
            "repository": self.repository,
        }
        return {name: values[name] for name in EVENT_FIELDS if values[name] is not None}


@op(required_resource_keys={"lineage_store"})
def record_stage_event_op(context: OpExecutionContext, config: StageEventConfig) -> dict:
    """
    Record one stage event in the lineage table.

    Args:
        context: Dagster op execution context
        config: Stage event fields

    Returns:
        The stored lineage record as its persisted document

    Raises:
        ValidationError: No stage fits the given fields
        StoreError: The lineage table rejected the write
    """
    lineage_store = context.resources.lineage_store
    fields = config.to_event_fields()

    context.log.info(f"Recording stage event: {sorted(fields)}")
    record = lineage_store.record_stage_event(fields)
    context.log.info(
        f"Recorded stage event in {record.partition_key}/{record.row_key}"
    )
    return record.to_document()
