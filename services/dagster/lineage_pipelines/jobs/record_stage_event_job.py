"""Stage event recording job (op-based).

Pipelines report each stage (build, release, manifest generation, manifest
commit) by launching this job with the event fields as op config.
"""

from dagster import job

from ..ops import record_stage_event_op


@job(
    name="record_stage_event_job",
    description="Record a build, release or manifest generation event in the deployment lineage table",
)
def record_stage_event_job():
    """
    Single-step job: record_stage_event_op routes the configured event to the
    resolver for its stage and writes it to the lineage table.
    """
    record_stage_event_op()
