# =============================================================================
# Correlation Policy
# =============================================================================
# Pure decision functions: given the candidates found for a stage event,
# decide whether to mutate a record in place, clone one, or create a new one.
# No I/O happens here.
# =============================================================================

"""
Match / clone / create policy for stage events.

Each stage transition follows the same three tiers:

1. **Mutate** the first candidate whose secondary fields match exactly. A
   candidate field that is absent or empty matches anything; a non-empty
   field must equal the event value.
2. **Clone** the last candidate into a new record when candidates exist but
   none matches exactly. The artifact or commit was redeployed.
3. **Create** a degraded record with blank upstream fields when there are no
   candidates at all.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from libs.models import (
    LineageRecord,
    ManifestCommitEvent,
    ManifestGenerationEvent,
    ReleaseEvent,
)

from .errors import NoCorrelationFoundError
from .row_key import new_row_key

__all__ = [
    "ResolutionAction",
    "Resolution",
    "find_release_match",
    "plan_release",
    "find_manifest_generation_match",
    "plan_manifest_generation",
    "plan_manifest_commit",
]

RowKeyFactory = Callable[[], str]


class ResolutionAction(str, Enum):
    """How a stage event is written to the lineage table."""

    MUTATE = "mutate"
    CLONE = "clone"
    CREATE = "create"


@dataclass(frozen=True)
class Resolution:
    """The record to write and whether it replaces or inserts."""

    action: ResolutionAction
    record: LineageRecord

    @property
    def is_insert(self) -> bool:
        return self.action is not ResolutionAction.MUTATE

    @property
    def is_degraded(self) -> bool:
        return self.action is ResolutionAction.CREATE


def _matches(stored: Optional[str], expected: Optional[str]) -> bool:
    return not stored or stored == expected


# =============================================================================
# Stage 2: artifact -> environment release
# =============================================================================


def find_release_match(
    candidates: Sequence[LineageRecord], event: ReleaseEvent
) -> Optional[LineageRecord]:
    """Return the first candidate whose p2, hldCommitId and env fit the event."""
    for candidate in candidates:
        if (
            _matches(candidate.p2, event.p2)
            and _matches(candidate.hld_commit_id, event.hld_commit_id)
            and _matches(candidate.env, event.env)
        ):
            return candidate
    return None


def plan_release(
    candidates: Sequence[LineageRecord],
    partition_key: str,
    event: ReleaseEvent,
    row_key_factory: RowKeyFactory = new_row_key,
) -> Resolution:
    """
    Decide how a stage 2 event lands in the table.

    Args:
        candidates: Records sharing the event's image tag, in store order
        partition_key: Partition for a newly created record
        event: Validated release event
        row_key_factory: RowKey source for cloned/created records

    Returns:
        Resolution carrying the record to replace (MUTATE) or insert
    """
    stage_fields = dict(
        p2=event.p2,
        hld_commit_id=event.hld_commit_id,
        env=event.env,
        pr=event.pr,
        hld_repo=event.repository,
    )

    found = find_release_match(candidates, event)
    if found is not None:
        return Resolution(ResolutionAction.MUTATE, found.with_updates(**stage_fields))

    if candidates:
        last = candidates[-1]
        clone = LineageRecord(
            partition_key=last.partition_key,
            row_key=row_key_factory(),
            commit_id=last.commit_id,
            image_tag=last.image_tag,
            p1=last.p1,
            service=last.service,
            source_repo=last.source_repo,
            **stage_fields,
        )
        return Resolution(ResolutionAction.CLONE, clone)

    created = LineageRecord(
        partition_key=partition_key,
        row_key=row_key_factory(),
        commit_id="",
        image_tag=event.image_tag,
        p1="",
        service="",
        **stage_fields,
    )
    return Resolution(ResolutionAction.CREATE, created)


# =============================================================================
# Stage 3: environment release -> manifest generation
# =============================================================================


def find_manifest_generation_match(
    candidates: Sequence[LineageRecord], event: ManifestGenerationEvent
) -> Optional[LineageRecord]:
    """Return the first candidate whose p3 and manifestCommitId fit the event."""
    for candidate in candidates:
        if _matches(candidate.p3, event.p3) and _matches(
            candidate.manifest_commit_id, event.manifest_commit_id
        ):
            return candidate
    return None


def plan_manifest_generation(
    candidates: Sequence[LineageRecord],
    partition_key: str,
    event: ManifestGenerationEvent,
    row_key_factory: RowKeyFactory = new_row_key,
) -> Resolution:
    """
    Decide how a stage 3 event lands in the table.

    On a match, hldCommitId is overwritten with the event's value so that a
    record found through the PR fallback picks up the concrete commit id.
    """
    stage_fields = dict(
        hld_commit_id=event.hld_commit_id,
        p3=event.p3,
        manifest_commit_id=event.manifest_commit_id,
        pr=event.pr,
        manifest_repo=event.repository,
    )

    found = find_manifest_generation_match(candidates, event)
    if found is not None:
        return Resolution(ResolutionAction.MUTATE, found.with_updates(**stage_fields))

    if candidates:
        last = candidates[-1]
        clone = LineageRecord(
            partition_key=last.partition_key,
            row_key=row_key_factory(),
            commit_id=last.commit_id,
            env=last.env,
            hld_repo=last.hld_repo,
            image_tag=last.image_tag,
            p1=last.p1,
            p2=last.p2,
            service=last.service,
            source_repo=last.source_repo,
            **stage_fields,
        )
        return Resolution(ResolutionAction.CLONE, clone)

    created = LineageRecord(
        partition_key=partition_key,
        row_key=row_key_factory(),
        commit_id="",
        env="",
        image_tag="",
        p1="",
        p2="",
        service="",
        **stage_fields,
    )
    return Resolution(ResolutionAction.CREATE, created)


# =============================================================================
# Manifest commit finalization
# =============================================================================


def plan_manifest_commit(
    candidates: Sequence[LineageRecord], event: ManifestCommitEvent
) -> Resolution:
    """
    Attach a manifest commit to the record created by the same stage 3 run.

    Raises:
        NoCorrelationFoundError: No record carries the event's p3
    """
    if not candidates:
        raise NoCorrelationFoundError(
            f"No manifest generation found for p3={event.p3!r} "
            f"to update manifest commit {event.manifest_commit_id}"
        )
    # Ideally exactly one record per stage 3 run id.
    updated = candidates[0].with_updates(
        manifest_commit_id=event.manifest_commit_id,
        manifest_repo=event.repository,
    )
    return Resolution(ResolutionAction.MUTATE, updated)
