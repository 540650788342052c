# =============================================================================
# Stage Resolvers
# =============================================================================
# One entry point per stage transition. Each call validates its event,
# queries candidates, applies the correlation policy and performs exactly one
# store write (the manifest-commit finalizer skips a write that would not
# change the record).
# =============================================================================

"""
Stage resolvers for the deployment lineage table.

- record_build: source build -> artifact (stage 1, always inserts)
- record_release: artifact -> environment release (stage 2)
- record_manifest_generation: release -> manifest generation (stage 3)
- record_manifest_commit: attach the manifest commit to a stage 3 record

Store errors propagate unchanged; nothing here retries. A replace that loses
an optimistic-concurrency race raises ConcurrencyConflictError.
"""

import logging
from typing import Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from libs.models import (
    BuildEvent,
    LineageRecord,
    ManifestCommitEvent,
    ManifestGenerationEvent,
    ReleaseEvent,
)

from .errors import ValidationError
from .policy import (
    Resolution,
    ResolutionAction,
    plan_manifest_commit,
    plan_manifest_generation,
    plan_release,
)
from .query import CorrelationKey, find_candidates
from .row_key import new_row_key
from .store import RecordStore

__all__ = [
    "record_build",
    "record_release",
    "record_manifest_generation",
    "record_manifest_commit",
]

logger = logging.getLogger(__name__)

EventT = TypeVar("EventT", bound=BaseModel)


def _validate_event(event_cls: type[EventT], **values: Optional[str]) -> EventT:
    """Build a stage event, reporting missing or malformed fields as ValidationError."""
    try:
        return event_cls.model_validate(values)
    except PydanticValidationError as exc:
        fields = sorted({".".join(str(part) for part in error["loc"]) for error in exc.errors()})
        raise ValidationError(
            f"Invalid {event_cls.__name__}: check {', '.join(fields)}"
        ) from exc


def _require_partition(partition_key: str) -> None:
    if not partition_key or not partition_key.strip():
        raise ValidationError("A partition key is required")


def _write(store: RecordStore, resolution: Resolution) -> LineageRecord:
    if resolution.action is ResolutionAction.MUTATE:
        return store.replace(resolution.record)
    return store.insert(resolution.record)


# =============================================================================
# Stage 1
# =============================================================================


def record_build(
    store: RecordStore,
    partition_key: str,
    p1: str,
    image_tag: str,
    service: str,
    commit_id: str,
    repository: Optional[str] = None,
) -> LineageRecord:
    """
    Start a new lineage from a source build.

    No lookup is performed: stage 1 is the origin of a lineage. The run id,
    image tag, service and commit id are stored verbatim; the repository URL
    is lower-cased.

    Args:
        store: Record store
        partition_key: Deployment channel partition
        p1: Stage 1 run id
        image_tag: Tag of the built artifact
        service: Service name
        commit_id: Source commit id
        repository: Source repository URL

    Returns:
        The inserted record

    Raises:
        ValidationError: A required input is missing
        StoreWriteError: The insert failed
    """
    _require_partition(partition_key)
    event = _validate_event(
        BuildEvent,
        p1=p1,
        image_tag=image_tag,
        service=service,
        commit_id=commit_id,
        repository=repository,
    )
    record = LineageRecord(
        partition_key=partition_key,
        row_key=new_row_key(),
        commit_id=event.commit_id,
        image_tag=event.image_tag,
        p1=event.p1,
        service=event.service,
        source_repo=event.repository,
    )
    stored = store.insert(record)
    logger.info(f"Added build {event.p1} for image tag {event.image_tag} as {stored.row_key}")
    return stored


# =============================================================================
# Stage 2
# =============================================================================


def record_release(
    store: RecordStore,
    partition_key: str,
    p2: str,
    image_tag: str,
    hld_commit_id: str,
    env: str,
    pr: Optional[str] = None,
    repository: Optional[str] = None,
) -> LineageRecord:
    """
    Attach an environment release to the lineage of its image tag.

    Args:
        store: Record store
        partition_key: Deployment channel partition
        p2: Stage 2 run id
        image_tag: Released artifact tag (correlation key)
        hld_commit_id: Deployment-definition commit id
        env: Target environment
        pr: Pull request id, if any
        repository: Deployment-definition repository URL

    Returns:
        The replaced, cloned or newly created record

    Raises:
        ValidationError: A required input is missing
        ConcurrencyConflictError: The matched record changed before the replace
        StoreWriteError: The write failed
    """
    _require_partition(partition_key)
    event = _validate_event(
        ReleaseEvent,
        p2=p2,
        image_tag=image_tag,
        hld_commit_id=hld_commit_id,
        env=env,
        pr=pr,
        repository=repository,
    )
    candidates = find_candidates(store, partition_key, CorrelationKey.IMAGE_TAG, event.image_tag)
    resolution = plan_release(candidates, partition_key, event)
    stored = _write(store, resolution)

    if resolution.action is ResolutionAction.MUTATE:
        logger.info(
            f"Added p2 {event.p2} for image tag {event.image_tag} "
            f"to matching record {stored.row_key}"
        )
    elif resolution.action is ResolutionAction.CLONE:
        logger.info(
            f"Added p2 {event.p2} for image tag {event.image_tag} "
            f"as {stored.row_key}, cloned from a similar record"
        )
    else:
        logger.warning(
            f"Added p2 {event.p2} for image tag {event.image_tag} as {stored.row_key} "
            f"- no build record was found"
        )
    return stored


# =============================================================================
# Stage 3
# =============================================================================


def record_manifest_generation(
    store: RecordStore,
    partition_key: str,
    hld_commit_id: str,
    p3: str,
    manifest_commit_id: Optional[str] = None,
    pr: Optional[str] = None,
    repository: Optional[str] = None,
) -> LineageRecord:
    """
    Attach a manifest generation run to the release that produced its HLD commit.

    Candidates are looked up by hldCommitId; when none exist and a PR id is
    given, the lookup falls back to the PR (the HLD commit may not be known
    yet when a run is triggered manually).

    Args:
        store: Record store
        partition_key: Deployment channel partition
        hld_commit_id: Deployment-definition commit id (correlation key)
        p3: Stage 3 run id
        manifest_commit_id: Generated manifest commit id, if already known
        pr: Pull request id (fallback correlation key)
        repository: Manifest repository URL

    Returns:
        The replaced, cloned or newly created record

    Raises:
        ValidationError: A required input is missing
        ConcurrencyConflictError: The matched record changed before the replace
        StoreWriteError: The write failed
    """
    _require_partition(partition_key)
    event = _validate_event(
        ManifestGenerationEvent,
        hld_commit_id=hld_commit_id,
        p3=p3,
        manifest_commit_id=manifest_commit_id,
        pr=pr,
        repository=repository,
    )
    candidates = find_candidates(
        store, partition_key, CorrelationKey.HLD_COMMIT_ID, event.hld_commit_id
    )
    if not candidates and event.pr:
        logger.info(f"No record for hldCommitId {event.hld_commit_id}, looking up pr {event.pr}")
        candidates = find_candidates(store, partition_key, CorrelationKey.PR, event.pr)

    resolution = plan_manifest_generation(candidates, partition_key, event)
    stored = _write(store, resolution)

    if resolution.action is ResolutionAction.MUTATE:
        logger.info(
            f"Added p3 {event.p3} for hldCommitId {event.hld_commit_id} "
            f"to matching record {stored.row_key}"
        )
    elif resolution.action is ResolutionAction.CLONE:
        logger.info(
            f"Added p3 {event.p3} for hldCommitId {event.hld_commit_id} "
            f"as {stored.row_key}, cloned from a similar record"
        )
    else:
        logger.warning(
            f"Added p3 {event.p3} for hldCommitId {event.hld_commit_id} as {stored.row_key} "
            f"- no release record was found"
        )
    return stored


# =============================================================================
# Manifest commit
# =============================================================================


def record_manifest_commit(
    store: RecordStore,
    partition_key: str,
    p3: str,
    manifest_commit_id: str,
    repository: Optional[str] = None,
) -> LineageRecord:
    """
    Set the manifest commit on the record written by stage 3 run `p3`.

    Calling this again with the same values leaves the stored record as it is.

    Raises:
        ValidationError: A required input is missing
        NoCorrelationFoundError: No record carries this p3
        ConcurrencyConflictError: The record changed before the replace
    """
    _require_partition(partition_key)
    event = _validate_event(
        ManifestCommitEvent,
        p3=p3,
        manifest_commit_id=manifest_commit_id,
        repository=repository,
    )
    candidates = find_candidates(store, partition_key, CorrelationKey.P3, event.p3)
    resolution = plan_manifest_commit(candidates, event)

    current = candidates[0]
    if resolution.record.to_document() == current.to_document():
        logger.info(
            f"Manifest commit {event.manifest_commit_id} already recorded for p3 {event.p3}"
        )
        return current

    stored = _write(store, resolution)
    logger.info(f"Updated manifest commit {event.manifest_commit_id} for p3 {event.p3}")
    return stored
