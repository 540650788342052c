"""Route a flat stage event payload to the resolver for its stage."""

import logging
from typing import Any, Mapping, Optional

from libs.models import LineageRecord

from .errors import ValidationError
from .resolvers import (
    record_build,
    record_manifest_commit,
    record_manifest_generation,
    record_release,
)
from .store import RecordStore

__all__ = ["EVENT_FIELDS", "record_stage_event"]

logger = logging.getLogger(__name__)

EVENT_FIELDS = (
    "p1",
    "p2",
    "p3",
    "imageTag",
    "commitId",
    "service",
    "env",
    "hldCommitId",
    "manifestCommitId",
    "pr",
    "repository",
)


def _value(fields: Mapping[str, Any], name: str) -> Optional[str]:
    value = fields.get(name)
    if value is None:
        return None
    value = str(value)
    return value if value.strip() else None


def _require(fields: Mapping[str, Any], names: tuple[str, ...], stage: str) -> None:
    missing = [name for name in names if _value(fields, name) is None]
    if missing:
        raise ValidationError(
            f"For updating the details of the {stage}, you must specify "
            f"{', '.join(names)} (missing: {', '.join(missing)})"
        )


def record_stage_event(
    store: RecordStore, partition_key: str, fields: Mapping[str, Any]
) -> LineageRecord:
    """
    Record one stage event given as camelCase fields.

    The stage is chosen by which run id is present, in order:

    1. p1 -> source build (requires imageTag, commitId, service)
    2. p2 -> environment release (requires imageTag, hldCommitId, env)
    3. p3 with hldCommitId -> manifest generation
    4. p3 with manifestCommitId -> manifest commit

    Blank values count as missing.

    Raises:
        ValidationError: No stage fits the fields, or a required field is missing
    """
    unknown = sorted(set(fields) - set(EVENT_FIELDS))
    if unknown:
        logger.debug(f"Ignoring unknown event fields: {unknown}")

    def get(name: str) -> Optional[str]:
        return _value(fields, name)

    if get("p1"):
        _require(fields, ("imageTag", "commitId", "service"), "source build")
        return record_build(
            store,
            partition_key,
            p1=get("p1"),
            image_tag=get("imageTag"),
            service=get("service"),
            commit_id=get("commitId"),
            repository=get("repository"),
        )

    if get("p2"):
        _require(fields, ("imageTag", "hldCommitId", "env"), "image tag release")
        return record_release(
            store,
            partition_key,
            p2=get("p2"),
            image_tag=get("imageTag"),
            hld_commit_id=get("hldCommitId"),
            env=get("env"),
            pr=get("pr"),
            repository=get("repository"),
        )

    if get("p3") and get("hldCommitId"):
        return record_manifest_generation(
            store,
            partition_key,
            hld_commit_id=get("hldCommitId"),
            p3=get("p3"),
            manifest_commit_id=get("manifestCommitId"),
            pr=get("pr"),
            repository=get("repository"),
        )

    if get("p3") and get("manifestCommitId"):
        return record_manifest_commit(
            store,
            partition_key,
            p3=get("p3"),
            manifest_commit_id=get("manifestCommitId"),
            repository=get("repository"),
        )

    raise ValidationError("No action could be performed for specified arguments.")
