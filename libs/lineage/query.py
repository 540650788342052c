"""Candidate lookup over the lineage table by a known correlation key."""

import logging
from enum import Enum
from typing import Union

from libs.models import LineageRecord

from .errors import ValidationError
from .store import RecordStore

__all__ = ["CorrelationKey", "find_candidates"]

logger = logging.getLogger(__name__)


class CorrelationKey(str, Enum):
    """Record fields a stage event may be correlated by."""

    IMAGE_TAG = "imageTag"
    HLD_COMMIT_ID = "hldCommitId"
    PR = "pr"
    P3 = "p3"
    SERVICE = "service"


def find_candidates(
    store: RecordStore,
    partition_key: str,
    key: Union[CorrelationKey, str],
    value: str,
) -> list[LineageRecord]:
    """
    Find records in a partition whose correlation field equals a value.

    Matching is exact and case-sensitive. The store's return order is kept:
    callers treat the last element as the most recent record.

    Args:
        store: Record store to query
        partition_key: Deployment channel partition
        key: Correlation field to filter on (a CorrelationKey or its field name)
        value: Value the field must equal

    Returns:
        Matching records, possibly empty

    Raises:
        ValidationError: If `key` is not a known correlation field
    """
    try:
        key = CorrelationKey(key)
    except ValueError as exc:
        raise ValidationError(f"Unknown correlation key: {key!r}") from exc

    records = list(store.query(partition_key, key.value, value))
    logger.debug(f"Found {len(records)} candidate(s) for {key.value}={value!r} in {partition_key}")
    return records
