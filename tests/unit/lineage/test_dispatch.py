"""Unit tests for stage event routing."""

from unittest.mock import patch

import pytest

from libs.lineage import ValidationError, record_stage_event


DISPATCH = "libs.lineage.dispatch"


def test_p1_routes_to_build(store, partition_key):
    record = record_stage_event(
        store,
        partition_key,
        {"p1": "1234", "imageTag": "tag", "commitId": "abc", "service": "svcA", "repository": "R"},
    )

    assert record.p1 == "1234"
    assert record.source_repo == "r"


def test_p2_routes_to_release(store, partition_key):
    record = record_stage_event(
        store,
        partition_key,
        {"p2": "5678", "imageTag": "tag", "hldCommitId": "DEF", "env": "QA", "pr": "7"},
    )

    assert record.p2 == "5678"
    assert record.env == "qa"
    assert record.pr == "7"


def test_p1_takes_priority_over_p2(partition_key):
    fields = {
        "p1": "1", "p2": "2", "imageTag": "t", "commitId": "c", "service": "s",
        "hldCommitId": "h", "env": "e",
    }
    with patch(f"{DISPATCH}.record_build") as build, patch(f"{DISPATCH}.record_release") as release:
        record_stage_event(object(), partition_key, fields)

    build.assert_called_once()
    release.assert_not_called()


def test_p3_with_hld_commit_routes_to_manifest_generation(partition_key):
    fields = {"p3": "9", "hldCommitId": "h", "manifestCommitId": "m"}
    with patch(f"{DISPATCH}.record_manifest_generation") as generation, patch(
        f"{DISPATCH}.record_manifest_commit"
    ) as commit:
        record_stage_event(object(), partition_key, fields)

    generation.assert_called_once()
    assert generation.call_args.kwargs["manifest_commit_id"] == "m"
    commit.assert_not_called()


def test_p3_with_manifest_commit_routes_to_finalizer(partition_key):
    fields = {"p3": "9", "manifestCommitId": "m", "repository": "https://m"}
    with patch(f"{DISPATCH}.record_manifest_commit") as commit:
        record_stage_event(object(), partition_key, fields)

    commit.assert_called_once()
    assert commit.call_args.kwargs == {
        "p3": "9",
        "manifest_commit_id": "m",
        "repository": "https://m",
    }


def test_missing_build_fields_are_named(store, partition_key):
    with pytest.raises(ValidationError, match="missing: commitId, service"):
        record_stage_event(store, partition_key, {"p1": "1", "imageTag": "t"})


def test_blank_values_count_as_missing(store, partition_key):
    with pytest.raises(ValidationError, match="missing: env"):
        record_stage_event(
            store, partition_key, {"p2": "1", "imageTag": "t", "hldCommitId": "h", "env": "  "}
        )


@pytest.mark.parametrize(
    "fields",
    [
        {},
        {"imageTag": "t", "service": "s"},
        {"p3": "9"},
        {"p1": ""},
    ],
)
def test_no_applicable_stage_raises(store, lineage_collection, partition_key, fields):
    with pytest.raises(ValidationError, match="No action could be performed"):
        record_stage_event(store, partition_key, fields)

    assert lineage_collection.count_documents({}) == 0
