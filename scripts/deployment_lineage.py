#!/usr/bin/env python
"""
Record deployment stage events and self-test the lineage table.

Usage:
    python scripts/deployment_lineage.py record --p1 1234 --image-tag hello-spk-master-1234 \\
        --commit-id abc123 --service svcA
    python scripts/deployment_lineage.py record --p2 5678 --image-tag hello-spk-master-1234 \\
        --hld-commit-id def456 --env qa
    python scripts/deployment_lineage.py record --p3 9012 --hld-commit-id def456
    python scripts/deployment_lineage.py record --p3 9012 --manifest-commit-id 0a1b2c
    python scripts/deployment_lineage.py self-test

Connection settings come from the environment (or .env):
LINEAGE_MONGO_URI, LINEAGE_PARTITION_KEY, LINEAGE_DATABASE, LINEAGE_COLLECTION,
LINEAGE_TIMEOUT_MS. --partition-key overrides LINEAGE_PARTITION_KEY.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from pydantic import ValidationError as SettingsError

from libs.lineage import LineageError, MongoRecordStore, record_stage_event, run_self_test
from libs.models import LineageStoreSettings

logger = logging.getLogger("deployment_lineage")

# (flag, event field)
EVENT_OPTIONS = [
    ("--p1", "p1"),
    ("--p2", "p2"),
    ("--p3", "p3"),
    ("--image-tag", "imageTag"),
    ("--commit-id", "commitId"),
    ("--service", "service"),
    ("--env", "env"),
    ("--hld-commit-id", "hldCommitId"),
    ("--manifest-commit-id", "manifestCommitId"),
    ("--pr", "pr"),
    ("--repository", "repository"),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deployment lineage table tools")
    parser.add_argument(
        "--partition-key", help="Deployment channel partition (default: LINEAGE_PARTITION_KEY)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    record = subparsers.add_parser("record", help="Record a pipeline stage event")
    for flag, field in EVENT_OPTIONS:
        record.add_argument(flag, dest=field, help=f"Value for {field}")

    subparsers.add_parser("self-test", help="Write and delete synthetic lineage data")
    return parser


def load_settings(partition_key: Optional[str]) -> LineageStoreSettings:
    """Load settings from the environment, applying a partition key override."""
    if partition_key:
        return LineageStoreSettings(LINEAGE_PARTITION_KEY=partition_key)
    return LineageStoreSettings()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        settings = load_settings(args.partition_key)
    except SettingsError as e:
        print(f"ERROR: Missing or invalid lineage configuration:\n{e}", file=sys.stderr)
        return 1

    store = MongoRecordStore.from_settings(settings)

    try:
        if args.command == "record":
            fields = {field: getattr(args, field) for _, field in EVENT_OPTIONS}
            record = record_stage_event(store, settings.partition_key, fields)
            print(f"Recorded {record.partition_key}/{record.row_key}")
            return 0

        if run_self_test(store, settings.partition_key):
            return 0
        return 1
    except LineageError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
