"""Assets for the deployment lineage code location."""

from .health_checks import lineage_self_test

__all__ = [
    "lineage_self_test",
]
