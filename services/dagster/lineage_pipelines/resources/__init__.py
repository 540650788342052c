"""Dagster Resources - External Service Connections."""

from .lineage_store_resource import LineageStoreResource

__all__ = [
    "LineageStoreResource",
]
