# =============================================================================
# Data Models Library
# =============================================================================
# Pydantic models and settings for the deployment lineage table.
# =============================================================================

"""
Data models for deployment lineage tracking.

This library provides:
- LineageRecord: one row of the lineage table
- Stage events: BuildEvent, ReleaseEvent, ManifestGenerationEvent,
  ManifestCommitEvent
- Configuration models
"""

__version__ = "0.1.0"

# Lineage models
from .lineage import (
    NormalizedStr,
    OptionalNormalizedStr,
    LineageRecord,
    BuildEvent,
    ReleaseEvent,
    ManifestGenerationEvent,
    ManifestCommitEvent,
)

# Configuration models
from .config import (
    LineageStoreSettings,
)

__all__ = [
    # Lineage models
    "NormalizedStr",
    "OptionalNormalizedStr",
    "LineageRecord",
    "BuildEvent",
    "ReleaseEvent",
    "ManifestGenerationEvent",
    "ManifestCommitEvent",
    # Configuration models
    "LineageStoreSettings",
]
