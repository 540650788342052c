# =============================================================================
# Configuration Models Module
# =============================================================================
# Provides Pydantic Settings models for service configuration:
# - LineageStoreSettings: MongoDB-backed lineage table configuration
# =============================================================================

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

__all__ = [
    "LineageStoreSettings",
]


# =============================================================================
# Lineage Store Settings (MongoDB Lineage Table)
# =============================================================================

class LineageStoreSettings(BaseSettings):
    """
    Configuration for the shared deployment lineage table.

    Maps environment variables with prefix "LINEAGE_":
    - LINEAGE_MONGO_URI → mongo_uri
    - LINEAGE_DATABASE → database
    - LINEAGE_COLLECTION → collection
    - LINEAGE_PARTITION_KEY → partition_key
    - LINEAGE_TIMEOUT_MS → timeout_ms

    Attributes:
        mongo_uri: MongoDB connection URI
        database: Database holding the lineage table (default: "deployments")
        collection: Collection used as the lineage table (default: "lineage")
        partition_key: Deployment channel key written on every record
        timeout_ms: Deadline applied to every store call (default: 10000)
    """

    mongo_uri: str = Field(..., validation_alias="LINEAGE_MONGO_URI", description="MongoDB connection URI")
    database: str = Field("deployments", validation_alias="LINEAGE_DATABASE", description="Database name")
    collection: str = Field("lineage", validation_alias="LINEAGE_COLLECTION", description="Lineage collection name")
    partition_key: str = Field(..., min_length=1, validation_alias="LINEAGE_PARTITION_KEY", description="Deployment channel key")
    timeout_ms: int = Field(10000, gt=0, validation_alias="LINEAGE_TIMEOUT_MS", description="Per-call deadline in milliseconds")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore unrelated env vars from shared .env files
    )
