# =============================================================================
# Lineage Models Module
# =============================================================================
# Defines models for deployment lineage tracking:
# - LineageRecord: one row of the shared lineage table
# - BuildEvent: source build -> artifact (stage 1)
# - ReleaseEvent: artifact -> environment release (stage 2)
# - ManifestGenerationEvent: release -> manifest generation (stage 3)
# - ManifestCommitEvent: manifest commit finalization
# =============================================================================

from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

__all__ = [
    "NormalizedStr",
    "OptionalNormalizedStr",
    "LineageRecord",
    "BuildEvent",
    "ReleaseEvent",
    "ManifestGenerationEvent",
    "ManifestCommitEvent",
]


# =============================================================================
# Normalized String Types
# =============================================================================


def normalize_lower(value: Any) -> Any:
    """
    Lower-case a string value.

    Non-string values are passed through so that pydantic reports the type
    error itself.
    """
    if isinstance(value, str):
        return value.lower()
    return value


def normalize_optional_lower(value: Any) -> Any:
    """
    Lower-case an optional event value, treating blank strings as absent.

    Examples:
        >>> normalize_optional_lower("PR-42")
        'pr-42'
        >>> normalize_optional_lower("  ") is None
        True
    """
    if isinstance(value, str):
        if not value.strip():
            return None
        return value.lower()
    return value


NormalizedStr = Annotated[str, BeforeValidator(normalize_lower)]
"""String stored lower-case regardless of caller casing."""

OptionalNormalizedStr = Annotated[Optional[str], BeforeValidator(normalize_optional_lower)]
"""Optional event value, lower-cased; blank input means the value was not given."""

# Required event values: at least one non-whitespace character, stored as given.
RequiredStr = Annotated[str, Field(min_length=1, pattern=r"^\s*\S")]

RequiredNormalizedStr = Annotated[NormalizedStr, Field(min_length=1, pattern=r"^\s*\S")]


# =============================================================================
# Lineage Record
# =============================================================================


class LineageRecord(BaseModel):
    """
    One row of the deployment lineage table.

    A record is identified by (PartitionKey, RowKey) and accumulates the
    stage fields of a single logical deployment as stage events arrive.
    Persisted documents use the camelCase aliases below.

    Optional fields distinguish *absent* (None, omitted from the stored
    document) from *present but empty* (""). Degraded records created without
    a correlating predecessor carry "" placeholders for the upstream fields.
    Absent and empty fields both act as wildcards when matching.

    Attributes:
        partition_key: Deployment channel key, constant across a lineage
        row_key: Opaque unique key assigned at creation
        commit_id: Source commit (stage 1)
        image_tag: Built artifact tag, the stage 1 -> 2 correlation key
        service: Logical service name (stage 1)
        source_repo: Source repository URL (lower-case)
        p1: Stage 1 run identifier
        p2: Stage 2 run identifier
        p3: Stage 3 run identifier
        env: Target environment (lower-case)
        hld_commit_id: Deployment-definition commit, the stage 2 -> 3 key (lower-case)
        pr: Pull request id, fallback stage 2 -> 3 key (lower-case)
        hld_repo: Deployment-definition repository URL (lower-case)
        manifest_commit_id: Generated manifest commit (lower-case)
        manifest_repo: Manifest repository URL (lower-case)
        etag: Version token read from the store; never persisted as a field
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "PartitionKey": "hello-spk",
                "RowKey": "1f2e3d4c5b6a",
                "commitId": "abc123",
                "imageTag": "hello-spk-master-1234",
                "service": "svcA",
                "p1": "1234",
                "p2": "5678",
                "env": "qa",
                "hldCommitId": "def456",
            }
        },
    )

    partition_key: str = Field(..., alias="PartitionKey", description="Deployment channel key")
    row_key: str = Field(..., alias="RowKey", description="Unique record key")
    commit_id: str = Field(..., alias="commitId", description="Source commit id")
    image_tag: str = Field(..., alias="imageTag", description="Built artifact tag")
    service: str = Field(..., description="Logical service name")
    p1: str = Field(..., description="Stage 1 run id")
    source_repo: Optional[NormalizedStr] = Field(None, alias="sourceRepo")
    p2: Optional[str] = Field(None, description="Stage 2 run id")
    env: Optional[NormalizedStr] = Field(None, description="Target environment")
    hld_commit_id: Optional[NormalizedStr] = Field(None, alias="hldCommitId")
    pr: Optional[NormalizedStr] = Field(None, description="Pull request id")
    hld_repo: Optional[NormalizedStr] = Field(None, alias="hldRepo")
    p3: Optional[str] = Field(None, description="Stage 3 run id")
    manifest_commit_id: Optional[NormalizedStr] = Field(None, alias="manifestCommitId")
    manifest_repo: Optional[NormalizedStr] = Field(None, alias="manifestRepo")
    etag: Optional[str] = Field(None, alias="_etag", exclude=True)

    def with_updates(self, **changes: Any) -> "LineageRecord":
        """
        Return a validated copy with the given fields set.

        Keys whose value is None are skipped, so optional inputs that were not
        supplied leave the stored value untouched. Identity and version token
        are carried over unchanged.
        """
        data = self.model_dump(exclude_none=True)
        data.update({name: value for name, value in changes.items() if value is not None})
        data["partition_key"] = self.partition_key
        data["row_key"] = self.row_key
        return LineageRecord(etag=self.etag, **data)

    def to_document(self) -> dict[str, Any]:
        """Persisted representation: aliased field names, absent fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Stage Events
# =============================================================================


class _StageEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BuildEvent(_StageEvent):
    """Source build produced an artifact (stage 1). Values are kept verbatim."""

    p1: RequiredStr
    image_tag: RequiredStr = Field(..., alias="imageTag")
    service: RequiredStr
    commit_id: RequiredStr = Field(..., alias="commitId")
    repository: OptionalNormalizedStr = None


class ReleaseEvent(_StageEvent):
    """An artifact was released into an environment via a deployment-definition commit (stage 2)."""

    p2: RequiredStr
    image_tag: RequiredStr = Field(..., alias="imageTag")
    env: RequiredNormalizedStr
    hld_commit_id: RequiredNormalizedStr = Field(..., alias="hldCommitId")
    pr: OptionalNormalizedStr = None
    repository: OptionalNormalizedStr = None


class ManifestGenerationEvent(_StageEvent):
    """Manifests were generated from a deployment-definition commit (stage 3)."""

    hld_commit_id: RequiredNormalizedStr = Field(..., alias="hldCommitId")
    p3: RequiredStr
    manifest_commit_id: OptionalNormalizedStr = Field(None, alias="manifestCommitId")
    pr: OptionalNormalizedStr = None
    repository: OptionalNormalizedStr = None


class ManifestCommitEvent(_StageEvent):
    """The manifest commit produced by a stage 3 run became known."""

    p3: RequiredStr
    manifest_commit_id: RequiredNormalizedStr = Field(..., alias="manifestCommitId")
    repository: OptionalNormalizedStr = None
