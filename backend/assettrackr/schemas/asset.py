"""Asset group, sub-asset, version and finding schemas."""
from datetime import datetime

from pydantic import BaseModel, Field

from assettrackr.schemas.common import AssetType, Severity, Status, Versioning

KEY_PATTERN = r"^[a-z0-9_]+$"


class RuleFinding(BaseModel):
    rule_id: str
    severity: Severity
    expected: int | float | str = ""
    actual: int | float | str = ""
    message: str
    evidence_paths: list[str] = Field(default_factory=list)


class AssetVersion(BaseModel):
    version: int = Field(..., ge=1)
    files: list[str] = Field(default_factory=list)
    notes: str | None = None
    findings: list[RuleFinding] = Field(default_factory=list)


class CurrentVersion(BaseModel):
    version: int = Field(1, ge=1)
    files: list[str] = Field(default_factory=list)


# ── Sub-assets ─────────────────────────────────────────────────────────

class SubAssetCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=255, pattern=KEY_PATTERN)
    type: AssetType
    required_format: str | None = None       # defaults to the first allowed format
    versioning: Versioning = Versioning.FOLDER
    base_path: str | None = None             # defaults to the project's base path for the type
    path_template: str | None = None
    description: str | None = None
    rules: dict | None = None                # defaults to the effective rule pack
    current: CurrentVersion | None = None
    history: list[AssetVersion] | None = None
    status: Status = Status.NEEDED
    assignee_user_id: str | None = None


class SubAssetUpdate(BaseModel):
    required_format: str | None = None
    versioning: Versioning | None = None
    base_path: str | None = None
    path_template: str | None = None
    description: str | None = None
    rules: dict | None = None
    status: Status | None = None
    assignee_user_id: str | None = None


class SubAssetResponse(BaseModel):
    id: str
    group_id: str
    key: str
    type: AssetType
    required_format: str
    versioning: Versioning
    base_path: str
    path_template: str | None
    description: str | None
    rules: dict
    current: CurrentVersion
    history: list[AssetVersion]
    status: Status
    assignee_user_id: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NeedsUpdateRequest(BaseModel):
    reasons: list[str] = Field(default_factory=list)
    notes: str | None = None


class VersionCreate(BaseModel):
    files: list[str] = Field(..., min_length=1)
    notes: str | None = None


class BulkUpdateRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)
    status: Status | None = None
    assignee_user_id: str | None = None


class BulkUpdateResponse(BaseModel):
    updated: list[SubAssetResponse]
    errors: list[str] = Field(default_factory=list)


# ── Groups ─────────────────────────────────────────────────────────────

class AssetGroupCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=255, pattern=KEY_PATTERN)
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    base_path: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)


class AssetGroupResponse(BaseModel):
    id: str
    project_id: str
    key: str
    title: str
    description: str | None
    base_path: str
    tags: list[str]
    children: list[SubAssetResponse]
    is_filtered: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Validation preview ─────────────────────────────────────────────────

class ValidateRequest(BaseModel):
    asset_type: AssetType
    files: list[str] = Field(..., min_length=1)
    required_format: str | None = None
    project_id: str | None = None


class ValidateResponse(BaseModel):
    asset_type: AssetType
    findings: list[RuleFinding]
