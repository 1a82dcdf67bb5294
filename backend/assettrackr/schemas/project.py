"""Project and project settings schemas."""
from datetime import datetime

from pydantic import BaseModel, Field

from assettrackr.schemas.common import AssetType


class RulePackOverride(BaseModel):
    """Project-level rule pack for one asset type."""
    allowed_formats: list[str] = Field(..., min_length=1)
    rules: dict = Field(default_factory=dict)


class NamingRule(BaseModel):
    id: str
    pattern: str = Field(..., min_length=1)
    description: str | None = None
    example: str | None = None


class ProjectSettings(BaseModel):
    default_rule_pack_by_type: dict[AssetType, RulePackOverride] = Field(default_factory=dict)
    naming_conventions: list[NamingRule] = Field(default_factory=list)
    default_base_paths: dict[AssetType, str] = Field(default_factory=dict)
    allow_lossy_autofix: bool = False
    auto_assign: bool = False
    validation_strict: bool = False


class ProjectCreate(BaseModel):
    repo_url: str | None = None


class ProjectUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    default_branch: str | None = Field(None, min_length=1, max_length=255)


class ProjectResponse(BaseModel):
    id: str
    name: str
    repo_url: str
    default_branch: str
    last_sync: datetime
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
