"""Upload job schemas."""
from datetime import datetime

from pydantic import BaseModel, Field

from assettrackr.schemas.common import UploadJobStatus


class FixApplied(BaseModel):
    conversion: str
    tool: str
    lossy: bool = False


class JobTransition(BaseModel):
    status: UploadJobStatus
    at: datetime


class UploadJobResponse(BaseModel):
    id: str
    project_id: str
    sub_asset_id: str | None
    status: UploadJobStatus
    files: list[str]
    fixes_applied: list[FixApplied] | None = None
    error_message: str | None = None
    transitions: list[JobTransition] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
