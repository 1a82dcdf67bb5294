"""Upload endpoints: multipart upload, job status, cancel, validation preview."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.orm import Session

from assettrackr.config import get_settings
from assettrackr.database import get_db
from assettrackr.exceptions import InvalidRequestError
from assettrackr.schemas.asset import ValidateRequest, ValidateResponse
from assettrackr.schemas.upload import UploadJobResponse
from assettrackr.services import asset_service, upload_service
from assettrackr.services.upload_service import UploadPipeline
from assettrackr.utils.helpers import exceeds_size_limit, safe_upload_name

router = APIRouter()
logger = logging.getLogger(__name__)


def get_upload_pipeline(request: Request) -> UploadPipeline:
    """The pipeline created in the app lifespan."""
    return request.app.state.upload_pipeline


@router.post("/upload", response_model=UploadJobResponse, status_code=201)
async def upload_files(
    files: list[UploadFile] | None = File(None),
    project_id: str | None = Form(None, alias="projectId"),
    sub_asset_id: str | None = Form(None, alias="subAssetId"),
    db: Session = Depends(get_db),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
):
    """Queue an upload job for the given files.

    Only file names travel further; contents are read to enforce the size
    limit and then discarded.
    """
    settings = get_settings()
    names: list[str] = []
    for f in files or []:
        name = safe_upload_name(f.filename)
        if not name:
            raise InvalidRequestError(f"Rejected '{f.filename}': invalid file name")
        content = await f.read()
        if exceeds_size_limit(len(content), settings.MAX_UPLOAD_SIZE_MB):
            raise InvalidRequestError(f"'{name}' exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit")
        names.append(name)
    return pipeline.submit(db, project_id, names, sub_asset_id or None)


@router.post("/validate", response_model=ValidateResponse)
def validate_files(payload: ValidateRequest, db: Session = Depends(get_db)):
    findings = asset_service.preview_validation(
        db, payload.asset_type.value, payload.files, payload.required_format, payload.project_id,
    )
    return ValidateResponse(asset_type=payload.asset_type, findings=findings)


@router.get("/projects/{project_id}/upload-jobs", response_model=list[UploadJobResponse])
def list_upload_jobs(project_id: str, db: Session = Depends(get_db)):
    return upload_service.list_upload_jobs(db, project_id)


@router.get("/projects/{project_id}/upload-jobs/{job_id}", response_model=UploadJobResponse)
def get_upload_job(project_id: str, job_id: str, db: Session = Depends(get_db)):
    return upload_service.get_upload_job(db, project_id, job_id)


@router.post("/projects/{project_id}/upload-jobs/{job_id}/cancel", response_model=UploadJobResponse)
def cancel_upload_job(
    project_id: str,
    job_id: str,
    db: Session = Depends(get_db),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
):
    return pipeline.cancel(db, project_id, job_id)
