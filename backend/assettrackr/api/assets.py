"""Flat sub-asset endpoints: filtered listing, edits, versions, bulk actions."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from assettrackr.database import get_db
from assettrackr.schemas.asset import (
    BulkUpdateRequest,
    BulkUpdateResponse,
    NeedsUpdateRequest,
    SubAssetResponse,
    SubAssetUpdate,
    VersionCreate,
)
from assettrackr.services import asset_service
from assettrackr.services.filtering import filter_sub_assets, parse_csv

router = APIRouter()


@router.get("/projects/{project_id}/assets", response_model=list[SubAssetResponse])
def list_assets(
    project_id: str,
    search: str | None = None,
    status: str | None = Query(None, description="Comma-separated statuses"),
    type: str | None = Query(None, description="Comma-separated asset types"),
    db: Session = Depends(get_db),
):
    subs = [SubAssetResponse.model_validate(s) for s in asset_service.list_sub_assets(db, project_id)]
    return filter_sub_assets(subs, search, parse_csv(status), parse_csv(type))


@router.post("/projects/{project_id}/assets/bulk", response_model=BulkUpdateResponse)
def bulk_update(project_id: str, payload: BulkUpdateRequest, db: Session = Depends(get_db)):
    updated, errors = asset_service.bulk_update(db, project_id, payload)
    return BulkUpdateResponse(
        updated=[SubAssetResponse.model_validate(s) for s in updated],
        errors=errors,
    )


@router.get("/projects/{project_id}/assets/{asset_id}", response_model=SubAssetResponse)
def get_asset(project_id: str, asset_id: str, db: Session = Depends(get_db)):
    return asset_service.get_sub_asset(db, project_id, asset_id)


@router.patch("/projects/{project_id}/assets/{asset_id}", response_model=SubAssetResponse)
def update_asset(project_id: str, asset_id: str, payload: SubAssetUpdate, db: Session = Depends(get_db)):
    return asset_service.update_sub_asset(db, project_id, asset_id, payload)


@router.delete("/projects/{project_id}/assets/{asset_id}", status_code=204)
def delete_asset(project_id: str, asset_id: str, db: Session = Depends(get_db)):
    asset_service.delete_sub_asset(db, project_id, asset_id)
    return Response(status_code=204)


@router.post("/projects/{project_id}/assets/{asset_id}/request-update", response_model=SubAssetResponse)
def request_update(project_id: str, asset_id: str, payload: NeedsUpdateRequest, db: Session = Depends(get_db)):
    return asset_service.mark_needs_update(db, project_id, asset_id, payload.reasons, payload.notes)


@router.post("/projects/{project_id}/assets/{asset_id}/versions", response_model=SubAssetResponse, status_code=201)
def add_version(project_id: str, asset_id: str, payload: VersionCreate, db: Session = Depends(get_db)):
    return asset_service.add_version(db, project_id, asset_id, payload.files, payload.notes)
