"""Asset group endpoints and sub-asset creation."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from assettrackr.database import get_db
from assettrackr.schemas.asset import AssetGroupCreate, AssetGroupResponse, SubAssetCreate, SubAssetResponse
from assettrackr.services import asset_service
from assettrackr.services.filtering import filter_asset_groups, parse_csv

router = APIRouter()


@router.get("/projects/{project_id}/asset-groups", response_model=list[AssetGroupResponse])
def list_asset_groups(
    project_id: str,
    search: str | None = None,
    status: str | None = Query(None, description="Comma-separated statuses"),
    type: str | None = Query(None, description="Comma-separated asset types"),
    db: Session = Depends(get_db),
):
    groups = [AssetGroupResponse.model_validate(g) for g in asset_service.list_asset_groups(db, project_id)]
    return filter_asset_groups(groups, search, parse_csv(status), parse_csv(type))


@router.post("/projects/{project_id}/asset-groups", response_model=AssetGroupResponse, status_code=201)
def create_asset_group(project_id: str, payload: AssetGroupCreate, db: Session = Depends(get_db)):
    return asset_service.create_asset_group(db, project_id, payload)


@router.get("/projects/{project_id}/asset-groups/{group_id}", response_model=AssetGroupResponse)
def get_asset_group(project_id: str, group_id: str, db: Session = Depends(get_db)):
    return asset_service.get_asset_group(db, project_id, group_id)


@router.delete("/projects/{project_id}/asset-groups/{group_id}", status_code=204)
def delete_asset_group(project_id: str, group_id: str, db: Session = Depends(get_db)):
    asset_service.delete_asset_group(db, project_id, group_id)
    return Response(status_code=204)


@router.post(
    "/projects/{project_id}/asset-groups/{group_id}/sub-assets",
    response_model=SubAssetResponse,
    status_code=201,
)
def create_sub_asset(project_id: str, group_id: str, payload: SubAssetCreate, db: Session = Depends(get_db)):
    return asset_service.create_sub_asset(db, project_id, group_id, payload)
