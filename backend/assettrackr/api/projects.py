"""Project endpoints: connect a repository, sync, settings."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from assettrackr.database import get_db
from assettrackr.schemas.project import ProjectCreate, ProjectResponse, ProjectSettings, ProjectUpdate
from assettrackr.services import project_service

router = APIRouter()


@router.get("", response_model=list[ProjectResponse])
def list_projects(db: Session = Depends(get_db)):
    return project_service.list_projects(db)


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(payload: ProjectCreate, db: Session = Depends(get_db)):
    return project_service.create_project(db, payload.repo_url)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(project_id: str, db: Session = Depends(get_db)):
    return project_service.get_project(db, project_id)


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(project_id: str, payload: ProjectUpdate, db: Session = Depends(get_db)):
    return project_service.update_project(db, project_id, payload)


@router.delete("/{project_id}", status_code=204)
def delete_project(project_id: str, db: Session = Depends(get_db)):
    project_service.delete_project(db, project_id)
    return Response(status_code=204)


@router.post("/{project_id}/sync", response_model=ProjectResponse)
def sync_project(project_id: str, db: Session = Depends(get_db)):
    """Refresh ``last_sync``. No repository is contacted."""
    return project_service.sync_project(db, project_id)


@router.get("/{project_id}/settings", response_model=ProjectSettings)
def get_project_settings(project_id: str, db: Session = Depends(get_db)):
    return project_service.get_project_settings(db, project_id)


@router.put("/{project_id}/settings", response_model=ProjectSettings)
def update_project_settings(project_id: str, payload: ProjectSettings, db: Session = Depends(get_db)):
    return project_service.update_project_settings(db, project_id, payload)
