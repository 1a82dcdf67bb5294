"""Project operations: connect a repository, read and update settings."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from urllib.parse import urlparse

from sqlalchemy.orm import Session

from assettrackr.config import get_settings
from assettrackr.exceptions import InvalidRequestError, NotFoundError
from assettrackr.models import Project
from assettrackr.schemas.project import NamingRule, ProjectSettings, ProjectUpdate
from assettrackr.schemas.rules import validate_rules
from assettrackr.services.rule_packs import default_rule_packs_by_type

logger = logging.getLogger(__name__)

DEFAULT_BASE_PATHS = {
    "sprite_static": "Assets/Art/Sprites",
    "sprite_animation": "Assets/Art/Animations",
    "texture": "Assets/Art/Textures",
    "ui_element": "Assets/UI",
    "audio_music": "Assets/Sound/Music",
    "audio_sfx": "Assets/Sound/SFX",
    "model_3d": "Assets/Models",
    "rig": "Assets/Models/Rigs",
    "animation_3d": "Assets/Animations",
    "material": "Assets/Materials",
    "shader": "Assets/Shaders",
    "vfx": "Assets/VFX",
    "doc": "Docs",
}

DEFAULT_NAMING_CONVENTIONS = [
    NamingRule(
        id="frame_sequence",
        pattern="{name}_{index:000}",
        description="Numbered animation frames",
        example="hero_walk_000.png",
    ),
    NamingRule(
        id="versioned_file",
        pattern="{key}_v{version}.{ext}",
        description="Filename-versioned deliveries",
        example="hero_theme_v2.wav",
    ),
]


def project_name_from_url(repo_url: str) -> str:
    """Last path segment of the repository URL, without a ``.git`` suffix."""
    path = urlparse(repo_url).path or repo_url
    segment = path.rstrip("/").split("/")[-1]
    if segment.endswith(".git"):
        segment = segment[: -len(".git")]
    return segment or "New Project"


def default_project_settings() -> ProjectSettings:
    return ProjectSettings(
        default_rule_pack_by_type=default_rule_packs_by_type(),
        naming_conventions=list(DEFAULT_NAMING_CONVENTIONS),
        default_base_paths=dict(DEFAULT_BASE_PATHS),
    )


# ── CRUD ───────────────────────────────────────────────────────────────

def list_projects(db: Session) -> list[Project]:
    return db.query(Project).order_by(Project.created_at.asc()).all()


def get_project(db: Session, project_id: str) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise NotFoundError("Project not found")
    return project


def create_project(db: Session, repo_url: str | None, description: str | None = None) -> Project:
    if not repo_url or not repo_url.strip():
        raise InvalidRequestError("Repository URL is required")
    repo_url = repo_url.strip()
    now = datetime.now(timezone.utc)
    project = Project(
        name=project_name_from_url(repo_url),
        repo_url=repo_url,
        default_branch=get_settings().DEFAULT_BRANCH,
        description=description or "Newly connected repository",
        settings=default_project_settings().model_dump(mode="json"),
        last_sync=now,
        created_at=now,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("Connected project %s (%s)", project.name, project.repo_url)
    return project


def update_project(db: Session, project_id: str, payload: ProjectUpdate) -> Project:
    project = get_project(db, project_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(project, field, value)
    db.commit()
    db.refresh(project)
    return project


def sync_project(db: Session, project_id: str) -> Project:
    project = get_project(db, project_id)
    project.last_sync = datetime.now(timezone.utc)
    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, project_id: str) -> None:
    project = get_project(db, project_id)
    db.delete(project)
    db.commit()
    logger.info("Deleted project %s (%s)", project.name, project_id)


# ── Settings ───────────────────────────────────────────────────────────

def project_settings_dict(project: Project) -> dict:
    """Raw settings document, falling back to the defaults."""
    return project.settings or default_project_settings().model_dump(mode="json")


def get_project_settings(db: Session, project_id: str) -> ProjectSettings:
    return ProjectSettings.model_validate(project_settings_dict(get_project(db, project_id)))


def update_project_settings(db: Session, project_id: str, settings: ProjectSettings) -> ProjectSettings:
    """Replace the settings document wholesale after validating its rule packs."""
    project = get_project(db, project_id)
    for asset_type, pack in settings.default_rule_pack_by_type.items():
        pack.rules = validate_rules(asset_type, pack.rules)
        pack.allowed_formats = [f.lower().lstrip(".") for f in pack.allowed_formats]
    project.settings = settings.model_dump(mode="json")
    db.commit()
    db.refresh(project)
    logger.info("Updated settings for project %s", project_id)
    return ProjectSettings.model_validate(project.settings)
