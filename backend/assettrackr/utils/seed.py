"""Demo dataset: two projects, two users, three asset groups and a few upload jobs.

Loaded into an empty database when ``SEED_DEMO_DATA`` is set, and always by
the fake client data source.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from assettrackr.models import AssetGroup, Project, SubAsset, UploadJob, User
from assettrackr.services.project_service import default_project_settings
from assettrackr.services.upload_service import PIPELINE

logger = logging.getLogger(__name__)

DEMO_PROJECT_ID = "1"


def _ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


USERS = [
    {"id": "user1", "name": "Alex Chen", "email": "alex@gamedev.com", "avatar_url": "/developer-avatar.png"},
    {"id": "user2", "name": "Sarah Kim", "email": "sarah@gamedev.com", "avatar_url": "/artist-avatar.png"},
]

PROJECTS = [
    {
        "id": "1",
        "name": "Pixel Adventure",
        "repo_url": "https://github.com/gamedev/pixel-adventure",
        "last_sync": "2024-01-15T10:30:00Z",
        "default_branch": "main",
        "description": "A retro-style platformer game with pixel art assets",
    },
    {
        "id": "2",
        "name": "Space Odyssey",
        "repo_url": "https://github.com/gamedev/space-odyssey",
        "last_sync": "2024-01-14T16:45:00Z",
        "default_branch": "develop",
        "description": "3D space exploration game with procedural generation",
    },
]

FINDINGS = {
    "fps": {
        "rule_id": "sprite_animation.fps",
        "severity": "warn",
        "expected": "12 fps",
        "actual": "10 fps",
        "message": "Animation frame rate is below recommended minimum",
        "evidence_paths": ["assets/sprites/hero/hero_walk_01.png"],
    },
    "power_of_two": {
        "rule_id": "texture.power_of_two",
        "severity": "error",
        "expected": "Power of 2 dimensions",
        "actual": "1023x512",
        "message": "Texture dimensions must be power of 2 for optimal GPU performance",
        "evidence_paths": ["assets/textures/ground_texture.png"],
    },
    "max_dimensions": {
        "rule_id": "sprite_static.max_dimensions",
        "severity": "error",
        "expected": "Max 1024x1024",
        "actual": "2048x2048",
        "message": "Sprite exceeds maximum allowed dimensions",
        "evidence_paths": ["assets/sprites/hero/hero_idle.png"],
    },
    "sample_rate": {
        "rule_id": "audio_music.sample_rate",
        "severity": "warn",
        "expected": "48000 Hz",
        "actual": "44100 Hz",
        "message": "Audio sample rate is below recommended quality",
        "evidence_paths": ["assets/audio/music/background_music_v1.wav"],
    },
}

_ANIMATION_RULES = {"fps_min": 12, "fps_max": 30, "sequence_pattern_required": True, "max_frames": 60}
_FOLDER = "{base}/{key}/v{version}/"


def _frames(prefix: str, n: int, start: int = 0, width: int = 3) -> list[str]:
    return [f"{prefix}{i:0{width}d}.png" for i in range(start, start + n)]


ASSET_GROUPS = [
    {
        "id": "hero_character",
        "key": "hero_character",
        "title": "Hero Character",
        "description": "Main character assets including sprites, animations, and audio",
        "base_path": "Assets/Characters/Hero",
        "tags": ["character", "protagonist", "player"],
        "children": [
            {
                "id": "hero_sprite",
                "type": "sprite_static",
                "required_format": "png",
                "base_path": "Assets/Art/Hero",
                "path_template": _FOLDER,
                "history": [
                    {"version": 1, "files": ["hero_idle.png"], "notes": "Initial hero sprite"},
                    {
                        "version": 2,
                        "files": ["hero_idle.png", "hero_walk_01.png", "hero_walk_02.png"],
                        "notes": "Added walking animation frames",
                        "findings": [FINDINGS["fps"], FINDINGS["max_dimensions"]],
                    },
                ],
                "status": "needs_update",
                "assignee_user_id": "user1",
                "description": "Main character sprite with idle and walking animations",
                "rules": {"max_width": 1024, "max_height": 1024, "power_of_two": False},
            },
            {
                "id": "hero_idle",
                "type": "sprite_animation",
                "required_format": "png",
                "base_path": "Assets/Art/Hero",
                "path_template": _FOLDER,
                "history": [
                    {"version": 1, "files": _frames("frame_", 4), "notes": "Idle animation sequence"},
                ],
                "status": "done",
                "description": "Hero idle animation sequence",
                "rules": _ANIMATION_RULES,
            },
            {
                "id": "hero_run",
                "type": "sprite_animation",
                "required_format": "png",
                "base_path": "Assets/Art/Hero",
                "history": [
                    {
                        "version": 1,
                        "files": _frames("frame_", 6),
                        "notes": "Running animation sequence",
                        "findings": [FINDINGS["fps"]],
                    },
                ],
                "status": "needs_update",
                "description": "Hero running animation sequence",
                "rules": _ANIMATION_RULES,
            },
            {
                "id": "hero_model",
                "type": "model_3d",
                "required_format": "fbx",
                "base_path": "Assets/Models/Hero",
                "path_template": _FOLDER,
                "history": [
                    {"version": 1, "files": ["hero_model.fbx", "hero_texture.png"], "notes": "3D hero model with texture"},
                ],
                "status": "review",
                "description": "3D hero character model",
                "rules": {"max_polycount": 10000, "max_materials": 5, "max_textures": 10},
            },
            {
                "id": "hero_theme",
                "type": "audio_music",
                "required_format": "wav",
                "versioning": "filename",
                "base_path": "Assets/Sound/Music",
                "path_template": "{base}/{key}_v{version}.{ext}",
                "history": [
                    {"version": 1, "files": ["hero_theme_v1.wav"], "notes": "Initial hero theme music"},
                    {
                        "version": 2,
                        "files": ["hero_theme_v2.wav"],
                        "notes": "Updated hero theme with better quality",
                        "findings": [FINDINGS["sample_rate"]],
                    },
                ],
                "status": "done",
                "assignee_user_id": "user2",
                "description": "Hero character theme music",
                "rules": {"sample_rate": 44100, "channels": 2, "bit_depth": 16, "max_duration_seconds": 300},
            },
        ],
    },
    {
        "id": "environment_assets",
        "key": "environment_assets",
        "title": "Environment Assets",
        "description": "Level backgrounds, textures, and environmental elements",
        "base_path": "Assets/Environment",
        "tags": ["environment", "background", "level"],
        "children": [
            {
                "id": "ground_texture",
                "type": "texture",
                "required_format": "png",
                "base_path": "Assets/Art/Environment",
                "path_template": _FOLDER,
                "history": [
                    {
                        "version": 1,
                        "files": ["ground_texture.png"],
                        "notes": "Ground texture for level 1",
                        "findings": [FINDINGS["power_of_two"]],
                    },
                ],
                "status": "needs_update",
                "assignee_user_id": "user1",
                "description": "Ground texture for platform levels",
                "rules": {"power_of_two": True, "max_size": 2048, "min_size": 64},
            },
        ],
    },
    {
        "id": "ui_elements",
        "key": "ui_elements",
        "title": "UI Elements",
        "description": "User interface components and HUD elements",
        "base_path": "Assets/UI",
        "tags": ["ui", "interface", "hud"],
        "children": [
            {
                "id": "coin_animation",
                "type": "sprite_animation",
                "required_format": "png",
                "base_path": "Assets/UI/Items",
                "path_template": _FOLDER,
                "history": [
                    {
                        "version": 1,
                        "files": _frames("coin_", 4, start=1, width=2),
                        "notes": "Spinning coin animation",
                    },
                ],
                "status": "in_progress",
                "assignee_user_id": "user2",
                "description": "Animated coin collectible sprite",
                "rules": _ANIMATION_RULES,
            },
        ],
    },
]

UPLOAD_JOBS = [
    {
        "id": "1",
        "status": "done",
        "created_at": "2024-01-15T08:30:00Z",
        "updated_at": "2024-01-15T08:35:00Z",
        "files": ["hero_sprite_v2.png", "hero_walk_01.png", "hero_walk_02.png"],
        "fixes_applied": [
            {"conversion": "jpg → png", "tool": "ImageMagick", "lossy": False},
            {"conversion": "resize 1024x1024 → 512x512", "tool": "ImageMagick", "lossy": False},
        ],
    },
    {
        "id": "2",
        "status": "converting",
        "created_at": "2024-01-15T10:15:00Z",
        "updated_at": "2024-01-15T10:18:00Z",
        "files": ["background_music_new.wav"],
        "fixes_applied": [{"conversion": "mp3 → wav", "tool": "FFmpeg", "lossy": True}],
    },
    {
        "id": "3",
        "status": "validating",
        "created_at": "2024-01-15T10:45:00Z",
        "updated_at": "2024-01-15T10:46:00Z",
        "files": ["enemy_texture.tga"],
    },
    {
        "id": "4",
        "status": "failed",
        "created_at": "2024-01-15T09:20:00Z",
        "updated_at": "2024-01-15T09:25:00Z",
        "files": ["corrupted_model.fbx"],
        "error_message": "File format validation failed: corrupted FBX header",
        "failed_at": "validating",
    },
    {
        "id": "5",
        "status": "opened_pr",
        "created_at": "2024-01-15T07:00:00Z",
        "updated_at": "2024-01-15T07:10:00Z",
        "files": ["coin_animation_v3.png"],
        "fixes_applied": [{"conversion": "gif → png sequence", "tool": "ImageMagick", "lossy": False}],
    },
]


def _build_sub_asset(group_id: str, position: int, data: dict) -> SubAsset:
    history = [
        {"notes": None, "findings": [], **entry}
        for entry in data["history"]
    ]
    head = history[-1]
    return SubAsset(
        id=data["id"],
        group_id=group_id,
        key=data["id"],
        type=data["type"],
        required_format=data["required_format"],
        versioning=data.get("versioning", "folder"),
        base_path=data["base_path"],
        path_template=data.get("path_template"),
        description=data.get("description"),
        rules=dict(data.get("rules", {})),
        current={"version": head["version"], "files": list(head["files"])},
        history=history,
        status=data["status"],
        assignee_user_id=data.get("assignee_user_id"),
        position=position,
    )


def _transition_log(data: dict, created: datetime, updated: datetime) -> list[dict]:
    """Every pipeline step up to the job's status, spread between its two stamps."""
    names = [s.value for s in PIPELINE]
    if data["status"] == "failed":
        steps = names[:names.index(data["failed_at"]) + 1] + ["failed"]
    else:
        steps = names[:names.index(data["status"]) + 1]
    if len(steps) == 1:
        return [{"status": steps[0], "at": created.isoformat()}]
    step = (updated - created) / (len(steps) - 1)
    return [{"status": s, "at": (created + step * i).isoformat()} for i, s in enumerate(steps)]


def _build_upload_job(data: dict) -> UploadJob:
    created, updated = _ts(data["created_at"]), _ts(data["updated_at"])
    return UploadJob(
        id=data["id"],
        project_id=DEMO_PROJECT_ID,
        status=data["status"],
        files=list(data["files"]),
        fixes_applied=data.get("fixes_applied"),
        error_message=data.get("error_message"),
        transitions=_transition_log(data, created, updated),
        created_at=created,
        updated_at=updated,
    )


def seed_demo_data(db: Session) -> bool:
    """Insert the demo dataset unless the database already holds projects.

    Returns True when data was inserted.
    """
    if db.query(Project).first() is not None:
        logger.info("Database already has projects; skipping demo seed")
        return False

    settings = default_project_settings().model_dump(mode="json")
    for user in USERS:
        db.add(User(**user))
    epoch = _ts("2024-01-01T00:00:00Z")
    for i, project in enumerate(PROJECTS):
        db.add(Project(
            **{**project, "last_sync": _ts(project["last_sync"])},
            settings=settings,
            created_at=epoch + timedelta(days=i),
        ))
    db.flush()

    for position, group in enumerate(ASSET_GROUPS):
        db.add(AssetGroup(
            id=group["id"],
            project_id=DEMO_PROJECT_ID,
            key=group["key"],
            title=group["title"],
            description=group["description"],
            base_path=group["base_path"],
            tags=list(group["tags"]),
            position=position,
        ))
        for child_position, child in enumerate(group["children"]):
            db.add(_build_sub_asset(group["id"], child_position, child))
    db.flush()

    for job in UPLOAD_JOBS:
        db.add(_build_upload_job(job))
    db.commit()
    logger.info(
        "Seeded demo data: %d project(s), %d group(s), %d upload job(s)",
        len(PROJECTS), len(ASSET_GROUPS), len(UPLOAD_JOBS),
    )
    return True
