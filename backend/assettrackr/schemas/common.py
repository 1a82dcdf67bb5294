"""Shared / common schemas: enums and base responses."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel


# ── Enums ──────────────────────────────────────────────────────────────

class AssetType(str, Enum):
    SPRITE_STATIC = "sprite_static"
    SPRITE_ANIMATION = "sprite_animation"
    TEXTURE = "texture"
    UI_ELEMENT = "ui_element"
    AUDIO_MUSIC = "audio_music"
    AUDIO_SFX = "audio_sfx"
    MODEL_3D = "model_3d"
    RIG = "rig"
    ANIMATION_3D = "animation_3d"
    MATERIAL = "material"
    SHADER = "shader"
    VFX = "vfx"
    DOC = "doc"


class Status(str, Enum):
    NEEDED = "needed"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"
    NEEDS_UPDATE = "needs_update"
    CANCELED = "canceled"


class Versioning(str, Enum):
    FOLDER = "folder"
    FILENAME = "filename"


class Severity(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class UploadJobStatus(str, Enum):
    QUEUED = "queued"
    VALIDATING = "validating"
    CONVERTING = "converting"
    OPENED_PR = "opened_pr"
    DONE = "done"
    FAILED = "failed"


STATUS_LABELS: dict[Status, str] = {
    Status.NEEDED: "Needed",
    Status.IN_PROGRESS: "In Progress",
    Status.REVIEW: "Review",
    Status.DONE: "Done",
    Status.NEEDS_UPDATE: "Needs Update",
    Status.CANCELED: "Canceled",
}


# ── Common Responses ───────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
