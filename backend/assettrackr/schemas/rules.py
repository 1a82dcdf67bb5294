"""Typed rule parameters, one schema per asset type.

Each asset type that ships a rule pack has a closed schema (unknown keys
are rejected); the remaining types accept any parameters. ``validate_rules``
is called wherever rules enter the system: sub-asset create/update and
project settings updates.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from assettrackr.exceptions import InvalidRequestError
from assettrackr.schemas.common import AssetType

IntOrList = int | list[int]


class _ClosedRules(BaseModel):
    model_config = ConfigDict(extra="forbid")


class SpriteStaticRules(_ClosedRules):
    max_width: int | None = Field(None, ge=1)
    max_height: int | None = Field(None, ge=1)
    min_width: int | None = Field(None, ge=1)
    min_height: int | None = Field(None, ge=1)
    power_of_two: bool | None = None


class SpriteAnimationRules(_ClosedRules):
    fps_min: int | None = Field(None, ge=1)
    fps_max: int | None = Field(None, ge=1)
    sequence_pattern_required: bool | None = None
    max_frames: int | None = Field(None, ge=1)


class TextureRules(_ClosedRules):
    power_of_two: bool | None = None
    max_size: int | None = Field(None, ge=1)
    min_size: int | None = Field(None, ge=1)


class AudioMusicRules(_ClosedRules):
    sample_rate: IntOrList | None = None
    channels: IntOrList | None = None
    bit_depth: IntOrList | None = None
    max_duration_seconds: float | None = Field(None, gt=0)


class AudioSfxRules(_ClosedRules):
    sample_rate: IntOrList | None = None
    channels: IntOrList | None = None
    max_duration_seconds: float | None = Field(None, gt=0)


class Model3DRules(_ClosedRules):
    max_polycount: int | None = Field(None, ge=1)
    max_materials: int | None = Field(None, ge=0)
    max_textures: int | None = Field(None, ge=0)


class Animation3DRules(_ClosedRules):
    max_duration_seconds: float | None = Field(None, gt=0)
    fps: IntOrList | None = None


class GenericRules(BaseModel):
    model_config = ConfigDict(extra="allow")


RULE_SCHEMAS: dict[AssetType, type[BaseModel]] = {
    AssetType.SPRITE_STATIC: SpriteStaticRules,
    AssetType.SPRITE_ANIMATION: SpriteAnimationRules,
    AssetType.TEXTURE: TextureRules,
    AssetType.AUDIO_MUSIC: AudioMusicRules,
    AssetType.AUDIO_SFX: AudioSfxRules,
    AssetType.MODEL_3D: Model3DRules,
    AssetType.ANIMATION_3D: Animation3DRules,
}


def rule_schema_for(asset_type: AssetType | str) -> type[BaseModel]:
    try:
        return RULE_SCHEMAS.get(AssetType(asset_type), GenericRules)
    except ValueError:
        return GenericRules


def validate_rules(asset_type: AssetType | str, rules: dict[str, Any] | None) -> dict[str, Any]:
    """Validate *rules* against the schema of *asset_type*.

    Returns the rules with unset parameters dropped. Raises
    ``InvalidRequestError`` naming the first offending field.
    """
    schema = rule_schema_for(asset_type)
    try:
        parsed = schema.model_validate(rules or {})
    except ValidationError as exc:
        err = exc.errors()[0]
        loc = ".".join(str(p) for p in err.get("loc", ())) or "rules"
        type_name = asset_type.value if isinstance(asset_type, AssetType) else asset_type
        raise InvalidRequestError(f"Invalid rule '{loc}' for {type_name}: {err.get('msg')}") from exc
    return parsed.model_dump(exclude_none=True)
