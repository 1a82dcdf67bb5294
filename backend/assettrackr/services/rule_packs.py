"""Rule pack registry: allowed formats and validation parameters per asset type.

The registry is compiled in and never mutated; callers receive copies.
Project-level overrides live in ``ProjectSettings.default_rule_pack_by_type``
and are merged with the registry only through ``resolve_rule_pack``.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from assettrackr.schemas.common import AssetType


@dataclass(frozen=True)
class RulePack:
    asset_type: str
    formats: tuple[str, ...]
    rules: dict[str, Any] = field(default_factory=dict)

    def to_override(self) -> dict[str, Any]:
        """Shape used by ``ProjectSettings.default_rule_pack_by_type``."""
        return {"allowed_formats": list(self.formats), "rules": copy.deepcopy(self.rules)}


RULE_PACKS: tuple[RulePack, ...] = (
    RulePack(
        asset_type="sprite_static",
        formats=("png", "tga", "webp"),
        rules={"max_width": 4096, "max_height": 4096, "min_width": 16, "min_height": 16},
    ),
    RulePack(
        asset_type="sprite_animation",
        formats=("png",),
        rules={"fps_min": 1, "fps_max": 60, "sequence_pattern_required": True, "max_frames": 120},
    ),
    RulePack(
        asset_type="audio_music",
        formats=("wav", "aiff"),
        rules={"sample_rate": 48000, "channels": 2, "bit_depth": [16, 24]},
    ),
    RulePack(
        asset_type="audio_sfx",
        formats=("wav",),
        rules={"sample_rate": [44100, 48000], "channels": [1, 2], "max_duration_seconds": 30},
    ),
    RulePack(
        asset_type="model_3d",
        formats=("fbx", "glb", "gltf"),
        rules={"max_polycount": 50000, "max_materials": 10, "max_textures": 20},
    ),
    RulePack(
        asset_type="texture",
        formats=("png", "jpg", "tga", "exr"),
        rules={"power_of_two": True, "max_size": 4096, "min_size": 64},
    ),
    RulePack(
        asset_type="animation_3d",
        formats=("fbx", "glb"),
        rules={"max_duration_seconds": 60, "fps": [24, 30, 60]},
    ),
)

_BY_TYPE = {pack.asset_type: pack for pack in RULE_PACKS}


def _type_value(asset_type: AssetType | str) -> str:
    return asset_type.value if isinstance(asset_type, AssetType) else str(asset_type)


def get_rule_pack_for_asset_type(asset_type: AssetType | str) -> RulePack | None:
    pack = _BY_TYPE.get(_type_value(asset_type))
    if pack is None:
        return None
    return RulePack(pack.asset_type, pack.formats, copy.deepcopy(pack.rules))


def get_expected_formats(asset_type: AssetType | str) -> list[str]:
    """Allowed formats for *asset_type*; empty for unknown types."""
    pack = _BY_TYPE.get(_type_value(asset_type))
    return list(pack.formats) if pack else []


def all_known_formats() -> set[str]:
    return {fmt for pack in RULE_PACKS for fmt in pack.formats}


def default_rule_packs_by_type() -> dict[str, dict[str, Any]]:
    return {pack.asset_type: pack.to_override() for pack in RULE_PACKS}


def resolve_rule_pack(asset_type: AssetType | str, settings: dict | None) -> RulePack | None:
    """Effective rule pack for *asset_type* within a project.

    A project override replaces the registry pack for that type wholesale;
    without one the registry pack applies.
    """
    type_value = _type_value(asset_type)
    overrides = (settings or {}).get("default_rule_pack_by_type") or {}
    override = overrides.get(type_value)
    if override:
        return RulePack(
            asset_type=type_value,
            formats=tuple(f.lower() for f in override.get("allowed_formats", [])),
            rules=copy.deepcopy(override.get("rules") or {}),
        )
    return get_rule_pack_for_asset_type(type_value)


def resolve_expected_formats(asset_type: AssetType | str, settings: dict | None) -> list[str]:
    pack = resolve_rule_pack(asset_type, settings)
    return list(pack.formats) if pack else []
