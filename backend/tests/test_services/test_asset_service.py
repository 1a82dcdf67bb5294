"""Tests for asset group and sub-asset operations."""
import pytest

from assettrackr.exceptions import InvalidRequestError, InvalidTransitionError, NotFoundError
from assettrackr.models import SubAsset
from assettrackr.schemas.asset import (
    AssetGroupCreate,
    AssetVersion,
    BulkUpdateRequest,
    CurrentVersion,
    SubAssetCreate,
    SubAssetUpdate,
)
from assettrackr.schemas.project import ProjectSettings
from assettrackr.services import asset_service, project_service
from assettrackr.services.asset_service import check_head_invariant, load_history


def _head(sub):
    current = CurrentVersion.model_validate(sub.current)
    return next(v for v in load_history(sub) if v.version == current.version)


class TestAssetGroups:
    def test_create_appends(self, seeded_db):
        group = asset_service.create_asset_group(
            seeded_db, "1", AssetGroupCreate(key="enemies", title="Enemies", base_path="Assets/Enemies"),
        )
        assert group.position == 3
        assert [g.key for g in asset_service.list_asset_groups(seeded_db, "1")][-1] == "enemies"

    def test_duplicate_key(self, seeded_db):
        with pytest.raises(InvalidRequestError, match="already exists"):
            asset_service.create_asset_group(
                seeded_db, "1", AssetGroupCreate(key="ui_elements", title="UI", base_path="Assets/UI"),
            )

    def test_unknown_project(self, db_session):
        with pytest.raises(NotFoundError):
            asset_service.list_asset_groups(db_session, "missing")

    def test_delete_cascades_to_sub_assets(self, seeded_db):
        asset_service.delete_asset_group(seeded_db, "1", "hero_character")
        assert seeded_db.query(SubAsset).count() == 2


class TestCreateSubAsset:
    def test_defaults_from_project(self, seeded_db):
        sub = asset_service.create_sub_asset(
            seeded_db, "1", "ui_elements", SubAssetCreate(key="health_icon", type="sprite_static"),
        )
        assert sub.required_format == "png"
        assert sub.base_path == "Assets/Art/Sprites"
        assert sub.rules["max_width"] == 4096
        assert sub.path_template is None
        assert sub.current == {"version": 1, "files": []}
        assert check_head_invariant(CurrentVersion.model_validate(sub.current), load_history(sub))

    def test_format_outside_pack(self, seeded_db):
        with pytest.raises(InvalidRequestError, match="not allowed"):
            asset_service.create_sub_asset(
                seeded_db, "1", "ui_elements",
                SubAssetCreate(key="theme", type="audio_music", required_format="mp3"),
            )

    def test_type_without_pack_needs_format(self, seeded_db):
        with pytest.raises(InvalidRequestError, match="Required format"):
            asset_service.create_sub_asset(seeded_db, "1", "ui_elements", SubAssetCreate(key="hud", type="ui_element"))

    def test_duplicate_key_in_group(self, seeded_db):
        with pytest.raises(InvalidRequestError, match="already exists"):
            asset_service.create_sub_asset(
                seeded_db, "1", "hero_character", SubAssetCreate(key="hero_run", type="sprite_animation"),
            )

    def test_history_must_contain_head(self, seeded_db):
        payload = SubAssetCreate(
            key="boss",
            type="model_3d",
            current=CurrentVersion(version=3, files=["boss.fbx"]),
            history=[AssetVersion(version=1, files=["boss.fbx"])],
        )
        with pytest.raises(InvalidRequestError, match="exactly one history entry"):
            asset_service.create_sub_asset(seeded_db, "1", "hero_character", payload)

    def test_auto_assign_uses_group_assignee(self, seeded_db):
        settings = project_service.get_project_settings(seeded_db, "1")
        project_service.update_project_settings(
            seeded_db, "1", ProjectSettings(**{**settings.model_dump(mode="json"), "auto_assign": True}),
        )
        sub = asset_service.create_sub_asset(
            seeded_db, "1", "environment_assets", SubAssetCreate(key="wall_texture", type="texture"),
        )
        assert sub.assignee_user_id == "user1"


class TestUpdateSubAsset:
    def test_legal_status_change(self, seeded_db):
        sub = asset_service.update_sub_asset(seeded_db, "1", "hero_model", SubAssetUpdate(status="done"))
        assert sub.status == "done"

    def test_illegal_status_change(self, seeded_db):
        with pytest.raises(InvalidTransitionError):
            asset_service.update_sub_asset(seeded_db, "1", "hero_idle", SubAssetUpdate(status="in_progress"))
        assert asset_service.get_sub_asset(seeded_db, "1", "hero_idle").status == "done"

    def test_unknown_assignee(self, seeded_db):
        with pytest.raises(NotFoundError, match="User not found"):
            asset_service.update_sub_asset(seeded_db, "1", "hero_model", SubAssetUpdate(assignee_user_id="ghost"))

    def test_unassign(self, seeded_db):
        sub = asset_service.update_sub_asset(seeded_db, "1", "hero_sprite", SubAssetUpdate(assignee_user_id=None))
        assert sub.assignee_user_id is None

    def test_rules_revalidated(self, seeded_db):
        with pytest.raises(InvalidRequestError):
            asset_service.update_sub_asset(seeded_db, "1", "hero_model", SubAssetUpdate(rules={"fps": 3}))

    def test_required_format_checked(self, seeded_db):
        with pytest.raises(InvalidRequestError, match="not allowed"):
            asset_service.update_sub_asset(seeded_db, "1", "hero_model", SubAssetUpdate(required_format="png"))

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_blank_required_format_rejected(self, seeded_db, value):
        with pytest.raises(InvalidRequestError, match="Required format cannot be blank"):
            asset_service.update_sub_asset(seeded_db, "1", "hero_model", SubAssetUpdate(required_format=value))
        assert asset_service.get_sub_asset(seeded_db, "1", "hero_model").required_format == "fbx"


class TestMarkNeedsUpdate:
    def test_appends_info_findings_to_head(self, seeded_db):
        before = _head(asset_service.get_sub_asset(seeded_db, "1", "hero_sprite")).findings
        sub = asset_service.mark_needs_update(seeded_db, "1", "hero_sprite", ["Too dark", "Wrong pivot"])
        head = _head(sub)
        assert sub.status == "needs_update"
        assert head.findings[: len(before)] == before
        added = head.findings[len(before):]
        assert [f.rule_id for f in added] == ["manual_0", "manual_1"]
        assert all(f.severity == "info" and f.expected == "Compliant" for f in added)
        assert [f.message for f in added] == ["Too dark", "Wrong pivot"]
        assert head.notes == "Added walking animation frames"
        assert len(load_history(sub)) == 2

    def test_notes_replace_head_notes(self, seeded_db):
        sub = asset_service.mark_needs_update(seeded_db, "1", "hero_idle", ["Loop pops"], notes="Fix the loop")
        assert sub.status == "needs_update"
        assert _head(sub).notes == "Fix the loop"

    def test_canceled_can_be_flagged(self, seeded_db):
        asset_service.update_sub_asset(seeded_db, "1", "coin_animation", SubAssetUpdate(status="canceled"))
        before = len(_head(asset_service.get_sub_asset(seeded_db, "1", "coin_animation")).findings)
        sub = asset_service.mark_needs_update(seeded_db, "1", "coin_animation", ["x", "y"])
        assert sub.status == "needs_update"
        assert [f.message for f in _head(sub).findings[before:]] == ["x", "y"]


class TestAddVersion:
    def test_new_head(self, seeded_db):
        sub = asset_service.add_version(seeded_db, "1", "hero_theme", ["hero_theme_v3.wav"], notes="Remaster")
        assert sub.current == {"version": 3, "files": ["hero_theme_v3.wav"]}
        history = load_history(sub)
        assert [v.version for v in history] == [1, 2, 3]
        assert history[-1].notes == "Remaster"
        assert history[-1].findings == []

    def test_validation_findings_attached(self, seeded_db):
        sub = asset_service.add_version(seeded_db, "1", "hero_run", ["run_000.png", "run_002.png"])
        assert [f.rule_id for f in _head(sub).findings] == ["sprite_animation.sequence"]

    def test_requires_files(self, seeded_db):
        with pytest.raises(InvalidRequestError):
            asset_service.add_version(seeded_db, "1", "hero_run", [])


class TestPreviewValidation:
    def test_registry_defaults_without_project(self, db_session):
        findings = asset_service.preview_validation(db_session, "audio_sfx", ["hit.mp3"])
        assert [f.rule_id for f in findings] == ["audio_sfx.format"]

    def test_project_override(self, seeded_db):
        settings = project_service.get_project_settings(seeded_db, "1").model_dump(mode="json")
        settings["default_rule_pack_by_type"]["audio_sfx"] = {"allowed_formats": ["mp3"], "rules": {}}
        project_service.update_project_settings(seeded_db, "1", ProjectSettings(**settings))
        assert asset_service.preview_validation(seeded_db, "audio_sfx", ["hit.mp3"], project_id="1") == []


class TestBulkUpdate:
    def test_partial_success(self, seeded_db):
        updated, errors = asset_service.bulk_update(
            seeded_db, "1", BulkUpdateRequest(ids=["hero_model", "hero_idle", "missing"], status="in_progress"),
        )
        assert [s.id for s in updated] == ["hero_model"]
        assert len(errors) == 2
        assert errors[1] == "missing: Sub-asset not found"

    def test_assign(self, seeded_db):
        updated, errors = asset_service.bulk_assign(seeded_db, "1", ["hero_idle", "hero_run"], "user2")
        assert errors == []
        assert {s.assignee_user_id for s in updated} == {"user2"}

    def test_status_helper(self, seeded_db):
        updated, _ = asset_service.bulk_update_status(seeded_db, "1", ["hero_model"], "done")
        assert updated[0].status == "done"

    def test_nothing_to_update(self, seeded_db):
        with pytest.raises(InvalidRequestError):
            asset_service.bulk_update(seeded_db, "1", BulkUpdateRequest(ids=["hero_model"]))
