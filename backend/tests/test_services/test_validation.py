"""Tests for file-name validation and conversion planning."""
from assettrackr.schemas.common import Severity
from assettrackr.services.rule_packs import get_rule_pack_for_asset_type
from assettrackr.services.validation import check_known_formats, has_errors, plan_conversions, validate_files


def _ids(findings):
    return [f.rule_id for f in findings]


class TestValidateFiles:
    def test_clean_sequence(self):
        pack = get_rule_pack_for_asset_type("sprite_animation")
        files = ["walk_000.png", "walk_001.png", "walk_002.png"]
        assert validate_files(pack, files, "png") == []

    def test_wrong_format_is_error(self):
        pack = get_rule_pack_for_asset_type("audio_music")
        findings = validate_files(pack, ["theme.mp3"])
        assert _ids(findings) == ["audio_music.format"]
        assert findings[0].severity == Severity.ERROR
        assert findings[0].evidence_paths == ["theme.mp3"]

    def test_required_format_mismatch_is_warning(self):
        pack = get_rule_pack_for_asset_type("texture")
        findings = validate_files(pack, ["ground.jpg"], "png")
        assert _ids(findings) == ["texture.required_format"]
        assert findings[0].severity == Severity.WARN
        assert not has_errors(findings)

    def test_strict_escalates_warnings(self):
        pack = get_rule_pack_for_asset_type("texture")
        findings = validate_files(pack, ["ground.jpg"], "png", strict=True)
        assert findings[0].severity == Severity.ERROR
        assert has_errors(findings)

    def test_sequence_gap(self):
        pack = get_rule_pack_for_asset_type("sprite_animation")
        findings = validate_files(pack, ["f_000.png", "f_002.png"])
        assert _ids(findings) == ["sprite_animation.sequence"]

    def test_too_many_frames(self):
        pack = get_rule_pack_for_asset_type("sprite_animation")
        files = [f"f_{i:03d}.png" for i in range(121)]
        findings = validate_files(pack, files)
        assert _ids(findings) == ["sprite_animation.max_frames"]
        assert findings[0].expected == 120
        assert findings[0].actual == 121

    def test_no_pack_no_findings(self):
        assert validate_files(None, ["x.hlsl"]) == []


def test_check_known_formats():
    assert check_known_formats(["a.png", "b.xyz", "c.WAV", "noext"]) == ["b.xyz", "noext"]


class TestPlanConversions:
    def test_lossless_conversion(self):
        files, fixes = plan_conversions(["hero.jpg", "idle.png"], "png")
        assert files == ["hero.png", "idle.png"]
        assert fixes == [{"conversion": "jpg → png", "tool": "ImageMagick", "lossy": False}]

    def test_lossy_skipped_by_default(self):
        files, fixes = plan_conversions(["theme.mp3"], "wav")
        assert files == ["theme.mp3"]
        assert fixes == []

    def test_lossy_allowed(self):
        files, fixes = plan_conversions(["theme.mp3"], "wav", allow_lossy=True)
        assert files == ["theme.wav"]
        assert fixes[0]["lossy"] is True
        assert fixes[0]["tool"] == "FFmpeg"

    def test_no_known_conversion(self):
        assert plan_conversions(["model.blend"], "fbx") == (["model.blend"], [])
