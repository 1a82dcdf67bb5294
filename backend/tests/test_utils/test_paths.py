"""Tests for destination path templating."""
from assettrackr.utils.paths import (
    default_path_template,
    destination_path,
    resolve_path_preview,
    split_filename,
)


class TestResolvePathPreview:
    def test_empty_template_uses_folder_layout(self):
        assert resolve_path_preview(base="Assets/Art", key="hero", version="1") == "Assets/Art/hero/v1/"

    def test_empty_template_keeps_empty_values_literal(self):
        assert resolve_path_preview() == "//v/"

    def test_all_empty_inputs_use_fallbacks(self):
        result = resolve_path_preview(template="{base}/{key}/v{version}/")
        assert result == "base_path/sub_asset_key/v1/"

    def test_ext_fallback(self):
        assert resolve_path_preview(template="{key}.{ext}") == "sub_asset_key.ext"

    def test_fallbacks_are_independent(self):
        result = resolve_path_preview(base="Assets", version="3", template="{base}/{key}_v{version}.{ext}")
        assert result == "Assets/sub_asset_key_v3.ext"

    def test_repeated_placeholders_all_replaced(self):
        assert resolve_path_preview(key="a", template="{key}/{key}") == "a/a"

    def test_integer_version(self):
        assert resolve_path_preview(base="b", key="k", version=2) == "b/k/v2/"


class TestDestinationPath:
    def test_folder_versioning_appends_filename(self):
        path = destination_path("Assets/Art/Hero", "hero_sprite", "folder", 2, "hero_idle.png")
        assert path == "Assets/Art/Hero/hero_sprite/v2/hero_idle.png"

    def test_filename_versioning(self):
        path = destination_path("Assets/Sound/Music", "hero_theme", "filename", 3, "hero_theme.wav")
        assert path == "Assets/Sound/Music/hero_theme_v3.wav"

    def test_custom_template(self):
        path = destination_path("Assets", "theme", "filename", 2, "x.WAV", template="{base}/{key}_v{version}.{ext}")
        assert path == "Assets/theme_v2.wav"

    def test_default_template_unknown_versioning(self):
        assert default_path_template("other") == "{base}/{key}/v{version}/"


def test_split_filename_lowercases_extension():
    assert split_filename("dir/Hero.PNG") == ("Hero", "png")
    assert split_filename("README") == ("README", "")
