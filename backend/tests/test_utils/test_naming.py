"""Tests for frame-sequence naming helpers."""
from assettrackr.utils.naming import apply_naming_pattern, extract_sequence_index, is_contiguous_sequence


class TestExtractSequenceIndex:
    def test_padded_index(self):
        assert extract_sequence_index("frame_007.png") == 7

    def test_no_digits(self):
        assert extract_sequence_index("hero_idle.png") is None

    def test_ignores_directory(self):
        assert extract_sequence_index("v2/frame_3.png") == 3


class TestApplyNamingPattern:
    def test_zero_padding(self):
        assert apply_naming_pattern("{name}_{index:000}", "hero_walk.png", 4) == "hero_walk_004"

    def test_bare_index(self):
        assert apply_naming_pattern("f{index}", "x.png", 12) == "f12"


class TestIsContiguousSequence:
    def test_contiguous(self):
        assert is_contiguous_sequence(["frame_000.png", "frame_001.png", "frame_002.png"])

    def test_order_does_not_matter(self):
        assert is_contiguous_sequence(["coin_03.png", "coin_01.png", "coin_02.png"])

    def test_gap(self):
        assert not is_contiguous_sequence(["frame_000.png", "frame_002.png"])

    def test_duplicate(self):
        assert not is_contiguous_sequence(["a_1.png", "b_1.png"])

    def test_missing_index(self):
        assert not is_contiguous_sequence(["frame_000.png", "idle.png"])

    def test_empty(self):
        assert not is_contiguous_sequence([])
