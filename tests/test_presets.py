"""Tests for the built-in layout catalogue."""

from clipstudio.options import SocialFormat
from clipstudio.presets import DEFAULT_LAYOUTS, get_layout, list_layouts, region_mismatch


class TestCatalogue:
    def test_ids_unique(self):
        ids = [p.id for p in DEFAULT_LAYOUTS]
        assert len(ids) == len(set(ids)) == 14

    def test_get_layout(self):
        assert get_layout("2x2-grid").regions == 4
        assert get_layout("nope") is None

    def test_category_filter(self):
        grids = {p.id for p in list_layouts("grid")}
        assert grids == {"2x2-grid", "3x3-grid"}
        assert list_layouts("no-such-category") == []

    def test_portrait_layout(self):
        assert get_layout("triple-vertical").canvas == SocialFormat.VERTICAL_9_16.canvas_size


class TestRegionMismatch:
    def test_match_and_unknown(self):
        assert region_mismatch("side-by-side", 2) is None
        assert region_mismatch("user-layout-17", 5) is None

    def test_mismatch_note(self):
        note = region_mismatch("3x3-grid", 4)
        assert "9 regions" in note
        assert "4 clip(s)" in note
