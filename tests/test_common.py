"""Tests for clipstudio.common utilities."""

import pytest

from clipstudio.common import (
    normalize_color,
    probe_media,
    resolve_path_vars,
)


class TestNormalizeColor:
    def test_uppercases_hex(self):
        assert normalize_color("#00ff00") == "#00FF00"

    def test_short_hex(self):
        assert normalize_color("#fff") == "#FFFFFF"

    def test_named_color(self):
        assert normalize_color("black") == "#000000"

    def test_garbage_raises(self):
        with pytest.raises(ValueError, match="Invalid color"):
            normalize_color("not-a-color")

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            normalize_color("")


class TestResolvePathVars:
    def test_single_var(self):
        result = resolve_path_vars("${cdn}/a.mp4", {"cdn": "https://cdn.test"})
        assert result == "https://cdn.test/a.mp4"

    def test_no_vars_unchanged(self):
        assert resolve_path_vars("https://x/a.mp4", {}) == "https://x/a.mp4"

    def test_unknown_var_raises(self):
        with pytest.raises(ValueError, match="Unknown path variable"):
            resolve_path_vars("${missing}/a.mp4", {})


class TestProbeMedia:
    def test_video(self, source_video):
        info = probe_media(source_video)
        assert info["kind"] == "video"
        assert (info["width"], info["height"]) == (320, 240)
        assert 1.5 < info["duration"] < 2.5

    def test_image(self, image_file):
        info = probe_media(image_file)
        assert info == {"width": 200, "height": 100, "duration": None, "kind": "image"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            probe_media(tmp_path / "nope.mp4")
