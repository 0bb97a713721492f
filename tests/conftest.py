"""Shared test fixtures for clipstudio tests."""

import itertools
import subprocess

import imageio_ffmpeg
import pytest
from PIL import Image

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


@pytest.fixture
def source_video(tmp_path):
    """Create a 2-second 320x240 test video using the bundled ffmpeg."""
    out = tmp_path / "source.mp4"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "color=c=blue:s=320x240:d=2:r=10",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out


@pytest.fixture
def image_file(tmp_path):
    """A 200x100 PNG."""
    out = tmp_path / "logo.png"
    Image.new("RGB", (200, 100), (255, 0, 0)).save(out)
    return out


@pytest.fixture
def layer_ids():
    """Deterministic layer id factory: layer_1, layer_2, ..."""
    counter = itertools.count(1)
    return lambda: f"layer_{next(counter)}"


@pytest.fixture
def make_analysis():
    """Factory for a BeatAnalysis with evenly spaced beats: make_analysis(n_beats=120, bpm=120.0)."""
    from clipstudio.beatsync import BeatAnalysis

    def _make(n_beats=120, bpm=120.0):
        step = 60.0 / bpm
        beats = tuple(round(0.25 + i * step, 6) for i in range(n_beats))
        return BeatAnalysis(bpm=bpm, beats=beats, duration_seconds=beats[-1] + 1.0)

    return _make
