"""Beat-synchronised cut planning for music-video compositions.

Beat detection itself happens in the rendering service; this module takes
its result (BPM, ascending beat timestamps, track duration) and turns it
into the times at which the active clip switches.

Cut cadence by style (4/4 time assumed):
  on-beat        every beat        (indices 0, 1, 2, ...)
  every-2-beats  every 2nd beat    (indices 0, 2, 4, ...)
  every-4-beats  every 4th beat    (indices 0, 4, 8, ...)
  on-bars        same as every-4-beats; a separate tag for presentation.

Clip assignment wraps: with more cut points than clips the clip list is
cycled, so a short clip set still fills the whole track.
"""

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from .common import to_number
from .errors import ValidationError
from .options import MusicVideoStyle


@dataclass(frozen=True)
class BeatAnalysis:
    """Result of analysing one music track. Immutable once created."""

    bpm: float
    beats: tuple[float, ...]
    duration_seconds: float

    def __post_init__(self):
        if not self.bpm > 0:
            raise ValidationError(f"bpm must be > 0, got {self.bpm!r}")
        if not self.duration_seconds > 0:
            raise ValidationError(
                f"duration_seconds must be > 0, got {self.duration_seconds!r}"
            )
        try:
            beats = np.asarray(self.beats, dtype=float)
        except (TypeError, ValueError):
            raise ValidationError(
                f"beats must be a list of timestamps, got {self.beats!r}"
            ) from None
        if beats.ndim != 1:
            raise ValidationError("beats must be a flat list of timestamps")
        if beats.size:
            if not np.all(np.isfinite(beats)) or beats[0] < 0:
                raise ValidationError("beats must be finite, non-negative timestamps")
            if not np.all(np.diff(beats) > 0):
                raise ValidationError("beats must be strictly increasing")
        # Normalize to a tuple of floats so equality and hashing behave.
        object.__setattr__(self, "beats", tuple(float(b) for b in beats))

    @classmethod
    def from_dict(cls, data: dict) -> "BeatAnalysis":
        """Build from the service's JSON shape {bpm, beats, duration_seconds}."""
        if not isinstance(data, dict):
            raise ValidationError("beat analysis must be a mapping")
        for key in ("bpm", "beats", "duration_seconds"):
            if key not in data:
                raise ValidationError(f"beat analysis: missing required field '{key}'")
        beats = data["beats"]
        if not isinstance(beats, (list, tuple)):
            raise ValidationError(
                f"beat analysis: 'beats' must be a list of timestamps, got {beats!r}"
            )
        return cls(
            bpm=to_number(data["bpm"], "beat analysis: bpm"),
            beats=tuple(beats),
            duration_seconds=to_number(data["duration_seconds"], "beat analysis: duration_seconds"),
        )

    def to_dict(self) -> dict:
        return {
            "bpm": self.bpm,
            "beats": list(self.beats),
            "duration_seconds": self.duration_seconds,
        }


class Segment(NamedTuple):
    start: float
    end: float
    clip_url: str


def cut_points(analysis: BeatAnalysis, style: MusicVideoStyle | str) -> list[float]:
    """Timestamps (seconds) at which the active clip switches."""
    stride = MusicVideoStyle(style).stride
    beats = np.asarray(analysis.beats, dtype=float)
    return beats[::stride].tolist()


def assign_clips(points: list[float], clip_urls: list[str]) -> list[tuple[float, str]]:
    """Pair each cut point with a clip, cycling through the clips in order."""
    if not clip_urls:
        raise ValidationError("At least one clip is required to assign cuts")
    return [(t, clip_urls[i % len(clip_urls)]) for i, t in enumerate(points)]


def plan_cuts(
    analysis: BeatAnalysis,
    style: MusicVideoStyle | str,
    clip_urls: list[str],
) -> list[Segment]:
    """Split the track into clip segments at the style's cut points.

    Each segment runs from its cut point to the next one; the last runs to
    the end of the track. The first segment starts at 0 so any intro
    before the first beat is covered. Cut points at or past the end of the
    track are dropped. A track with no usable beats is one segment.
    """
    points = [t for t in cut_points(analysis, style) if t < analysis.duration_seconds]
    if points:
        points[0] = 0.0
    else:
        points = [0.0]

    assigned = assign_clips(points, clip_urls)
    segments = []
    for i, (start, url) in enumerate(assigned):
        end = assigned[i + 1][0] if i + 1 < len(assigned) else analysis.duration_seconds
        segments.append(Segment(start, end, url))
    return segments
