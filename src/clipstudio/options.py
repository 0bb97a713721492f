"""Composition types and their per-type option enums.

Enum values are the short names used in manifests and on the command
line; ``wire_value`` is the string the rendering service expects.
"""

from enum import Enum


class CompositionType(str, Enum):
    STATIC = "static"
    ANIMATED = "animated"
    PACED = "paced"
    MUSIC_VIDEO = "music-video"
    PODCAST = "podcast"
    SOCIAL_MEDIA = "social-media"

    @property
    def wire_value(self) -> str:
        return _WIRE_NAMES.get(self, self.value)

    @classmethod
    def parse(cls, value: "CompositionType | str") -> "CompositionType":
        """Accept either the short name or the service's wire name."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if value in (member.value, member.wire_value):
                return member
        valid = sorted({m.value for m in cls} | {m.wire_value for m in cls})
        raise ValueError(f"Unknown composition type '{value}'. Valid: {valid}")


_WIRE_NAMES = {
    CompositionType.STATIC: "static-layout",
    CompositionType.PACED: "paced-sequence",
}


class MusicVideoStyle(str, Enum):
    ON_BEAT = "on-beat"
    EVERY_2_BEATS = "every-2-beats"
    EVERY_4_BEATS = "every-4-beats"
    ON_BARS = "on-bars"

    @property
    def stride(self) -> int:
        """Number of beats between consecutive cuts (4/4 time assumed)."""
        return _STYLE_STRIDES[self]


_STYLE_STRIDES = {
    MusicVideoStyle.ON_BEAT: 1,
    MusicVideoStyle.EVERY_2_BEATS: 2,
    MusicVideoStyle.EVERY_4_BEATS: 4,
    MusicVideoStyle.ON_BARS: 4,
}


class SocialFormat(str, Enum):
    VERTICAL_9_16 = "vertical-9-16"
    SQUARE_1_1 = "square-1-1"
    VERTICAL_4_5 = "vertical-4-5"

    @property
    def canvas_size(self) -> tuple[int, int]:
        return _SOCIAL_CANVAS[self]


_SOCIAL_CANVAS = {
    SocialFormat.VERTICAL_9_16: (1080, 1920),
    SocialFormat.SQUARE_1_1: (1080, 1080),
    SocialFormat.VERTICAL_4_5: (1080, 1350),
}
