"""Composition session and render request.

The session holds every choice the user has made: composition type, clip
URLs, the layout/pacing/animation preset ids, background music and its beat
analysis, music-video style and social format. Switching type never clears
the other choices; they are ignored until their type is selected again.

Readiness (can_submit) by type:
  static        >= 1 clip and a layout_id
  animated      >= 1 clip and an animation_id
  paced         >= 1 clip and a pacing_id
  music-video   >= 1 clip, background music, and a beat analysis of that music
  podcast       >= 1 clip
  social-media  >= 1 clip (format always has a default)

A CompositionRequest can only be built from a ready session, and its own
constructor re-checks the per-type requirements, so an invalid request
cannot exist.
"""

import logging
from dataclasses import dataclass, field

from .beatsync import BeatAnalysis, Segment, plan_cuts
from .common import to_number
from .errors import ValidationError
from .eta import estimate_duration
from .layout_builder import LayoutBuilder
from .options import CompositionType, MusicVideoStyle, SocialFormat
from .pricing import estimate_cost, estimate_total_cost
from .validation import sanitize_spec

logger = logging.getLogger(__name__)

DEFAULT_MUSIC_VOLUME = 0.5


# ── Request ───────────────────────────────────────────────────────

_PRESET_FIELD = {
    CompositionType.STATIC: "layout_id",
    CompositionType.ANIMATED: "animation_id",
    CompositionType.PACED: "pacing_id",
}


@dataclass(frozen=True)
class CompositionRequest:
    """What gets sent to the rendering service. Validated on construction."""

    type: CompositionType
    clip_urls: tuple[str, ...]
    layout_id: str | None = None
    pacing_id: str | None = None
    animation_id: str | None = None
    music_url: str | None = None
    music_volume: float | None = None
    beat_analysis: BeatAnalysis | None = None
    music_video_style: MusicVideoStyle | None = None
    social_format: SocialFormat | None = None

    def __post_init__(self):
        if not self.clip_urls:
            raise ValidationError("At least one clip is required")
        preset = _PRESET_FIELD.get(self.type)
        if preset is not None and not getattr(self, preset):
            raise ValidationError(f"{self.type.value} composition requires {preset}")
        if self.music_volume is not None and not 0.0 <= self.music_volume <= 1.0:
            raise ValidationError(f"music_volume must be in [0, 1], got {self.music_volume}")
        if self.type is CompositionType.MUSIC_VIDEO:
            if not self.music_url:
                raise ValidationError("music-video composition requires background music")
            if self.beat_analysis is None:
                raise ValidationError("music-video composition requires a beat analysis")
            if self.music_video_style is None:
                raise ValidationError("music-video composition requires a music_video_style")
        elif self.beat_analysis is not None or self.music_video_style is not None:
            raise ValidationError("beat_analysis/music_video_style only apply to music-video")
        if self.type is CompositionType.SOCIAL_MEDIA:
            if self.social_format is None:
                raise ValidationError("social-media composition requires a social_format")
        elif self.social_format is not None:
            raise ValidationError("social_format only applies to social-media")

    def to_payload(self) -> dict:
        """JSON body for the compose endpoint. Unset fields are omitted."""
        payload = {
            "composition_type": self.type.wire_value,
            "video_urls": list(self.clip_urls),
        }
        for key in ("layout_id", "pacing_id", "animation_id"):
            value = getattr(self, key)
            if value:
                payload[key] = value
        if self.music_url:
            payload["background_music_url"] = self.music_url
            payload["music_volume"] = self.music_volume
        if self.beat_analysis is not None:
            payload["beat_analysis"] = self.beat_analysis.to_dict()
            payload["music_video_style"] = self.music_video_style.value
        if self.social_format is not None:
            payload["social_media_format"] = self.social_format.value
        return payload


# ── Session ───────────────────────────────────────────────────────


@dataclass
class CompositionSession:
    """Authoring state for one composition. Mutated only through its methods."""

    composition_type: CompositionType = CompositionType.STATIC
    clip_urls: list[str] = field(default_factory=list)
    layout_id: str | None = None
    pacing_id: str | None = None
    animation_id: str | None = None
    music_url: str | None = None
    music_volume: float = DEFAULT_MUSIC_VOLUME
    beat_analysis: BeatAnalysis | None = None
    music_video_style: MusicVideoStyle = MusicVideoStyle.ON_BEAT
    social_format: SocialFormat = SocialFormat.VERTICAL_9_16
    layout: LayoutBuilder = field(default_factory=LayoutBuilder)

    # ── Type selection ────────────────────────────────────────────

    def set_type(self, composition_type: CompositionType | str) -> None:
        new = CompositionType.parse(composition_type)
        if new is not self.composition_type:
            logger.info("Composition type %s -> %s", self.composition_type.value, new.value)
        self.composition_type = new

    # ── Clips ─────────────────────────────────────────────────────

    def add_clip(self, url: str) -> None:
        if not isinstance(url, str) or not url.strip():
            raise ValidationError(f"Invalid clip url: {url!r}")
        self.clip_urls.append(url)

    def remove_clip(self, url: str) -> bool:
        if url in self.clip_urls:
            self.clip_urls.remove(url)
            return True
        return False

    # ── Presets ───────────────────────────────────────────────────

    def select_layout(self, layout_id: str | None) -> None:
        self.layout_id = layout_id or None

    def select_pacing(self, pacing_id: str | None) -> None:
        self.pacing_id = pacing_id or None

    def select_animation(self, animation_id: str | None) -> None:
        self.animation_id = animation_id or None

    def use_custom_layout(self) -> str:
        """Select the session's own layered layout as the static layout.

        The layout is validated first; it must have an id (assigned when the
        service stores it) to be referenced by a request.
        """
        spec = sanitize_spec(self.layout.spec)
        if not spec.id:
            raise ValidationError("Custom layout has no id; save it before selecting it")
        self.layout_id = spec.id
        return spec.id

    def set_music_video_style(self, style: MusicVideoStyle | str) -> None:
        self.music_video_style = MusicVideoStyle(style)

    def set_social_format(self, social_format: SocialFormat | str) -> None:
        self.social_format = SocialFormat(social_format)

    # ── Music & beats ─────────────────────────────────────────────

    def set_music(self, url: str | None, volume: float | None = None) -> None:
        """Attach (or with None, detach) background music.

        A different track invalidates the beat analysis; music-video stays
        blocked until the new track has been analysed.
        """
        if volume is not None:
            self.set_music_volume(volume)
        url = url or None
        if url != self.music_url:
            if self.beat_analysis is not None:
                logger.info("Music changed; discarding beat analysis")
            self.beat_analysis = None
        self.music_url = url

    def set_music_volume(self, volume: float) -> None:
        volume = to_number(volume, "music_volume")
        if not 0.0 <= volume <= 1.0:
            raise ValidationError(f"music_volume must be in [0, 1], got {volume}")
        self.music_volume = volume

    def attach_beat_analysis(self, analysis: BeatAnalysis | dict) -> None:
        """Store the analysis for the current track. Replacing one is an error."""
        if not self.music_url:
            raise ValidationError("Attach background music before its beat analysis")
        if self.beat_analysis is not None:
            raise ValidationError(
                "Beat analysis already attached for this track; change the music to re-analyse"
            )
        if isinstance(analysis, dict):
            analysis = BeatAnalysis.from_dict(analysis)
        self.beat_analysis = analysis

    @property
    def needs_beat_analysis(self) -> bool:
        return bool(self.music_url) and self.beat_analysis is None

    # ── Readiness ─────────────────────────────────────────────────

    def missing_requirements(self) -> list[str]:
        """Human-readable reasons the session cannot be submitted yet."""
        missing = []
        if not self.clip_urls:
            missing.append("add at least one clip")
        ctype = self.composition_type
        if ctype is CompositionType.STATIC and not self.layout_id:
            missing.append("choose a layout")
        elif ctype is CompositionType.ANIMATED and not self.animation_id:
            missing.append("choose an animation")
        elif ctype is CompositionType.PACED and not self.pacing_id:
            missing.append("choose a pacing")
        elif ctype is CompositionType.MUSIC_VIDEO:
            if not self.music_url:
                missing.append("add background music")
            elif self.beat_analysis is None:
                missing.append("analyse the music's beats")
        return missing

    def can_submit(self) -> bool:
        return not self.missing_requirements()

    def build_request(self) -> CompositionRequest:
        """Freeze the current choices into a request.

        Raises:
            ValidationError: the session is not ready; the message lists
                everything that is missing.
        """
        missing = self.missing_requirements()
        if missing:
            raise ValidationError("Cannot submit: " + "; ".join(missing))

        ctype = self.composition_type
        kwargs = {}
        preset = _PRESET_FIELD.get(ctype)
        if preset is not None:
            kwargs[preset] = getattr(self, preset)
        if self.music_url:
            kwargs["music_url"] = self.music_url
            kwargs["music_volume"] = self.music_volume
        if ctype is CompositionType.MUSIC_VIDEO:
            kwargs["beat_analysis"] = self.beat_analysis
            kwargs["music_video_style"] = self.music_video_style
        if ctype is CompositionType.SOCIAL_MEDIA:
            kwargs["social_format"] = self.social_format

        return CompositionRequest(type=ctype, clip_urls=tuple(self.clip_urls), **kwargs)

    # ── Estimates ─────────────────────────────────────────────────

    def estimate_cost(self) -> int | None:
        """Credits for the current type and clip count; None with no clips."""
        if not self.clip_urls:
            return None
        return estimate_cost(self.composition_type, len(self.clip_urls))

    def estimate_total_cost(self) -> int | None:
        """Like estimate_cost, plus the beat analysis fee if it is still owed."""
        if not self.clip_urls:
            return None
        return estimate_total_cost(
            self.composition_type, len(self.clip_urls), self.needs_beat_analysis,
        )

    def estimate_duration(self) -> str | None:
        if not self.clip_urls:
            return None
        return estimate_duration(self.composition_type, len(self.clip_urls))

    def cut_plan(self) -> list[Segment]:
        """Beat-synced clip segments for the current music-video settings."""
        if self.beat_analysis is None:
            raise ValidationError("No beat analysis attached")
        return plan_cuts(self.beat_analysis, self.music_video_style, self.clip_urls)
