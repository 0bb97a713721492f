"""Manifest loaders for layouts and compositions.

Layout manifest — a layered CompositionSpec in YAML (see layers.py for the
field list). save_layout_manifest writes exactly what load_layout_manifest
reads, so save -> load gives back an equal spec.

Composition manifest schema:
  type: music-video              # static | animated | paced | music-video | podcast | social-media
  paths:
    cdn: "https://cdn.example.com/u/42"
  clips:
    - "${cdn}/intro.mp4"
    - "${cdn}/verse.mp4"
  layout_id: side-by-side        # static
  animation_id: zoom-burst       # animated
  pacing_id: slow-build          # paced
  music:
    url: "${cdn}/track.mp3"
    volume: 0.6
  beat_analysis: beats.json      # music-video: JSON file (relative to manifest) or inline mapping
  music_video_style: every-4-beats
  social_format: vertical-9-16
  layout: layout.yaml            # optional layered layout, relative to manifest
  service:                       # optional, see RenderServiceConfig
    base_url: "https://api.example.com"
"""

import json
from pathlib import Path

import yaml

from .beatsync import BeatAnalysis
from .common import resolve_path_vars
from .composition import CompositionSession
from .errors import ValidationError
from .layers import CompositionSpec, spec_from_dict, spec_to_dict
from .layout_builder import LayoutBuilder
from .options import CompositionType, MusicVideoStyle, SocialFormat
from .validation import validate_spec


VALID_KEYS = {
    "type", "paths", "clips", "layout_id", "pacing_id", "animation_id",
    "music", "beat_analysis", "music_video_style", "social_format",
    "layout", "service",
}


# ── Layout manifests ──────────────────────────────────────────────


def load_layout_manifest(manifest_path: str | Path) -> CompositionSpec:
    """Load and structurally validate a layout manifest.

    Raises:
        ValidationError: unknown field, bad value, duplicate id, z_index gap.
        FileNotFoundError: missing manifest file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValidationError(f"Layout manifest {manifest_path}: top level must be a mapping")
    spec = spec_from_dict(raw)
    validate_spec(spec)
    return spec


def save_layout_manifest(spec: CompositionSpec, manifest_path: str | Path) -> None:
    """Write a spec as YAML. Values are saved as edited, without clamping."""
    Path(manifest_path).parent.mkdir(parents=True, exist_ok=True)
    with open(manifest_path, "w") as f:
        yaml.safe_dump(spec_to_dict(spec), f, sort_keys=False)


# ── Composition manifests ─────────────────────────────────────────


def load_composition_manifest(manifest_path: str | Path) -> dict:
    """Load a composition manifest into a ready-to-use session.

    Processing pipeline:
      1. Parse YAML, reject unknown top-level keys.
      2. Resolve ${path} variables in clip and music URLs.
      3. Apply type, presets, music, style and format to a new session.
      4. Attach the beat analysis (file or inline) after the music.
      5. Load the optional layered layout.

    Missing selections are not errors here: the session's
    missing_requirements() reports them, as it would for an interactive
    session.

    Returns:
        {"session": CompositionSession, "service": dict | None}

    Raises:
        ValidationError: unknown key or invalid value.
        FileNotFoundError: missing manifest, beat analysis or layout file.
    """
    manifest_path = Path(manifest_path)
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValidationError("Composition manifest: top level must be a mapping")

    unknown = set(raw) - VALID_KEYS
    if unknown:
        raise ValidationError(
            f"Composition manifest: unknown key(s) {sorted(unknown)}. Valid: {sorted(VALID_KEYS)}"
        )

    base_dir = manifest_path.parent
    paths = raw.get("paths", {}) or {}
    session = CompositionSession()

    try:
        session.set_type(raw.get("type", CompositionType.STATIC.value))
    except ValueError as e:
        raise ValidationError(f"Composition manifest: {e}") from None

    clips = raw.get("clips", []) or []
    if not isinstance(clips, list):
        raise ValidationError("Composition manifest: 'clips' must be a list")
    for i, clip in enumerate(clips):
        if not isinstance(clip, str):
            raise ValidationError(f"Clip {i}: must be a URL string, got {clip!r}")
        session.add_clip(_resolve(clip, paths))

    session.select_layout(raw.get("layout_id"))
    session.select_pacing(raw.get("pacing_id"))
    session.select_animation(raw.get("animation_id"))

    music = raw.get("music")
    if music is not None:
        if not isinstance(music, dict) or "url" not in music:
            raise ValidationError("Composition manifest: 'music' requires a 'url'")
        session.set_music(_resolve(music["url"], paths), music.get("volume"))

    if "music_video_style" in raw:
        session.set_music_video_style(_enum(MusicVideoStyle, raw["music_video_style"], "music_video_style"))
    if "social_format" in raw:
        session.set_social_format(_enum(SocialFormat, raw["social_format"], "social_format"))

    beat_analysis = raw.get("beat_analysis")
    if beat_analysis is not None:
        session.attach_beat_analysis(_load_beat_analysis(beat_analysis, base_dir, paths))

    layout = raw.get("layout")
    if layout is not None:
        layout_path = _relative(_resolve(str(layout), paths), base_dir)
        session.layout = LayoutBuilder(load_layout_manifest(layout_path))

    return {"session": session, "service": raw.get("service")}


def load_beat_analysis(path: str | Path) -> BeatAnalysis:
    """Read a beat analysis JSON file as returned by the service."""
    with open(path) as f:
        return BeatAnalysis.from_dict(json.load(f))


def save_beat_analysis(analysis: BeatAnalysis, path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(analysis.to_dict(), f, indent=2)


def _load_beat_analysis(value, base_dir: Path, paths: dict) -> BeatAnalysis:
    if isinstance(value, dict):
        return BeatAnalysis.from_dict(value)
    if isinstance(value, str):
        return load_beat_analysis(_relative(_resolve(value, paths), base_dir))
    raise ValidationError("beat_analysis must be a file path or a mapping")


def _relative(path: str, base_dir: Path) -> Path:
    p = Path(path)
    return p if p.is_absolute() else base_dir / p


def _enum(cls, value, name: str):
    try:
        return cls(value)
    except ValueError:
        raise ValidationError(
            f"Composition manifest: invalid {name} '{value}'. "
            f"Valid: {sorted(m.value for m in cls)}"
        ) from None


def _resolve(text: str, paths: dict) -> str:
    try:
        return resolve_path_vars(text, paths)
    except ValueError as e:
        raise ValidationError(f"Composition manifest: {e}") from None
