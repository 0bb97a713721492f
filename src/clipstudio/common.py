"""clipstudio.common — shared utilities.

Contains: color parsing/normalization, number coercion, path variable resolution,
and media probing for local clips and images.
"""

import re
from pathlib import Path

import imageio_ffmpeg
from PIL import Image, ImageColor

from .errors import ValidationError


IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}


# ── Color utilities ────────────────────────────────────────────────

def normalize_color(value: str) -> str:
    """Normalize any CSS-style color ('#abc', 'black', 'rgb(...)') to '#RRGGBB'.

    Pillow's ImageColor does the parsing, so named colors are accepted too.
    Raises ValueError for anything it cannot read.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid color: {value!r}")
    try:
        rgb = ImageColor.getrgb(value.strip())
    except ValueError:
        raise ValueError(f"Invalid color: '{value}'") from None
    return "#{:02X}{:02X}{:02X}".format(*rgb[:3])


# ── Number coercion ────────────────────────────────────────────────

def to_number(value, where: str = "value") -> float:
    """float(value) for manifest/service input; bools and non-numbers raise ValidationError."""
    try:
        if isinstance(value, bool):
            raise TypeError
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{where} must be a number, got {value!r}") from None


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Media probing ──────────────────────────────────────────────────

def probe_media(path: str | Path) -> dict:
    """Read width, height and duration of a local video or image.

    Images report duration None. Videos are probed with the ffmpeg binary
    bundled by imageio-ffmpeg, which reads the header without decoding.

    Returns:
        {"width": int, "height": int, "duration": float | None, "kind": "video"|"image"}

    Raises:
        FileNotFoundError: path does not exist.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Media file not found: {path}")

    if p.suffix.lower() in IMAGE_EXTENSIONS:
        with Image.open(p) as img:
            width, height = img.size
        return {"width": width, "height": height, "duration": None, "kind": "image"}

    reader = imageio_ffmpeg.read_frames(str(p))
    try:
        meta = next(reader)
    finally:
        reader.close()
    width, height = meta["size"]
    return {
        "width": int(width),
        "height": int(height),
        "duration": float(meta["duration"]),
        "kind": "video",
    }
