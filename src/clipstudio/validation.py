"""Range clamping and structural validation for layered compositions.

Editing operations store whatever values they are given; this module is
what makes a spec legal before it is saved or submitted:
  - Effect and rotation values are clamped into their legal ranges.
  - Sizes, canvas dimensions and duration must be positive; these cannot be
    clamped meaningfully and raise ValidationError instead.
  - Layer ids must be unique and z_index must match array position.
"""

import copy
import math

from .common import to_number
from .errors import ValidationError
from .layers import CompositionSpec, Effects, Layer, Transform
from .zorder import check_z_order


# ── Legal ranges ───────────────────────────────────────────────────

OPACITY_RANGE = (0.0, 1.0)
COLOR_ADJUST_RANGE = (0.0, 2.0)
BLUR_RANGE = (0.0, 20.0)
ROTATION_RANGE = (-180.0, 180.0)
PERCENT_RANGE = (0.0, 100.0)


def clamp(value: float, bounds: tuple[float, float]) -> float:
    """Clamp value into [lo, hi]. NaN and non-numbers are rejected."""
    value = to_number(value)
    if math.isnan(value):
        raise ValidationError("value is NaN")
    lo, hi = bounds
    return min(hi, max(lo, value))


def clamp_transform(transform: Transform) -> Transform:
    """Return a copy with rotation clamped; raise if a size is not positive."""
    for name in ("width", "height", "source_width", "source_height"):
        value = to_number(getattr(transform, name), f"transform.{name}")
        if not value > 0:
            raise ValidationError(f"transform.{name} must be > 0, got {value!r}")
    for name in ("x", "y"):
        if not math.isfinite(to_number(getattr(transform, name), f"transform.{name}")):
            raise ValidationError(f"transform.{name} must be finite")
    out = copy.copy(transform)
    out.rotation_deg = clamp(transform.rotation_deg, ROTATION_RANGE)
    return out


def clamp_effects(effects: Effects) -> Effects:
    """Return a copy with every effect parameter inside its legal range."""
    out = copy.deepcopy(effects)
    out.opacity = clamp(effects.opacity, OPACITY_RANGE)
    out.brightness = clamp(effects.brightness, COLOR_ADJUST_RANGE)
    out.contrast = clamp(effects.contrast, COLOR_ADJUST_RANGE)
    out.saturation = clamp(effects.saturation, COLOR_ADJUST_RANGE)
    out.blur_px = clamp(effects.blur_px, BLUR_RANGE)
    if out.chroma_key is not None:
        out.chroma_key.threshold_pct = clamp(out.chroma_key.threshold_pct, PERCENT_RANGE)
        out.chroma_key.blend_pct = clamp(out.chroma_key.blend_pct, PERCENT_RANGE)
    return out


def clamp_layer(layer: Layer) -> Layer:
    """Return a copy of the layer with transform and effects made legal."""
    try:
        transform = clamp_transform(layer.transform)
        effects = clamp_effects(layer.effects)
    except ValidationError as e:
        raise ValidationError(f"Layer '{layer.id}': {e}") from None
    out = copy.copy(layer)
    out.transform = transform
    out.effects = effects
    return out


def validate_spec(spec: CompositionSpec) -> None:
    """Check the structural rules that clamping cannot fix.

    Raises:
        ValidationError: non-positive canvas/duration, duplicate layer id,
            or z_index out of step with array position.
    """
    if not (isinstance(spec.canvas.width, int) and spec.canvas.width > 0):
        raise ValidationError(f"canvas.width must be a positive int, got {spec.canvas.width!r}")
    if not (isinstance(spec.canvas.height, int) and spec.canvas.height > 0):
        raise ValidationError(f"canvas.height must be a positive int, got {spec.canvas.height!r}")
    if not spec.duration_seconds > 0:
        raise ValidationError(
            f"duration_seconds must be > 0, got {spec.duration_seconds!r}"
        )

    seen = {}
    for i, layer in enumerate(spec.layers):
        if layer.id in seen:
            raise ValidationError(
                f"Layer {i}: duplicate layer id '{layer.id}' "
                f"(also used by layer {seen[layer.id]})"
            )
        seen[layer.id] = i

    try:
        check_z_order(spec.layers)
    except ValueError as e:
        raise ValidationError(str(e)) from None


def sanitize_spec(spec: CompositionSpec) -> CompositionSpec:
    """Validate a spec and return a copy with every layer clamped.

    The input spec is left untouched so the editing session keeps the
    values the user typed.
    """
    validate_spec(spec)
    out = copy.deepcopy(spec)
    out.layers = [clamp_layer(layer) for layer in out.layers]
    return out
