"""Canvas/layer data model for layered compositions.

A CompositionSpec owns one Canvas and an ordered list of Layers. Array
position is paint order: layers[0] is painted first (bottom), the last
layer is painted on top. Each layer also carries an explicit z_index that
always equals its array position (see zorder.py).

Serialized form (what save/test send and what load reads back):
  id: "layout_1"
  name: "New Composition"
  description: ""
  canvas: {width: 1920, height: 1080, background_color: "#000000"}
  duration_seconds: 10
  layers:
    - id: "layer_1"
      name: "Video 1"
      kind: video
      z_index: 0
      visible: true
      transform: {x, y, width, height, rotation_deg, source_width, source_height}
      effects: {opacity, brightness, contrast, saturation, blur_px, blend_mode,
                chroma_key: {color, threshold_pct, blend_pct}}
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field, fields
from enum import Enum

from .common import normalize_color, to_number
from .errors import ValidationError


class LayerKind(str, Enum):
    VIDEO = "video"
    IMAGE = "image"


class BlendMode(str, Enum):
    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    ADDITION = "addition"


# ── Defaults ───────────────────────────────────────────────────────

DEFAULT_CANVAS_SIZE = (1920, 1080)
DEFAULT_BACKGROUND = "#000000"
DEFAULT_DURATION_SECONDS = 10.0
DEFAULT_LAYER_POSITION = (100.0, 100.0)
DEFAULT_LAYER_SIZE = (640.0, 360.0)
DEFAULT_SOURCE_SIZE = (1920.0, 1080.0)


# ── Value types ────────────────────────────────────────────────────


@dataclass
class Canvas:
    width: int = DEFAULT_CANVAS_SIZE[0]
    height: int = DEFAULT_CANVAS_SIZE[1]
    background_color: str = DEFAULT_BACKGROUND


@dataclass
class Transform:
    x: float = DEFAULT_LAYER_POSITION[0]
    y: float = DEFAULT_LAYER_POSITION[1]
    width: float = DEFAULT_LAYER_SIZE[0]
    height: float = DEFAULT_LAYER_SIZE[1]
    rotation_deg: float = 0.0
    source_width: float = DEFAULT_SOURCE_SIZE[0]
    source_height: float = DEFAULT_SOURCE_SIZE[1]


@dataclass
class ChromaKey:
    """Color-keyed transparency. Percentages are 0-100."""

    color: str = "#00FF00"
    threshold_pct: float = 30.0
    blend_pct: float = 10.0


@dataclass
class Effects:
    opacity: float = 1.0
    brightness: float = 1.0
    contrast: float = 1.0
    saturation: float = 1.0
    blur_px: float = 0.0
    blend_mode: BlendMode = BlendMode.NORMAL
    chroma_key: ChromaKey | None = None


@dataclass
class Layer:
    id: str
    name: str
    kind: LayerKind = LayerKind.VIDEO
    z_index: int = 0
    visible: bool = True
    transform: Transform = field(default_factory=Transform)
    effects: Effects = field(default_factory=Effects)


@dataclass
class CompositionSpec:
    id: str = ""
    name: str = "New Composition"
    description: str = ""
    canvas: Canvas = field(default_factory=Canvas)
    layers: list[Layer] = field(default_factory=list)
    duration_seconds: float = DEFAULT_DURATION_SECONDS

    def find_layer(self, layer_id: str) -> Layer | None:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    def index_of(self, layer_id: str) -> int:
        """Array index of a layer, or -1 if absent."""
        for i, layer in enumerate(self.layers):
            if layer.id == layer_id:
                return i
        return -1

    def to_dict(self) -> dict:
        return spec_to_dict(self)

    @classmethod
    def from_dict(cls, data: dict) -> CompositionSpec:
        return spec_from_dict(data)


# ── Serialization ─────────────────────────────────────────────────


def spec_to_dict(spec: CompositionSpec) -> dict:
    """Plain-dict form of a spec: enums as their string values, deep-copied."""
    data = asdict(spec)
    for layer in data["layers"]:
        layer["kind"] = LayerKind(layer["kind"]).value
        layer["effects"]["blend_mode"] = BlendMode(layer["effects"]["blend_mode"]).value
        if layer["effects"]["chroma_key"] is None:
            del layer["effects"]["chroma_key"]
    return data


def spec_from_dict(data: dict) -> CompositionSpec:
    """Rebuild a CompositionSpec from its dict form.

    Missing keys fall back to defaults; unknown keys are rejected so typos
    in hand-written manifests surface instead of being silently dropped.

    Raises:
        ValidationError: unknown field, non-numeric value, bad enum value,
            bad color, or a duplicate layer id.
    """
    data = copy.deepcopy(_mapping(data, "composition"))
    _reject_unknown(data, CompositionSpec, "composition")

    canvas_raw = _mapping(data.get("canvas"), "canvas")
    _reject_unknown(canvas_raw, Canvas, "canvas")
    canvas = Canvas(**canvas_raw)
    for name in ("width", "height"):
        if name in canvas_raw:
            setattr(canvas, name, _integer(canvas_raw[name], f"canvas.{name}"))
    canvas.background_color = _color(canvas.background_color, "canvas.background_color")

    layers = []
    seen = set()
    for i, raw in enumerate(data.get("layers") or []):
        layer = _layer_from_dict(raw, i)
        if layer.id in seen:
            raise ValidationError(f"Layer {i}: duplicate layer id '{layer.id}'")
        seen.add(layer.id)
        layers.append(layer)

    return CompositionSpec(
        id=str(data.get("id", "")),
        name=str(data.get("name", "New Composition")),
        description=str(data.get("description", "")),
        canvas=canvas,
        layers=layers,
        duration_seconds=to_number(
            data.get("duration_seconds", DEFAULT_DURATION_SECONDS), "duration_seconds",
        ),
    )


def _layer_from_dict(raw: dict, index: int) -> Layer:
    prefix = f"Layer {index}"
    if not isinstance(raw, dict):
        raise ValidationError(f"{prefix}: must be a mapping")
    _reject_unknown(raw, Layer, prefix)
    if "id" not in raw:
        raise ValidationError(f"{prefix}: missing required field 'id'")

    try:
        kind = LayerKind(raw.get("kind", LayerKind.VIDEO.value))
    except ValueError:
        raise ValidationError(
            f"{prefix}: invalid kind '{raw.get('kind')}'. "
            f"Valid: {sorted(k.value for k in LayerKind)}"
        ) from None

    transform_raw = _mapping(raw.get("transform"), f"{prefix} transform")
    _reject_unknown(transform_raw, Transform, f"{prefix} transform")
    transform = Transform(**_numbers(transform_raw, f"{prefix} transform"))

    effects_raw = dict(_mapping(raw.get("effects"), f"{prefix} effects"))
    _reject_unknown(effects_raw, Effects, f"{prefix} effects")
    blend = effects_raw.pop("blend_mode", BlendMode.NORMAL.value)
    try:
        blend_mode = BlendMode(blend)
    except ValueError:
        raise ValidationError(
            f"{prefix}: invalid blend_mode '{blend}'. "
            f"Valid: {sorted(b.value for b in BlendMode)}"
        ) from None
    chroma_raw = effects_raw.pop("chroma_key", None)
    chroma = None
    if chroma_raw is not None:
        chroma_raw = dict(_mapping(chroma_raw, f"{prefix} chroma_key"))
        _reject_unknown(chroma_raw, ChromaKey, f"{prefix} chroma_key")
        color = chroma_raw.pop("color", ChromaKey.color)
        chroma = ChromaKey(color=color, **_numbers(chroma_raw, f"{prefix} chroma_key"))
        chroma.color = _color(chroma.color, f"{prefix} chroma_key.color")
    effects = Effects(
        blend_mode=blend_mode,
        chroma_key=chroma,
        **_numbers(effects_raw, f"{prefix} effects"),
    )

    name = raw.get("name") or f"{kind.value.capitalize()} {index + 1}"
    return Layer(
        id=str(raw["id"]),
        name=str(name),
        kind=kind,
        z_index=_integer(raw.get("z_index", index), f"{prefix} z_index"),
        visible=bool(raw.get("visible", True)),
        transform=transform,
        effects=effects,
    )


def _mapping(value, where: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{where}: must be a mapping, got {value!r}")
    return value


def _numbers(raw: dict, prefix: str) -> dict:
    return {k: to_number(v, f"{prefix}.{k}") for k, v in raw.items()}


def _integer(value, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{where} must be an integer, got {value!r}")
    return value


def _reject_unknown(raw: dict, cls, prefix: str) -> None:
    allowed = {f.name for f in fields(cls)}
    unknown = set(raw) - allowed
    if unknown:
        raise ValidationError(
            f"{prefix}: unknown field(s) {sorted(unknown)}. Valid: {sorted(allowed)}"
        )


def _color(value: str, where: str) -> str:
    try:
        return normalize_color(value)
    except ValueError as e:
        raise ValidationError(f"{where}: {e}") from None
