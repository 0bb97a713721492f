"""Layout builder — the authoring session for a layered composition.

One LayoutBuilder owns one CompositionSpec plus the current selection.
All edits go through its methods; nothing else writes to the spec.
Values passed to update_transform/update_effects are stored as given.
Clamping happens in validation.sanitize_spec before save or submit.
"""

import logging
import uuid
from dataclasses import fields, replace
from pathlib import Path

from .common import probe_media
from .errors import ValidationError
from .layers import (
    BlendMode,
    ChromaKey,
    CompositionSpec,
    Effects,
    Layer,
    LayerKind,
    Transform,
    spec_from_dict,
    spec_to_dict,
)
from .validation import sanitize_spec
from .zorder import Direction, move_layer, paint_order, renumber

logger = logging.getLogger(__name__)

_TRANSFORM_FIELDS = {f.name for f in fields(Transform)}
_EFFECT_FIELDS = {f.name for f in fields(Effects)}
_CHROMA_FIELDS = {f.name for f in fields(ChromaKey)}


def _new_layer_id() -> str:
    return f"layer_{uuid.uuid4().hex[:12]}"


class LayoutBuilder:
    """Mutable authoring session around a CompositionSpec.

    Args:
        spec: Existing spec to edit. A default 1920x1080 spec if omitted.
        id_factory: Callable returning fresh layer ids (tests pass a counter).
    """

    def __init__(self, spec: CompositionSpec | None = None, id_factory=None):
        self.spec = spec if spec is not None else CompositionSpec()
        self.selected_layer_id: str | None = None
        self._id_factory = id_factory or _new_layer_id

    # ── Queries ───────────────────────────────────────────────────

    @property
    def layers(self) -> list[Layer]:
        return self.spec.layers

    @property
    def selected_layer(self) -> Layer | None:
        if self.selected_layer_id is None:
            return None
        return self.spec.find_layer(self.selected_layer_id)

    def paint_order(self) -> list[Layer]:
        return paint_order(self.spec.layers)

    # ── Layer lifecycle ───────────────────────────────────────────

    def add_layer(self, kind: LayerKind | str = LayerKind.VIDEO) -> Layer:
        """Append a layer with default transform/effects on top of the stack.

        The new layer becomes the selection.
        """
        kind = LayerKind(kind)
        layer_id = self._id_factory()
        while self.spec.find_layer(layer_id) is not None:
            layer_id = self._id_factory()

        n = len(self.spec.layers)
        layer = Layer(
            id=layer_id,
            name=f"{kind.value.capitalize()} {n + 1}",
            kind=kind,
            z_index=n,
        )
        self.spec.layers.append(layer)
        self.selected_layer_id = layer.id
        logger.debug("Added %s layer %s at z=%d", kind.value, layer.id, n)
        return layer

    def add_layer_from_media(self, path: str | Path) -> Layer:
        """Add a layer sized from a local media file's native dimensions."""
        info = probe_media(path)
        layer = self.add_layer(LayerKind(info["kind"]))
        layer.name = Path(path).stem
        layer.transform.source_width = float(info["width"])
        layer.transform.source_height = float(info["height"])
        return layer

    def remove_layer(self, layer_id: str) -> bool:
        """Remove a layer; unknown ids are ignored.

        Remaining layers are renumbered straight away so z_index never has
        gaps. Removing the selected layer clears the selection.
        """
        index = self.spec.index_of(layer_id)
        if index < 0:
            return False
        del self.spec.layers[index]
        renumber(self.spec.layers)
        if self.selected_layer_id == layer_id:
            self.selected_layer_id = None
        logger.debug("Removed layer %s", layer_id)
        return True

    def select_layer(self, layer_id: str | None) -> None:
        if layer_id is not None and self.spec.find_layer(layer_id) is None:
            raise ValidationError(f"Unknown layer id '{layer_id}'")
        self.selected_layer_id = layer_id

    # ── Edits ─────────────────────────────────────────────────────

    def update_layer(
        self, layer_id: str, *, name: str | None = None, visible: bool | None = None,
    ) -> bool:
        layer = self.spec.find_layer(layer_id)
        if layer is None:
            return False
        if name is not None:
            layer.name = name
        if visible is not None:
            layer.visible = bool(visible)
        return True

    def update_transform(self, layer_id: str, **partial) -> bool:
        """Merge-patch a layer's transform. Values are not clamped here."""
        layer = self.spec.find_layer(layer_id)
        if layer is None:
            return False
        unknown = set(partial) - _TRANSFORM_FIELDS
        if unknown:
            raise ValidationError(f"Unknown transform field(s): {sorted(unknown)}")
        layer.transform = replace(layer.transform, **partial)
        return True

    def update_effects(self, layer_id: str, **partial) -> bool:
        """Merge-patch a layer's effects. Values are not clamped here.

        blend_mode accepts a BlendMode or its string value; chroma_key accepts
        a ChromaKey, a dict of its fields, or None to turn keying off.
        """
        layer = self.spec.find_layer(layer_id)
        if layer is None:
            return False
        unknown = set(partial) - _EFFECT_FIELDS
        if unknown:
            raise ValidationError(f"Unknown effect field(s): {sorted(unknown)}")
        if "blend_mode" in partial:
            try:
                partial["blend_mode"] = BlendMode(partial["blend_mode"])
            except ValueError:
                raise ValidationError(
                    f"Invalid blend_mode '{partial['blend_mode']}'. "
                    f"Valid: {sorted(b.value for b in BlendMode)}"
                ) from None
        chroma = partial.get("chroma_key")
        if isinstance(chroma, dict):
            unknown = set(chroma) - _CHROMA_FIELDS
            if unknown:
                raise ValidationError(f"Unknown chroma_key field(s): {sorted(unknown)}")
            partial["chroma_key"] = ChromaKey(**chroma)
        elif chroma is not None and not isinstance(chroma, ChromaKey):
            raise ValidationError(f"chroma_key must be a mapping or None, got {chroma!r}")
        layer.effects = replace(layer.effects, **partial)
        return True

    def move_layer(self, layer_id: str, direction: Direction | str) -> bool:
        return move_layer(self.spec.layers, layer_id, direction)

    # ── Save / load ───────────────────────────────────────────────

    def set_id(self, layout_id: str) -> None:
        """Record the id the service assigned when the layout was saved."""
        if not isinstance(layout_id, str) or not layout_id.strip():
            raise ValidationError(f"layout id must be a non-empty string, got {layout_id!r}")
        self.spec.id = layout_id

    def serialize(self) -> dict:
        """The spec as a plain dict, exactly as edited (no clamping)."""
        return spec_to_dict(self.spec)

    def export(self) -> dict:
        """The validated, clamped spec as a plain dict, ready for the service."""
        return spec_to_dict(sanitize_spec(self.spec))

    @classmethod
    def from_serialized(cls, data: dict, id_factory=None) -> "LayoutBuilder":
        return cls(spec_from_dict(data), id_factory=id_factory)
