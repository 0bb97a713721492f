"""Built-in static layout catalogue.

These are the layouts every account can use without fetching anything.
The service may offer more (including user-built layouts), so an id that
is not listed here is still a valid layout_id.
"""

from typing import NamedTuple


class LayoutPreset(NamedTuple):
    id: str
    name: str
    description: str
    regions: int
    canvas: tuple[int, int]
    categories: tuple[str, ...]
    aspect_ratios: tuple[str, ...] = ("16:9",)


LANDSCAPE = (1920, 1080)
PORTRAIT = (1080, 1920)

DEFAULT_LAYOUTS = [
    LayoutPreset("side-by-side", "Side by Side", "Two videos side-by-side",
                 2, LANDSCAPE, ("split-screen", "comparison")),
    LayoutPreset("picture-in-picture", "Picture-in-Picture", "Small video overlaid on main video",
                 2, LANDSCAPE, ("pip", "reactions")),
    LayoutPreset("2x2-grid", "2x2 Grid", "Four videos in a grid",
                 4, LANDSCAPE, ("grid", "phone-call")),
    LayoutPreset("phone-call-3way", "3-Way Call", "Three vertical videos",
                 3, LANDSCAPE, ("phone-call", "mobile"), ("16:9", "9:16")),
    LayoutPreset("top-bottom-split", "Top/Bottom Split", "Two videos stacked vertically",
                 2, LANDSCAPE, ("comparison", "split-screen")),
    LayoutPreset("3x3-grid", "3x3 Grid", "Nine videos in a grid",
                 9, LANDSCAPE, ("grid", "mosaic")),
    LayoutPreset("triple-vertical", "Triple Vertical", "Three videos in vertical layout",
                 3, PORTRAIT, ("social-media", "mobile"), ("9:16",)),
    LayoutPreset("quad-split", "Quad Split", "Four videos, one in each corner",
                 4, LANDSCAPE, ("surveillance", "multi-angle")),
    LayoutPreset("l-shape", "L-Shape Layout", "Large video with sidebar",
                 4, LANDSCAPE, ("presentation", "gaming")),
    LayoutPreset("picture-in-picture-corner", "Corner PiP", "Small video in any corner",
                 2, LANDSCAPE, ("reaction", "commentary")),
    LayoutPreset("horizontal-strip", "Horizontal Strip", "Three videos in a row",
                 3, LANDSCAPE, ("timeline", "sequence")),
    LayoutPreset("vertical-strip", "Vertical Strip", "Three videos stacked",
                 3, LANDSCAPE, ("comparison", "progression")),
    LayoutPreset("spotlight-grid", "Spotlight Grid", "Large main video with thumbnail grid",
                 7, LANDSCAPE, ("presentation", "meeting")),
    LayoutPreset("dual-pip", "Dual Picture-in-Picture", "Two small videos over main video",
                 3, LANDSCAPE, ("reaction", "commentary")),
]

_BY_ID = {p.id: p for p in DEFAULT_LAYOUTS}


def get_layout(layout_id: str) -> LayoutPreset | None:
    return _BY_ID.get(layout_id)


def list_layouts(category: str | None = None) -> list[LayoutPreset]:
    """All built-in layouts, optionally only those tagged with category."""
    if category is None:
        return list(DEFAULT_LAYOUTS)
    return [p for p in DEFAULT_LAYOUTS if category in p.categories]


def region_mismatch(layout_id: str, clip_count: int) -> str | None:
    """Advisory note when a built-in layout has a different number of regions.

    Returns None for unknown layouts or a matching count. Never blocks
    submission; the service decides how to fill or repeat regions.
    """
    preset = get_layout(layout_id)
    if preset is None or preset.regions == clip_count:
        return None
    return (
        f"Layout '{preset.id}' has {preset.regions} regions "
        f"but {clip_count} clip(s) are selected"
    )
