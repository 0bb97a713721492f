"""CLI for information: price/time estimates and the template catalogues.

Usage:
    clipstudio estimate --type music-video --clips 24
    clipstudio estimate --type static --clips 3 --clips 12 --clips 250
    clipstudio layouts --category grid
    clipstudio layouts --remote --base-url https://api.example.com
    clipstudio pacing --intensity high
    clipstudio animations --complexity simple

estimate and layouts work offline. pacing and animations, and layouts
with --remote, ask the service for its current catalogue.
"""

import argparse
import asyncio
import sys

from .errors import ServiceError, ValidationError
from .eta import estimate_duration
from .options import CompositionType
from .presets import list_layouts
from .pricing import BEAT_ANALYSIS_CREDITS, estimate_cost
from .render_client import RenderClient, RenderServiceConfig

INTENSITY_LEVELS = ("low", "medium", "high", "extreme")
COMPLEXITY_LEVELS = ("simple", "moderate", "complex")


def estimate_main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipstudio estimate",
        description="Estimate credit cost and processing time.",
    )
    parser.add_argument(
        "--type", required=True,
        choices=[t.value for t in CompositionType],
        help="Composition type",
    )
    parser.add_argument(
        "--clips", type=int, action="append", required=True,
        help="Number of clips (repeat for several estimates)",
    )
    parsed = parser.parse_args(args)

    ctype = CompositionType(parsed.type)
    for count in parsed.clips:
        try:
            cost = estimate_cost(ctype, count)
            eta = estimate_duration(ctype, count)
        except ValidationError as e:
            parser.error(str(e))
        print(f"  {ctype.value:<13} {count:>5} clip(s)  {cost:>5} credits  ~{eta}")

    if ctype is CompositionType.MUSIC_VIDEO:
        print(f"  + {BEAT_ANALYSIS_CREDITS} credits once per music track for beat analysis")


# ── Service catalogues ────────────────────────────────────────────


def _add_base_url(parser):
    parser.add_argument(
        "--base-url", default=None,
        help="Service base URL (default: $CLIPSTUDIO_API_URL)",
    )


def _service_config(parser, base_url):
    section = {"base_url": base_url} if base_url else None
    try:
        return RenderServiceConfig.from_sources(section)
    except ValidationError as e:
        parser.error(str(e))


async def _fetch(cfg: RenderServiceConfig, fetch):
    async with RenderClient(cfg) as client:
        return await fetch(client)


def layouts_main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipstudio layouts",
        description="List static layouts (built-in, or the service's with --remote).",
    )
    parser.add_argument("--category", default=None, help="Only layouts in this category")
    parser.add_argument(
        "--remote", action="store_true",
        help="Ask the service for its layouts; falls back to the built-ins on failure",
    )
    _add_base_url(parser)
    parsed = parser.parse_args(args)

    if parsed.remote:
        cfg = _service_config(parser, parsed.base_url)
        try:
            remote = asyncio.run(_fetch(cfg, lambda c: c.list_layouts()))
        except ServiceError as e:
            print(f"Could not fetch layouts ({e}); showing built-in layouts")
        else:
            if parsed.category is not None:
                remote = [r for r in remote if parsed.category in r.best_for]
            if not remote:
                print(f"No layouts in category '{parsed.category}'")
                return
            for r in remote:
                size = f"{r.canvas.width}x{r.canvas.height}" if r.canvas else "-"
                print(f"  {r.id:<27} {r.num_regions} region(s)  {size}  {r.description}")
            return

    layouts = list_layouts(parsed.category)
    if not layouts:
        print(f"No layouts in category '{parsed.category}'")
        return
    for p in layouts:
        w, h = p.canvas
        print(f"  {p.id:<27} {p.regions} region(s)  {w}x{h}  {p.description}")


def pacing_main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipstudio pacing",
        description="List the service's pacing templates for paced sequences.",
    )
    parser.add_argument(
        "--intensity", choices=INTENSITY_LEVELS, default=None,
        help="Only templates with this intensity level",
    )
    _add_base_url(parser)
    parsed = parser.parse_args(args)

    cfg = _service_config(parser, parsed.base_url)
    try:
        templates = asyncio.run(_fetch(cfg, lambda c: c.list_pacing_templates()))
    except ServiceError as e:
        print(f"Could not fetch pacing templates: {e}")
        sys.exit(1)

    if parsed.intensity is not None:
        templates = [t for t in templates if t.intensity_level == parsed.intensity]
    if not templates:
        print("No pacing templates")
        return
    for t in templates:
        pattern = " ".join(f"{s:g}s" for s in t.clip_pattern) or "-"
        print(f"  {t.id:<22} {t.intensity_level or '-':<8} {pattern:<20} {t.description}")


def animations_main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipstudio animations",
        description="List the service's animation templates.",
    )
    parser.add_argument(
        "--complexity", choices=COMPLEXITY_LEVELS, default=None,
        help="Only animations with this complexity",
    )
    _add_base_url(parser)
    parsed = parser.parse_args(args)

    cfg = _service_config(parser, parsed.base_url)
    try:
        animations = asyncio.run(_fetch(cfg, lambda c: c.list_animations()))
    except ServiceError as e:
        print(f"Could not fetch animations: {e}")
        sys.exit(1)

    if parsed.complexity is not None:
        animations = [a for a in animations if a.complexity == parsed.complexity]
    if not animations:
        print("No animations")
        return
    for a in animations:
        duration = f"{a.duration:g}s" if a.duration is not None else "-"
        print(f"  {a.id:<22} {a.complexity or '-':<9} {duration:>6}  {a.description}")
