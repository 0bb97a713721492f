"""Credit pricing for compositions.

Each composition type has an ascending tier table. Lookup walks the tiers
in order and returns the first whose max_clips covers the clip count.
Tiers marked exact only match that one clip count (the 2- and 3-clip
prices for static and podcast layouts); a single clip therefore falls
through to the next bucket. Past the last tier the price grows linearly:

    last_value + ceil((clips - last_max) / step_clips) * step_value

These numbers are user-facing prices and must match the service's table.
"""

import math
from typing import NamedTuple

from .errors import ValidationError
from .options import CompositionType


class Tier(NamedTuple):
    max_clips: int
    value: object
    exact: bool = False


class Overflow(NamedTuple):
    step_clips: int
    step_value: int


# Flat fee for analysing one music track, charged once per asset on top
# of the music-video composition price.
BEAT_ANALYSIS_CREDITS = 5


COST_TIERS = {
    CompositionType.STATIC: [
        Tier(2, 10, exact=True),
        Tier(3, 15, exact=True),
        Tier(6, 20),
        Tier(12, 30),
        Tier(25, 50),
        Tier(50, 75),
        Tier(100, 125),
        Tier(200, 200),
    ],
    CompositionType.PODCAST: [
        Tier(2, 10, exact=True),
        Tier(3, 15, exact=True),
        Tier(6, 20),
        Tier(12, 30),
    ],
    CompositionType.SOCIAL_MEDIA: [
        Tier(3, 10),
        Tier(6, 15),
        Tier(12, 25),
        Tier(25, 40),
        Tier(50, 65),
    ],
    CompositionType.MUSIC_VIDEO: [
        Tier(4, 20),
        Tier(10, 30),
        Tier(20, 45),
        Tier(50, 80),
        Tier(100, 130),
        Tier(200, 230),
    ],
    CompositionType.ANIMATED: [
        Tier(4, 30),
        Tier(10, 50),
        Tier(20, 75),
        Tier(50, 125),
        Tier(100, 200),
        Tier(200, 350),
    ],
    CompositionType.PACED: [
        Tier(4, 15),
        Tier(10, 25),
        Tier(20, 40),
        Tier(50, 75),
        Tier(100, 125),
        Tier(200, 225),
    ],
}

COST_OVERFLOW = {
    CompositionType.STATIC: Overflow(50, 25),
    CompositionType.PODCAST: Overflow(6, 15),
    CompositionType.SOCIAL_MEDIA: Overflow(25, 20),
    CompositionType.MUSIC_VIDEO: Overflow(50, 40),
    CompositionType.ANIMATED: Overflow(50, 50),
    CompositionType.PACED: Overflow(50, 40),
}


def check_clip_count(clip_count: int) -> int:
    """Reject non-integer or non-positive clip counts."""
    if isinstance(clip_count, bool) or not isinstance(clip_count, int):
        raise ValidationError(f"clip_count must be an int, got {clip_count!r}")
    if clip_count <= 0:
        raise ValidationError(f"clip_count must be >= 1, got {clip_count}")
    return clip_count


def lookup_tier(tiers: list[Tier], clip_count: int) -> Tier | None:
    """First tier covering clip_count, or None if it is past the last tier."""
    for tier in tiers:
        if tier.exact:
            if clip_count == tier.max_clips:
                return tier
        elif clip_count <= tier.max_clips:
            return tier
    return None


def estimate_cost(composition_type: CompositionType | str, clip_count: int) -> int:
    """Credit cost of rendering clip_count clips as the given composition type.

    Raises:
        ValidationError: clip_count is not a positive int.
    """
    ctype = CompositionType.parse(composition_type)
    check_clip_count(clip_count)

    tiers = COST_TIERS[ctype]
    tier = lookup_tier(tiers, clip_count)
    if tier is not None:
        return tier.value

    last = tiers[-1]
    overflow = COST_OVERFLOW[ctype]
    steps = math.ceil((clip_count - last.max_clips) / overflow.step_clips)
    return last.value + steps * overflow.step_value


def estimate_total_cost(
    composition_type: CompositionType | str,
    clip_count: int,
    needs_beat_analysis: bool = False,
) -> int:
    """Composition cost plus the one-off beat analysis fee when it is still owed."""
    cost = estimate_cost(composition_type, clip_count)
    ctype = CompositionType.parse(composition_type)
    if needs_beat_analysis and ctype is CompositionType.MUSIC_VIDEO:
        cost += BEAT_ANALYSIS_CREDITS
    return cost
