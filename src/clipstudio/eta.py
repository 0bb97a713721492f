"""Processing-time estimates for compositions.

Same lookup shape as pricing.py, but every tier value is a human-readable
range. Podcasts are fastest, then static layouts, then paced sequences and
music videos; animated compositions are slowest. Past the last tier:

    "{ceil(n / high_divisor)}-{ceil(n / low_divisor)} minutes"

The estimate is advisory only and never gates a submission.
"""

import math
from typing import NamedTuple

from .options import CompositionType
from .pricing import Tier, check_clip_count, lookup_tier


class Divisors(NamedTuple):
    high: int
    low: int


TIME_TIERS = {
    CompositionType.PODCAST: [
        Tier(3, "20-40 seconds"),
        Tier(6, "40-60 seconds"),
        Tier(12, "1-2 minutes"),
    ],
    CompositionType.SOCIAL_MEDIA: [
        Tier(6, "30-60 seconds"),
        Tier(12, "1-2 minutes"),
        Tier(25, "2-4 minutes"),
        Tier(50, "4-8 minutes"),
    ],
    CompositionType.STATIC: [
        Tier(4, "20-40 seconds"),
        Tier(10, "40s-1.5 minutes"),
        Tier(25, "2-4 minutes"),
        Tier(50, "4-8 minutes"),
        Tier(100, "8-15 minutes"),
        Tier(200, "15-30 minutes"),
    ],
    CompositionType.PACED: [
        Tier(4, "30s-1 minute"),
        Tier(10, "1-2 minutes"),
        Tier(25, "3-6 minutes"),
        Tier(50, "6-12 minutes"),
        Tier(100, "12-25 minutes"),
        Tier(200, "25-45 minutes"),
    ],
    CompositionType.MUSIC_VIDEO: [
        Tier(4, "1-2 minutes"),
        Tier(10, "2-3 minutes"),
        Tier(25, "4-7 minutes"),
        Tier(50, "7-13 minutes"),
        Tier(100, "13-26 minutes"),
        Tier(200, "26-46 minutes"),
    ],
    CompositionType.ANIMATED: [
        Tier(4, "1-2 minutes"),
        Tier(10, "2-4 minutes"),
        Tier(25, "5-10 minutes"),
        Tier(50, "10-20 minutes"),
        Tier(100, "20-35 minutes"),
        Tier(200, "35-60 minutes"),
    ],
}

TIME_OVERFLOW = {
    CompositionType.PODCAST: Divisors(8, 6),
    CompositionType.SOCIAL_MEDIA: Divisors(10, 7),
    CompositionType.STATIC: Divisors(8, 5),
    CompositionType.PACED: Divisors(6, 4),
    CompositionType.MUSIC_VIDEO: Divisors(6, 4),
    CompositionType.ANIMATED: Divisors(5, 3),
}


def estimate_duration(composition_type: CompositionType | str, clip_count: int) -> str:
    """Human-readable processing time range, e.g. '2-4 minutes'.

    Raises:
        ValidationError: clip_count is not a positive int.
    """
    ctype = CompositionType.parse(composition_type)
    check_clip_count(clip_count)

    tier = lookup_tier(TIME_TIERS[ctype], clip_count)
    if tier is not None:
        return tier.value

    div = TIME_OVERFLOW[ctype]
    lo = math.ceil(clip_count / div.high)
    hi = math.ceil(clip_count / div.low)
    return f"{lo}-{hi} minutes"
