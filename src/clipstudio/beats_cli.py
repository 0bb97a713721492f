"""CLI for beat sync — request an analysis, or preview the resulting cuts.

Usage:
    # Ask the service to analyse a track (5 credits) and save the result
    clipstudio analyze https://cdn.example.com/track.mp3 --output beats.json

    # Show where cuts land for a style and a clip list (offline)
    clipstudio beats beats.json --style every-4-beats --clips a.mp4 b.mp4 c.mp4
"""

import argparse
import asyncio
import sys

from .beatsync import cut_points, plan_cuts
from .errors import BeatAnalysisError, ValidationError
from .manifest import load_beat_analysis, save_beat_analysis
from .options import MusicVideoStyle
from .pricing import BEAT_ANALYSIS_CREDITS
from .render_client import RenderClient, RenderServiceConfig


async def _analyze(cfg: RenderServiceConfig, audio_url: str):
    async with RenderClient(cfg) as client:
        return await client.analyze_beats(audio_url)


def analyze_main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipstudio analyze",
        description="Request beat analysis for a music track.",
    )
    parser.add_argument("audio_url", help="URL of the music track")
    parser.add_argument("--output", required=True, help="Where to write the analysis JSON")
    parser.add_argument(
        "--base-url", default=None,
        help="Service base URL (default: $CLIPSTUDIO_API_URL)",
    )
    parsed = parser.parse_args(args)

    section = {"base_url": parsed.base_url} if parsed.base_url else None
    try:
        cfg = RenderServiceConfig.from_sources(section)
    except ValidationError as e:
        parser.error(str(e))

    print(f"Analysing {parsed.audio_url} ({BEAT_ANALYSIS_CREDITS} credits)")
    try:
        analysis = asyncio.run(_analyze(cfg, parsed.audio_url))
    except BeatAnalysisError as e:
        print(f"Beat analysis failed: {e}")
        sys.exit(1)

    save_beat_analysis(analysis, parsed.output)
    print(
        f"Done: {analysis.bpm:.1f} BPM, {len(analysis.beats)} beats, "
        f"{analysis.duration_seconds:.1f}s -> {parsed.output}"
    )


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipstudio beats",
        description="Show beat-synced cut points for a beat analysis.",
    )
    parser.add_argument("analysis", help="Beat analysis JSON file")
    parser.add_argument(
        "--style", default=MusicVideoStyle.ON_BEAT.value,
        choices=[s.value for s in MusicVideoStyle],
        help="Cut cadence",
    )
    parser.add_argument(
        "--clips", nargs="+", default=None,
        help="Clip URLs to assign to the cuts (cycled if fewer than cuts)",
    )
    parsed = parser.parse_args(args)

    analysis = load_beat_analysis(parsed.analysis)
    points = cut_points(analysis, parsed.style)
    print(
        f"{analysis.bpm:.1f} BPM, {len(analysis.beats)} beats, "
        f"{len(points)} cut point(s) with {parsed.style}"
    )

    if not parsed.clips:
        for t in points:
            print(f"  {t:8.3f}s")
        return

    for seg in plan_cuts(analysis, parsed.style, parsed.clips):
        print(f"  {seg.start:8.3f}s — {seg.end:8.3f}s  {seg.clip_url}")


if __name__ == "__main__":
    main()
