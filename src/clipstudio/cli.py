"""CLI for composing — validate a manifest, upload clips, submit, and wait.

Reads a composition manifest, optionally uploads local clips and requests
beat analysis, then submits the composition and polls until the render
finishes.

Usage:
    # Readiness report only (exit code 1 if not ready)
    python -m clipstudio.cli --manifest composition.yaml --validate

    # Print the request body without sending it
    python -m clipstudio.cli --manifest composition.yaml --dry-run

    # Upload two local clips, analyse the music, submit and wait
    python -m clipstudio.cli --manifest composition.yaml \
        --upload intro.mp4 outro.mov --analyze

    # Store the layered layout and render the clips into it
    python -m clipstudio.cli --manifest composition.yaml --save-layout

    # Send the layered layout for a preview render instead
    python -m clipstudio.cli --manifest composition.yaml --test-layout
"""

import argparse
import asyncio
import json
import logging
import sys

from .errors import (
    BeatAnalysisError,
    CompositionError,
    JobFailedError,
    SubmissionError,
    ValidationError,
)
from .manifest import load_composition_manifest
from .options import CompositionType
from .polling import JobPoller
from .presets import region_mismatch
from .render_client import RenderClient, RenderServiceConfig
from .uploads import upload_clips
from .validation import sanitize_spec


# ── Reporting ─────────────────────────────────────────────────────


def _print_report(session) -> bool:
    """Print a readiness report for the session; return can_submit()."""
    ctype = session.composition_type
    print(f"Type:     {ctype.value} ({ctype.wire_value})")
    print(f"Clips:    {len(session.clip_urls)}")
    if session.clip_urls:
        print(f"Cost:     {session.estimate_total_cost()} credits")
        print(f"ETA:      ~{session.estimate_duration()}")

    if ctype is CompositionType.STATIC and session.layout_id:
        note = region_mismatch(session.layout_id, len(session.clip_urls))
        if note:
            print(f"Note:     {note}")
    if ctype is CompositionType.MUSIC_VIDEO and session.beat_analysis is not None:
        plan = session.cut_plan() if session.clip_urls else []
        print(
            f"Beats:    {session.beat_analysis.bpm:.1f} BPM, "
            f"{len(session.beat_analysis.beats)} beats, {len(plan)} cut(s) "
            f"({session.music_video_style.value})"
        )

    if session.layout.layers:
        try:
            sanitize_spec(session.layout.spec)
            print(f"Layout:   {len(session.layout.layers)} layer(s) OK")
        except ValidationError as e:
            print(f"Layout:   INVALID — {e}")

    missing = session.missing_requirements()
    if missing:
        print("NOT READY:")
        for reason in missing:
            print(f"  - {reason}")
        return False
    print("READY")
    return True


def _print_progress(status):
    progress = "" if status.progress is None else f" {status.progress:.0f}%"
    print(f"  {status.status}{progress}")


# ── Async flow ────────────────────────────────────────────────────


async def _run(parsed, session, service_cfg) -> int:
    async with RenderClient(service_cfg) as client:
        if parsed.upload:
            print(f"Uploading {len(parsed.upload)} clip(s)")
            report = await upload_clips(client, parsed.upload, session)
            for url in report.urls:
                print(f"  OK     {url}")
            for err in report.errors:
                print(f"  FAIL   {err}")

        if parsed.analyze and session.needs_beat_analysis:
            print(f"Analysing beats of {session.music_url}")
            try:
                session.attach_beat_analysis(await client.analyze_beats(session.music_url))
            except BeatAnalysisError as e:
                print(f"Beat analysis failed: {e}")
                return 1

        if parsed.save_layout:
            session.layout.set_id(await client.save_layout(session.layout.export()))
            print(f"Saved layout as {session.use_custom_layout()}")

        if parsed.test_layout:
            preview = await client.test_layout(session.layout.export())
            print(json.dumps(preview, indent=2))
            return 0

        if not _print_report(session):
            return 1

        try:
            job = await client.submit(session.build_request())
        except SubmissionError as e:
            print(f"Submission failed: {e}")
            return 1
        print(f"Job {job.job_id}: {job.status}")
        if parsed.no_wait:
            return 0

        poller = JobPoller(client, job.job_id, on_update=_print_progress)
        try:
            status = await poller.wait()
        except JobFailedError as e:
            suffix = " (service may still be processing)" if e.local else ""
            print(f"FAILED: {e.reason}{suffix}")
            return 1
        finally:
            poller.cancel()
        print(f"Done: {status.output_video_url}")
        return 0


# ── Entry point ───────────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Validate and submit a composition manifest.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to composition YAML manifest",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Print the readiness report and exit (no network)",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Print the request body and exit (no network)",
    )
    parser.add_argument(
        "--upload", nargs="+", default=None, metavar="FILE",
        help="Local clips to upload and append before submitting",
    )
    parser.add_argument(
        "--analyze", action="store_true",
        help="Request beat analysis if the music has none yet",
    )
    parser.add_argument(
        "--test-layout", action="store_true",
        help="Send the layered layout for a preview render instead of composing",
    )
    parser.add_argument(
        "--save-layout", action="store_true",
        help="Store the layered layout on the service and use it as the static layout",
    )
    parser.add_argument(
        "--no-wait", action="store_true",
        help="Submit and exit without polling for the result",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Debug logging",
    )
    parsed = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_composition_manifest(parsed.manifest)
    except (ValidationError, FileNotFoundError) as e:
        print(f"Invalid manifest: {e}")
        sys.exit(1)
    session = config["session"]

    if parsed.validate:
        sys.exit(0 if _print_report(session) else 1)

    if parsed.dry_run:
        if not _print_report(session):
            sys.exit(1)
        print(json.dumps(session.build_request().to_payload(), indent=2))
        return

    try:
        service_cfg = RenderServiceConfig.from_sources(config["service"])
    except ValidationError as e:
        parser.error(str(e))

    try:
        code = asyncio.run(_run(parsed, session, service_cfg))
    except CompositionError as e:
        print(f"Error: {e}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
