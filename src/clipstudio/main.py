"""Subcommand dispatcher for clipstudio.

Usage:
    clipstudio compose   --manifest composition.yaml [--upload a.mp4 ...] [--dry-run]
    clipstudio validate  --manifest composition.yaml
    clipstudio estimate  --type static --clips 12
    clipstudio layouts   [--category grid] [--remote]
    clipstudio pacing    [--intensity high]
    clipstudio animations [--complexity simple]
    clipstudio analyze   https://cdn.example.com/track.mp3 --output beats.json
    clipstudio beats     beats.json --style every-4-beats --clips a.mp4 b.mp4
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipstudio",
        description="Build video compositions, estimate their cost, and submit them for rendering.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("compose", help="Submit a composition manifest for rendering")
    subparsers.add_parser("validate", help="Check whether a composition manifest is ready to submit")
    subparsers.add_parser("estimate", help="Credit cost and processing time for a clip count")
    subparsers.add_parser("layouts", help="List static layouts (built-in or from the service)")
    subparsers.add_parser("pacing", help="List the service's pacing templates")
    subparsers.add_parser("animations", help="List the service's animation templates")
    subparsers.add_parser("analyze", help="Request beat analysis for a music track")
    subparsers.add_parser("beats", help="Show beat-synced cut plan from a beat analysis")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        # No subcommand given: show help and exit with error.
        parser.print_help()
        sys.exit(1)

    if parsed.command == "compose":
        from .cli import main as compose_main
        compose_main(remaining)
    elif parsed.command == "validate":
        from .cli import main as compose_main
        compose_main([*remaining, "--validate"])
    elif parsed.command == "estimate":
        from .info_cli import estimate_main
        estimate_main(remaining)
    elif parsed.command == "layouts":
        from .info_cli import layouts_main
        layouts_main(remaining)
    elif parsed.command == "pacing":
        from .info_cli import pacing_main
        pacing_main(remaining)
    elif parsed.command == "animations":
        from .info_cli import animations_main
        animations_main(remaining)
    elif parsed.command == "analyze":
        from .beats_cli import analyze_main
        analyze_main(remaining)
    elif parsed.command == "beats":
        from .beats_cli import main as beats_main
        beats_main(remaining)


if __name__ == "__main__":
    main()
