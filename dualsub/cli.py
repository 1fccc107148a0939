"""Thin CLI entry point — builds a Manifest and calls the engine."""

import argparse
import logging
import sys
from pathlib import Path

from dualsub.engine import process
from dualsub.lookup import SubtitleIndex
from dualsub.manifest import DriftConfig, ExportConfig, Manifest, ParagraphConfig, load_manifest
from dualsub.timing import TimingConfig
from dualsub.track import CaptionTrackError, load_track

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def _add_timing_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--offset", type=float, default=0.0, help="Relative offset in seconds (0 = base calibration)")
    parser.add_argument("--pre-roll", type=float, default=0.0, help="Show subtitles earlier by N milliseconds")
    parser.add_argument("--post-roll", type=float, default=0.0, help="Keep subtitles longer by N milliseconds")


def _timing_from_args(args: argparse.Namespace) -> TimingConfig:
    if args.pre_roll < 0 or args.post_roll < 0:
        print("Error: --pre-roll and --post-roll must be non-negative.", file=sys.stderr)
        sys.exit(1)
    return TimingConfig.from_relative(args.offset, pre_roll=args.pre_roll, post_roll=args.post_roll)


def _run_lookup(args: argparse.Namespace) -> None:
    fragments = load_track(args.captions)
    index = SubtitleIndex(fragments, _timing_from_args(args))
    for t in args.times:
        text = index.text_at(t)
        print(f"{t:8.2f}s  {text if text else '(no subtitle)'}")


def _print_result(result) -> None:
    print(f"Fragments: {len(result.fragments)}  Sentences: {len(result.sentences)}")
    for sentence in result.sentences:
        print(f"  [{sentence.id}] {sentence.text}")
    if result.drift:
        flag = "detected" if result.drift.detected else "none"
        print(f"Drift: {flag} ({result.drift.confidence}%) {result.drift.analysis}")
    if result.paragraphs:
        print(f"Paragraphs: {len(result.paragraphs)}")
    if result.caption_path:
        print(f"Captions: {result.caption_path}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="dualsub",
        description="DualSub — caption sentence reconstruction and timing calibration.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    sub = parser.add_subparsers(dest="command")

    proc = sub.add_parser("process", help="Reconstruct sentences and analyze a caption track")
    proc.add_argument("captions", nargs="?", type=Path, help="Caption track JSON file")
    proc.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    proc.add_argument("--output", "-o", type=Path, help="Calibrated caption output path")
    proc.add_argument("--export", choices=["srt", "vtt"], help="Write calibrated captions in this format")
    proc.add_argument("--apply-drift", action="store_true", help="Adopt the drift recommendation for export")
    proc.add_argument("--paragraphs", action="store_true", help="Group fragments into paragraphs")
    _add_timing_args(proc)

    look = sub.add_parser("lookup", help="Show the subtitle visible at playback times")
    look.add_argument("captions", type=Path, help="Caption track JSON file")
    look.add_argument("times", nargs="+", type=float, help="Playback times in seconds")
    _add_timing_args(look)

    serve = sub.add_parser("serve", help="Launch the HTTP API")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    args = parser.parse_args()
    setup_logging(args.log_level)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from dualsub.web import create_app
        app = create_app()
        print(f"DualSub API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    try:
        if args.command == "lookup":
            _run_lookup(args)
            return

        if args.manifest:
            m = load_manifest(args.manifest)
        elif args.captions:
            m = Manifest(
                input=args.captions,
                output=args.output,
                timing=_timing_from_args(args),
                drift=DriftConfig(enabled=True, apply=args.apply_drift),
                paragraphs=ParagraphConfig(enabled=args.paragraphs),
                export=ExportConfig(enabled=args.export is not None, output_format=args.export or "srt"),
            )
        else:
            print("Error: provide either a CAPTIONS argument or --manifest.", file=sys.stderr)
            sys.exit(1)

        result = process(m)
    except (CaptionTrackError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    _print_result(result)
