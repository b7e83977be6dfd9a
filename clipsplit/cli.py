"""Thin CLI entry point — probes a video or exports clips through the engine."""

import argparse
import sys
from pathlib import Path

from clipsplit import ffutil
from clipsplit.engine import ExportPreconditionError, export_batch
from clipsplit.log import configure_logging
from clipsplit.manifest import ExportManifest, ExportSettings, load_manifest
from clipsplit.models import EXPORT_FORMATS, QUALITY_BITRATES, ExportProgress, SegmentCandidate
from clipsplit.store import SegmentStore, VideoSession
from clipsplit.timefmt import TimeFormatError, format_bitrate, format_time, to_seconds


def _cmd_probe(args: argparse.Namespace) -> int:
    try:
        info = ffutil.probe(args.video)
    except (ffutil.VideoNotFoundError, ffutil.ProbeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"File:       {args.video}")
    print(f"Format:     {info.format}")
    print(f"Duration:   {format_time(info.duration, show_milliseconds=True)}")
    print(f"Resolution: {info.width}x{info.height}")
    print(f"Bitrate:    {format_bitrate(info.bitrate)}")
    return 0


def _manifest_from_args(args: argparse.Namespace) -> ExportManifest:
    clips = [
        SegmentCandidate(name=name, start_time=to_seconds(start), end_time=to_seconds(end))
        for name, start, end in (args.clip or [])
    ]
    return ExportManifest(
        input=args.video,
        settings=ExportSettings(
            output_dir=args.output_dir or args.video.parent,
            format=args.format,
            quality=args.quality,
        ),
        clips=clips,
    )


def _cmd_export(args: argparse.Namespace) -> int:
    try:
        if args.manifest:
            m = load_manifest(args.manifest)
        elif args.video:
            m = _manifest_from_args(args)
        else:
            print("Error: provide either a VIDEO argument or --manifest.", file=sys.stderr)
            return 1
    except (TimeFormatError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        info = ffutil.probe(m.input)
    except (ffutil.VideoNotFoundError, ffutil.ProbeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    session = VideoSession()
    store = SegmentStore(session)
    session.load(m.input, info)

    for candidate in m.clips:
        result = store.add(candidate)
        if not result.valid:
            print(f"Error: clip {candidate.name!r}: {result.error}", file=sys.stderr)
            return 1

    if not len(store):
        print("Error: no clips to export.", file=sys.stderr)
        return 1

    def on_progress(p: ExportProgress) -> None:
        print(f"  [{p.percentage:3d}%] ({p.current_index}/{p.total}) {p.current_segment_name}")

    try:
        batch = export_batch(m.input, store.segments, m.settings, on_progress=on_progress)
    except ExportPreconditionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print()
    print(f"Done! {batch.success}/{batch.total} clips exported.")
    for item in batch.results:
        if item.result.success:
            print(f"  ok      {item.segment_name} -> {item.result.output_path}")
        else:
            print(f"  failed  {item.segment_name}: {item.result.error}")
    return 0 if batch.failed == 0 else 2


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="clipsplit",
        description="clipsplit — cut named segments out of a video into separate files.",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    sub = parser.add_subparsers(dest="command")

    pr = sub.add_parser("probe", help="Show video metadata")
    pr.add_argument("video", type=Path, help="Input video file")

    ex = sub.add_parser("export", help="Export clips from a video")
    ex.add_argument("video", nargs="?", type=Path, help="Input video file")
    ex.add_argument("--manifest", "-m", type=Path, help="Path to a JSON export manifest")
    ex.add_argument(
        "--clip", "-c", nargs=3, action="append", metavar=("NAME", "START", "END"),
        help="Clip to export; times as seconds or H:M:S (repeatable)",
    )
    ex.add_argument("--output-dir", "-o", type=Path, help="Output directory (default: next to the video)")
    ex.add_argument("--format", "-f", choices=EXPORT_FORMATS, default="mp4", help="Output container")
    ex.add_argument("--quality", "-q", choices=list(QUALITY_BITRATES), default="high", help="Output quality")

    serve = sub.add_parser("serve", help="Launch the local API server")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from clipsplit.web import create_app
        app = create_app({"LOG_LEVEL": args.log_level, "LOG_FILE": args.log_file})
        print(f"clipsplit API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False, threaded=True)
        return

    configure_logging(args.log_level, args.log_file)

    try:
        ffutil.check_ffmpeg()
    except ffutil.FFmpegNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "probe":
        sys.exit(_cmd_probe(args))
    sys.exit(_cmd_export(args))


if __name__ == "__main__":
    main()
