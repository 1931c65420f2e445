from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from .audio import DEFAULT_FPS, SAMPLE_RATE
from .config import load_track
from .demo import DEMO_FPS, DEMO_FRAMES, demo_track
from .logging_utils import configure_logging, debug_enabled, log_exception
from .mix import render_wav
from .spinner import Spinner, render_error
from .wav import read_wav_header, write_wav

_LOGGER = logging.getLogger("framesynth.cli")
_CONSOLE = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="framesynth")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a JSON track description to WAV.")
    render.add_argument("track", type=Path)
    render.add_argument("--frames", type=int, required=True, help="Total video frames.")
    render.add_argument("--fps", type=float, default=DEFAULT_FPS)
    render.add_argument("--sample-rate", type=int, default=SAMPLE_RATE)
    render.add_argument("--mono", action="store_true", help="Legacy mono downmix.")
    render.add_argument("--workers", type=int, default=None, help="Render events in parallel.")
    render.add_argument("--output", type=Path, default=Path("audio.wav"))

    demo = sub.add_parser("demo", help="Render the bundled demo track.")
    demo.add_argument("--sample-rate", type=int, default=SAMPLE_RATE)
    demo.add_argument("--output", type=Path, default=Path("demo.wav"))

    info = sub.add_parser("info", help="Describe a 16-bit PCM WAV file.")
    info.add_argument("path", type=Path)
    return parser


def _positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    try:
        parser = build_parser()
        args = parser.parse_args(argv)

        if args.command == "render":
            _positive("--fps", args.fps)
            _positive("--sample-rate", args.sample_rate)
            track = load_track(args.track)
            with Spinner(f"Rendering {len(track.events)} events"):
                data = render_wav(
                    track,
                    args.frames,
                    args.fps,
                    args.sample_rate,
                    mono=args.mono,
                    max_workers=args.workers,
                )
            path = write_wav(args.output, data)
            _CONSOLE.print(f"Wrote {path} ({len(data)} bytes, sr={args.sample_rate})")
            return 0

        if args.command == "demo":
            _positive("--sample-rate", args.sample_rate)
            with Spinner("Rendering demo track"):
                data = render_wav(demo_track(), DEMO_FRAMES, DEMO_FPS, args.sample_rate)
            path = write_wav(args.output, data)
            _CONSOLE.print(f"Wrote demo to {path} (sr={args.sample_rate})")
            return 0

        if args.command == "info":
            header = read_wav_header(args.path.read_bytes())
            _CONSOLE.print(
                f"{args.path}: {header.channels} ch, {header.sample_rate} Hz, "
                f"{header.bits_per_sample}-bit, {header.frame_count} frames "
                f"({header.duration:.3f}s)"
            )
            return 0

        parser.print_help()
        return 1
    except Exception as exc:
        _LOGGER.warning("framesynth CLI failed: %s", exc, exc_info=debug_enabled())
        log_exception("framesynth CLI", exc)
        render_error("framesynth CLI", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
