"""
CLI entry point for headless replay.

Feeds an audio file (or the built-in demo signal) through the simulation
at a fixed tick rate and writes the resulting timeline as JSON.

Usage:
    petalsong-replay <audio_file> [options]
    petalsong-replay --demo --duration 30 [options]
"""

import argparse
import asyncio
import logging
import math
import sys
import time
from pathlib import Path

from petalsong.core.analyzer import SignalAnalyzer
from petalsong.core.capture import FileSource
from petalsong.core.demo import DemoSignal
from petalsong.core.errors import CaptureError
from petalsong.growth.state_machine import GrowthState
from petalsong.io.exporter import TimelineExporter
from petalsong.pipeline import FlowerPipeline, SimulationConfig


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  tick {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    else:
        if current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  tick {current}/{total}", flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="petalsong-replay",
        description="Replay audio through the singing flower simulation",
    )

    parser.add_argument(
        "audio",
        type=Path,
        nargs="?",
        default=None,
        help="Input audio file (wav, mp3, flac)",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output JSON path (default: <audio>_timeline.json or demo_timeline.json)",
    )
    parser.add_argument("-f", "--fps", type=int, default=60, help="Ticks per second (default: 60)")
    parser.add_argument("--seed", type=int, default=None, help="Particle random seed")

    # Input
    parser.add_argument("--demo", action="store_true", help="Use the synthetic demo signal")
    parser.add_argument(
        "--duration", type=float, default=30.0,
        help="Demo length in seconds (default: 30)",
    )
    parser.add_argument(
        "--max-duration", type=float, default=None,
        help="Limit replay to N seconds",
    )

    # Tuning
    parser.add_argument(
        "--gain", type=float, default=None,
        help="Volume gain multiplier (default: 1.2)",
    )
    parser.add_argument(
        "--base-pitch", type=float, default=300.0,
        help="Pitch at which the plant stands still (default: 300 Hz)",
    )
    parser.add_argument(
        "--smoothing", type=float, default=0.05,
        help="Per-tick smoothing factor (default: 0.05)",
    )

    # Output
    parser.add_argument(
        "--include-particles", action="store_true",
        help="Serialize every particle per frame",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    return parser


def _config_from_args(args) -> SimulationConfig:
    config = SimulationConfig(
        fps=args.fps,
        base_pitch=args.base_pitch,
        smoothing=args.smoothing,
    )
    if args.gain is not None:
        config.analyzer.volume_gain = args.gain
    return config


def _replay_file(args, pipeline: FlowerPipeline):
    source = FileSource(args.audio, fps=args.fps)
    analyzer = SignalAnalyzer(
        source_factory=lambda: source,
        config=pipeline.cfg.analyzer,
    )
    asyncio.run(analyzer.initialize())

    try:
        duration = source.duration
        if args.max_duration is not None:
            duration = min(duration, args.max_duration)
        n_frames = int(math.ceil(duration * args.fps))

        print(f"  Duration: {duration:.1f}s")
        print(f"  Sample rate: {source.sample_rate} Hz")

        return pipeline.run(
            lambda now_ms: analyzer.frame(),
            n_frames,
            progress_callback=_progress_bar,
        )
    finally:
        analyzer.dispose()


def _replay_demo(args, pipeline: FlowerPipeline):
    demo = DemoSignal()
    duration = args.duration
    if args.max_duration is not None:
        duration = min(duration, args.max_duration)
    n_frames = int(math.ceil(duration * args.fps))
    print(f"  Duration: {duration:.1f}s (demo signal)")
    return pipeline.run(
        demo.frame,
        n_frames,
        pitch_change_source=demo.pitch_change,
        progress_callback=_progress_bar,
    )


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    if args.audio is None and not args.demo:
        parser.error("an audio file is required unless --demo is given")
    if args.audio is not None and not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        sys.exit(1)

    output = args.output
    if output is None:
        if args.demo:
            output = Path("demo_timeline.json")
        else:
            output = args.audio.with_name(f"{args.audio.stem}_timeline.json")

    pipeline = FlowerPipeline(_config_from_args(args), seed=args.seed)

    print(f"Replaying {'demo signal' if args.demo else args.audio} at {args.fps} ticks/s")
    t0 = time.time()

    try:
        if args.demo:
            results = _replay_demo(args, pipeline)
        else:
            results = _replay_file(args, pipeline)
    except CaptureError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    exporter = TimelineExporter(include_particles=args.include_particles)
    exporter.export_json(results, args.fps, output)

    states = {state: 0 for state in GrowthState}
    for result in results:
        states[result.growth_state] += 1
    cycles = sum(1 for result in results if result.cycle_completed)

    print(f"\nDone! {len(results)} ticks in {time.time() - t0:.1f}s")
    for state, count in states.items():
        print(f"  {state.value:<8} {count / max(args.fps, 1):6.1f}s")
    print(f"  Completed cycles: {cycles}")
    print(f"  Output: {output}")


if __name__ == "__main__":
    main()
