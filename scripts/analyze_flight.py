"""Flight log analysis and console replay.

Usage:
    python scripts/analyze_flight.py flight.igc
    python scripts/analyze_flight.py flight.igc --replay --speed 60
    python scripts/analyze_flight.py flight.igc --replay --speed 120 --every 10

Thresholds can be tuned with FLIGHT_REPLAY_* environment variables or a .env file.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from flight_replay.config import ReplayConfig  # noqa: E402
from flight_replay.playback.models import InterpolatedSample  # noqa: E402
from flight_replay.playback.scheduler import RealtimeFrameLoop  # noqa: E402
from flight_replay.session import FlightSession  # noqa: E402
from flight_replay.track.parser import FormatError  # noqa: E402


def _print_stats(session: FlightSession) -> None:
    track = session.track
    print(f"Source    : {track.source}")
    for key, value in track.headers.items():
        print(f"{key:<10}: {value}")
    print(f"Points    : {len(track.points)} ({track.skipped_records} skipped)")
    print(f"Interval  : {session.sample_interval_ms:.0f} ms")
    for warning in track.warnings:
        print(f"  [!] {warning}", file=sys.stderr)

    if session.stats is None:
        return
    print()
    for key, value in session.stats.to_dict().items():
        print(f"{key:<28}: {'-' if value is None else round(value, 3)}")


class _ConsoleDisplay:
    """Prints every *n*-th sample."""

    def __init__(self, every: int = 1) -> None:
        self._every = max(1, every)
        self._count = 0

    def __call__(self, sample: InterpolatedSample, auto_pan: bool) -> None:
        self._count += 1
        if self._count % self._every:
            return
        alt = "-" if sample.altitude is None else f"{sample.altitude:.0f}"
        hdg = "-" if sample.heading is None else f"{sample.heading:.0f}"
        spd = "-" if sample.speed is None else f"{sample.speed:.1f}"
        var = "-" if sample.vario is None else f"{sample.vario:+.1f}"
        print(
            f"{sample.epoch:.0f}  {sample.latitude:.5f} {sample.longitude:.5f}"
            f"  alt={alt} hdg={hdg} spd={spd} vario={var}"
        )


def main() -> None:
    ap = argparse.ArgumentParser(description="Analyse and replay an IGC flight log")
    ap.add_argument("path", help="IGC file to load")
    ap.add_argument("--replay", action="store_true", help="Replay the flight to stdout")
    ap.add_argument("--speed", type=float, default=None, help="Playback speed multiplier")
    ap.add_argument("--fps", type=float, default=30.0, help="Replay frame rate")
    ap.add_argument("--every", type=int, default=30, help="Print every N-th sample")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.path)
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        print(f"  [!] Cannot read {path}: {exc}", file=sys.stderr)
        sys.exit(1)

    loop = RealtimeFrameLoop(target_hz=args.fps)
    session = FlightSession(loop, _ConsoleDisplay(args.every), ReplayConfig.from_env())
    try:
        session.load(content, source=path.name)
    except FormatError as exc:
        print(f"  [!] {exc}", file=sys.stderr)
        sys.exit(1)

    _print_stats(session)

    if args.replay:
        if args.speed is not None:
            session.set_speed(args.speed)
        print()
        session.toggle()
        try:
            loop.run()
        except KeyboardInterrupt:
            session.stop()
            print("\nStopped.")


if __name__ == "__main__":
    main()
