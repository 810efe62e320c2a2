"""Flight statistics — distance, altitude, ground/air split and circling time.

A single pass over the fixes computes everything:
  - Distance and speed per segment (noise segments ignored)
  - Ground vs. flight time from segment speed
  - Altitude gain/loss and climb/sink rates against the last altitude-bearing fix
  - Furthest point from take-off and the start → furthest → end distance
  - Time spent circling (sustained one-direction turns)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from flight_replay.analysis.geo import haversine_m, initial_bearing, shortest_angle_diff
from flight_replay.analysis.models import FlightStats
from flight_replay.track.models import TrackPoint

_logger = logging.getLogger(__name__)

_MIN_SEGMENT_DISTANCE_M = 0.01
_MIN_SEGMENT_DT_S = 0.01
_MPS_TO_KPH = 3.6

_DEFAULT_INTERVAL_MS = 1000.0
_MAX_INTERVAL_MS = 60_000


@dataclass
class _TurnRun:
    """Accumulated one-direction turning since the run started."""

    direction: int = 0
    duration: float = 0.0
    total_angle: float = 0.0

    @property
    def active(self) -> bool:
        return self.direction != 0


def _distance(a: TrackPoint, b: TrackPoint) -> float:
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


class FlightStatsCalculator:
    """Compute :class:`FlightStats` from an ordered sequence of fixes.

    Args:
        ground_speed_threshold_kmh: Segments slower than this count as ground time
            and never contribute to circling.
        min_circling_duration_s: Minimum length of a turn run to count as circling.
        min_circling_turn_deg: Minimum accumulated |heading change| of a turn run.
        min_turn_step_deg: Per-segment heading change that must be exceeded for a
            segment to count as turning at all.
    """

    def __init__(
        self,
        ground_speed_threshold_kmh: float = 5.0,
        min_circling_duration_s: float = 15.0,
        min_circling_turn_deg: float = 180.0,
        min_turn_step_deg: float = 1.0,
    ) -> None:
        self.ground_speed_threshold_kmh = ground_speed_threshold_kmh
        self.min_circling_duration_s = min_circling_duration_s
        self.min_circling_turn_deg = min_circling_turn_deg
        self.min_turn_step_deg = min_turn_step_deg

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compute(self, points: Sequence[TrackPoint]) -> FlightStats | None:
        """Return statistics for *points*, or None if there are fewer than 2."""
        if len(points) < 2:
            return None

        first, last = points[0], points[-1]

        total_distance = 0.0
        max_speed = 0.0
        flight_time = 0.0
        ground_time = 0.0
        time_circling = 0.0

        min_alt = math.inf
        max_alt = -math.inf
        gain = 0.0
        loss = 0.0
        max_climb = -math.inf
        max_sink = math.inf
        last_alt_point: TrackPoint | None = None

        furthest = first
        distance_to_furthest = 0.0

        last_heading: float | None = None
        run = _TurnRun()

        if first.altitude is not None:
            min_alt = max_alt = first.altitude
            last_alt_point = first

        prev = first
        for p in points[1:]:
            dt = (p.epoch - prev.epoch) / 1000.0
            if dt <= _MIN_SEGMENT_DT_S:
                prev = p
                continue

            # --- Distance & speed ---
            seg_dist = _distance(prev, p)
            seg_speed = 0.0
            if seg_dist >= _MIN_SEGMENT_DISTANCE_M:
                total_distance += seg_dist
                seg_speed = seg_dist / dt * _MPS_TO_KPH
                max_speed = max(max_speed, seg_speed)

            airborne = seg_speed >= self.ground_speed_threshold_kmh
            if airborne:
                flight_time += dt
            else:
                ground_time += dt

            # --- Altitude & vario ---
            alt = p.altitude
            if alt is not None:
                min_alt = min(min_alt, alt)
                max_alt = max(max_alt, alt)
                if last_alt_point is not None:
                    alt_dt = (p.epoch - last_alt_point.epoch) / 1000.0
                    if alt_dt > _MIN_SEGMENT_DT_S:
                        diff = alt - last_alt_point.altitude
                        rate = diff / alt_dt
                        max_climb = max(max_climb, rate)
                        max_sink = min(max_sink, rate)
                        if diff > 0:
                            gain += diff
                        else:
                            loss -= diff
                last_alt_point = p

            # --- Furthest point ---
            from_start = _distance(first, p)
            if from_start > distance_to_furthest:
                distance_to_furthest = from_start
                furthest = p

            # --- Circling ---
            heading = initial_bearing(prev.latitude, prev.longitude, p.latitude, p.longitude)
            if heading is None:
                time_circling += self._flush(run)
                run = _TurnRun()
            elif not airborne:
                time_circling += self._flush(run)
                run = _TurnRun()
            elif last_heading is not None:
                diff = shortest_angle_diff(heading, last_heading)
                direction = (diff > 0) - (diff < 0)
                if direction != 0 and abs(diff) > self.min_turn_step_deg:
                    if run.active and direction == run.direction:
                        run.duration += dt
                        run.total_angle += diff
                    else:
                        time_circling += self._flush(run)
                        run = _TurnRun(direction=direction, duration=dt, total_angle=diff)
                else:
                    time_circling += self._flush(run)
                    run = _TurnRun()
            last_heading = heading

            prev = p

        time_circling += self._flush(run)

        duration = (last.epoch - first.epoch) / 1000.0
        if flight_time > 0 and total_distance > 0:
            average_speed = total_distance / flight_time * _MPS_TO_KPH
        else:
            average_speed = 0.0
        has_alt = last_alt_point is not None

        return FlightStats(
            duration=max(duration, 0.0),
            total_distance=total_distance,
            point_to_point_distance=_distance(first, last),
            min_altitude=min_alt if has_alt else None,
            max_altitude=max_alt if has_alt else None,
            altitude_gain=gain,
            altitude_loss=loss,
            average_speed=average_speed,
            max_speed=max_speed,
            max_climb_rate=max_climb if max_climb > -math.inf else None,
            max_sink_rate=max_sink if max_sink < math.inf else None,
            flight_time=flight_time,
            ground_time=ground_time,
            time_circling=time_circling,
            distance_to_furthest=distance_to_furthest,
            free_distance_approximation=distance_to_furthest + _distance(furthest, last),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _flush(self, run: _TurnRun) -> float:
        """Return the run's duration if it qualifies as circling, else 0."""
        if (
            run.active
            and run.duration >= self.min_circling_duration_s
            and abs(run.total_angle) >= self.min_circling_turn_deg
        ):
            _logger.debug(
                "Circling run: %.1f s, %.0f deg", run.duration, run.total_angle
            )
            return run.duration
        return 0.0


def compute_flight_stats(points: Sequence[TrackPoint]) -> FlightStats | None:
    """Compute statistics with the default thresholds."""
    return FlightStatsCalculator().compute(points)


def average_sample_interval_ms(points: Sequence[TrackPoint]) -> float:
    """Mean gap between consecutive fixes, in ms.

    Gaps that are not positive or are a minute or longer are ignored.  Returns
    1000 ms when no usable gap exists.
    """
    total = 0
    count = 0
    for a, b in zip(points, points[1:]):
        diff = b.epoch - a.epoch
        if 0 < diff < _MAX_INTERVAL_MS:
            total += diff
            count += 1
    return total / count if count else _DEFAULT_INTERVAL_MS
