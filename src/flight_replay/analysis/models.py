"""Flight statistics model."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass
class FlightStats:
    """Aggregate statistics for one flight, computed once per load.

    Distances are metres, durations seconds, speeds km/h and rates m/s.
    """

    duration: float
    """Last epoch minus first epoch, seconds (≥ 0)."""

    total_distance: float
    """Sum of great-circle segment lengths, metres (noise segments excluded)."""

    point_to_point_distance: float
    """Straight-line distance from the first fix to the last fix, metres."""

    min_altitude: float | None
    """Lowest effective altitude seen, or None if no fix had an altitude."""

    max_altitude: float | None
    """Highest effective altitude seen, or None if no fix had an altitude."""

    altitude_gain: float
    """Sum of positive altitude changes, metres."""

    altitude_loss: float
    """Sum of negative altitude changes as a positive number, metres."""

    average_speed: float
    """``total_distance / flight_time`` in km/h (0 when either is 0)."""

    max_speed: float
    """Highest segment speed, km/h."""

    max_climb_rate: float | None
    """Highest altitude rate between consecutive altitude-bearing fixes, m/s."""

    max_sink_rate: float | None
    """Lowest (most negative) altitude rate, m/s."""

    flight_time: float
    """Time spent in segments at or above the ground-speed threshold, seconds."""

    ground_time: float
    """Time spent in segments below the ground-speed threshold, seconds."""

    time_circling: float
    """Time spent in qualifying one-direction turns, seconds."""

    distance_to_furthest: float
    """Greatest distance of any fix from the first fix, metres."""

    free_distance_approximation: float
    """Start → furthest fix → end distance, metres."""

    def to_dict(self) -> dict:
        return asdict(self)
