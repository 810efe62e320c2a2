"""Flight statistics and spherical-earth geometry."""

from flight_replay.analysis.geo import haversine_m, initial_bearing, shortest_angle_diff
from flight_replay.analysis.models import FlightStats
from flight_replay.analysis.stats import (
    FlightStatsCalculator,
    average_sample_interval_ms,
    compute_flight_stats,
)

__all__ = [
    "FlightStats",
    "FlightStatsCalculator",
    "average_sample_interval_ms",
    "compute_flight_stats",
    "haversine_m",
    "initial_bearing",
    "shortest_angle_diff",
]
