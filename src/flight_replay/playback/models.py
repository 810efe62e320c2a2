"""Playback data models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class InterpolatedSample:
    """Instantaneous aircraft state at one query instant.

    Produced fresh for every query; ``None`` in an optional field means
    "no data", never zero.
    """

    timestamp: float | None
    """Seconds since UTC midnight, interpolated for display only."""

    epoch: float
    """Query instant in ms since the Unix epoch, clamped to the track range."""

    latitude: float
    longitude: float

    altitude: float | None
    """Effective altitude in metres."""

    heading: float | None
    """Track over ground in degrees [0, 360)."""

    speed: float | None
    """Ground speed in km/h."""

    vario: float | None
    """Climb (+) or sink (-) rate in m/s."""


@dataclass
class PlaybackState:
    """Mutable playback position, owned by one :class:`PlaybackController`."""

    is_playing: bool = False
    current_index: int = 0
    """Index into ``TrackData.points`` of the last fix at or before ``current_time``."""

    current_time: float | None = None
    """Playback instant in epoch ms, or None before the first start/seek."""

    speed_multiplier: float = 1.0
    """Track milliseconds advanced per wall-clock millisecond (> 0)."""

    auto_pan_enabled: bool = True
