"""Temporal interpolation and frame-driven playback."""

from flight_replay.playback.controller import DisplayCallback, PlaybackController
from flight_replay.playback.interpolation import TrackInterpolator, find_segment, sample_at
from flight_replay.playback.models import InterpolatedSample, PlaybackState
from flight_replay.playback.scheduler import (
    FrameScheduler,
    ManualFrameScheduler,
    RealtimeFrameLoop,
)

__all__ = [
    "DisplayCallback",
    "FrameScheduler",
    "InterpolatedSample",
    "ManualFrameScheduler",
    "PlaybackController",
    "PlaybackState",
    "RealtimeFrameLoop",
    "TrackInterpolator",
    "find_segment",
    "sample_at",
]
