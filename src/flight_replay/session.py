"""FlightSession — one loaded flight plus its playback controller.

A session is created and owned by the caller; several sessions can coexist.
It wires parser, statistics, interpolator and controller together from a
single :class:`~flight_replay.config.ReplayConfig` and exposes the
operations a replay UI needs (load, transport, scrubbing).
"""

from __future__ import annotations

import logging

from flight_replay.analysis.models import FlightStats
from flight_replay.analysis.stats import FlightStatsCalculator, average_sample_interval_ms
from flight_replay.config import ReplayConfig
from flight_replay.playback.controller import DisplayCallback, PlaybackController
from flight_replay.playback.interpolation import TrackInterpolator
from flight_replay.playback.models import InterpolatedSample
from flight_replay.playback.scheduler import FrameScheduler
from flight_replay.track.models import TrackData
from flight_replay.track.parser import IGCParser

_logger = logging.getLogger(__name__)


class FlightSession:
    """Holds the current track, its statistics and a :class:`PlaybackController`.

    Parameters
    ----------
    scheduler:
        Host frame primitive handed to the controller.
    display:
        Display callback ``(sample, auto_pan) -> None``.
    config:
        Thresholds and tuning; defaults to :class:`ReplayConfig()`.
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        display: DisplayCallback,
        config: ReplayConfig | None = None,
    ) -> None:
        self.config = config or ReplayConfig()
        cfg = self.config
        self._display = display
        self._parser = IGCParser()
        self._stats = FlightStatsCalculator(
            ground_speed_threshold_kmh=cfg.ground_speed_threshold_kmh,
            min_circling_duration_s=cfg.min_circling_duration_s,
            min_circling_turn_deg=cfg.min_circling_turn_deg,
            min_turn_step_deg=cfg.min_turn_step_deg,
        )
        self.interpolator = TrackInterpolator(
            heading_window_ms=cfg.heading_window_ms,
            derivative_window_ms=cfg.derivative_window_ms,
        )
        self.controller = PlaybackController(
            scheduler,
            display,
            sampler=self.interpolator,
            default_speed=cfg.default_playback_speed,
            max_frame_delta_ms=cfg.max_frame_delta_ms,
            min_time_advance_ms=cfg.min_time_advance_ms,
        )

        self.track: TrackData | None = None
        self.stats: FlightStats | None = None
        self.sample_interval_ms: float = 1000.0

    @property
    def is_loaded(self) -> bool:
        return self.track is not None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, content: str, source: str = "") -> TrackData:
        """Parse *content* and make it the session's track.

        Playback is stopped and reset first.  On
        :class:`~flight_replay.track.parser.FormatError` the session is left
        empty and the error propagates.
        """
        self.close()
        track = self._parser.parse(content, source)
        self.track = track
        self.stats = self._stats.compute(track.points)
        self.sample_interval_ms = average_sample_interval_ms(track.points)
        _logger.info(
            "Loaded %s: %d points, %.0f ms average interval",
            source or "<content>",
            len(track.points),
            self.sample_interval_ms,
        )
        return track

    def close(self) -> None:
        """Stop playback, reset state and forget the current track."""
        self.controller.reset()
        self.track = None
        self.stats = None
        self.sample_interval_ms = 1000.0

    # ------------------------------------------------------------------
    # Transport (no-ops when nothing is loaded)
    # ------------------------------------------------------------------

    def toggle(self) -> None:
        if self.track is not None:
            self.controller.toggle(self.track)

    def step_back(self) -> None:
        if self.track is not None:
            self.controller.step_back(self.track)

    def step_forward(self) -> None:
        if self.track is not None:
            self.controller.step_forward(self.track)

    def stop(self) -> None:
        self.controller.stop()

    def set_speed(self, multiplier: float) -> None:
        self.controller.set_speed(multiplier)

    def set_auto_pan(self, enabled: bool) -> None:
        self.controller.set_auto_pan(enabled)

    def notify_manual_pan(self) -> None:
        """The user moved the map; turn auto-pan off if playback is following."""
        if self.controller.is_playing and self.controller.auto_pan_enabled:
            _logger.debug("Manual map interaction during playback; disabling auto-pan")
            self.controller.set_auto_pan(False)

    # ------------------------------------------------------------------
    # Scrubbing
    # ------------------------------------------------------------------

    def scrub(self, index: int) -> InterpolatedSample | None:
        """Preview fix *index* while the scrubber is being dragged (never pans)."""
        return self._move_to(index, auto_pan=False)

    def commit_scrub(self, index: int) -> InterpolatedSample | None:
        """Scrubber released at *index*: seek there and pan if auto-pan is on."""
        return self._move_to(index, auto_pan=None)

    def current_sample(self) -> InterpolatedSample | None:
        """Sample at the current playback time (first fix if never positioned)."""
        if self.track is None:
            return None
        time_ms = self.controller.current_time
        if time_ms is None:
            time_ms = self.track.first_epoch
        return self.interpolator.sample(time_ms, self.track.points, self.controller.current_index)

    def _move_to(self, index: int, auto_pan: bool | None) -> InterpolatedSample | None:
        if self.track is None:
            return None
        points = self.track.points
        if not 0 <= index < len(points):
            _logger.warning("Ignoring scrub to out-of-range index %d", index)
            return None

        self.controller.stop()
        self.controller.seek(index, points[index].epoch)
        sample = self.interpolator.sample(points[index].epoch, points, index)
        if sample is not None:
            pan = self.controller.auto_pan_enabled if auto_pan is None else auto_pan
            self._display(sample, pan)
        return sample
