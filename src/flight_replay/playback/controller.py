"""PlaybackController — frame-driven replay of a parsed track.

The controller owns a :class:`PlaybackState` and is its only writer.  Time is
advanced by frame callbacks delivered through an injected
:class:`~flight_replay.playback.scheduler.FrameScheduler`; every resolved
position is pushed to a display callback ``(sample, auto_pan) -> None``.

States: Stopped ⇄ Playing.  Reaching the last fix emits a final sample and
stops.  Any exception raised while sampling or displaying inside the frame
loop stops playback instead of propagating to the host.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence

from flight_replay.playback.interpolation import TrackInterpolator
from flight_replay.playback.models import InterpolatedSample, PlaybackState
from flight_replay.playback.scheduler import FrameScheduler
from flight_replay.track.models import TrackData, TrackPoint

_logger = logging.getLogger(__name__)

DisplayCallback = Callable[[InterpolatedSample, bool], None]
Sampler = Callable[[float, Sequence[TrackPoint], int], InterpolatedSample | None]


class PlaybackController:
    """Plays, pauses and steps through a :class:`TrackData`.

    Parameters
    ----------
    scheduler:
        Host frame primitive (``request_frame`` / ``cancel_frame`` / ``now``).
    display:
        Called with every sample to show and the auto-pan flag.
    sampler:
        ``(target_epoch, points, index_hint) -> InterpolatedSample | None``.
        Defaults to a :class:`TrackInterpolator`.
    default_speed:
        Speed multiplier restored by :meth:`reset`.
    max_frame_delta_ms:
        Upper bound on wall-clock time credited to one frame.
    min_time_advance_ms:
        Frames advancing track time by this much or less emit nothing.
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        display: DisplayCallback,
        sampler: Sampler | None = None,
        default_speed: float = 1.0,
        max_frame_delta_ms: float = 500.0,
        min_time_advance_ms: float = 0.1,
    ) -> None:
        self._scheduler = scheduler
        self._display = display
        self._sampler = sampler or TrackInterpolator()
        self._default_speed = default_speed
        self._max_frame_delta_ms = max_frame_delta_ms
        self._min_time_advance_ms = min_time_advance_ms

        self._state = PlaybackState(speed_multiplier=default_speed)
        self._frame_handle: int | None = None
        self._last_frame_ms: float | None = None
        self._generation = 0

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        """The live state object.  Read it; change it only through the controller."""
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state.is_playing

    @property
    def current_time(self) -> float | None:
        return self._state.current_time

    @property
    def current_index(self) -> int:
        return self._state.current_index

    @property
    def auto_pan_enabled(self) -> bool:
        return self._state.auto_pan_enabled

    @property
    def speed_multiplier(self) -> float:
        return self._state.speed_multiplier

    # ------------------------------------------------------------------
    # Transport controls
    # ------------------------------------------------------------------

    def start(self, track: TrackData) -> None:
        """Start playing *track*, from the beginning if at the end or never started."""
        points = track.points
        if len(points) < 2:
            _logger.warning("Cannot start playback: track has %d point(s)", len(points))
            return
        if self._state.is_playing:
            return

        st = self._state
        if st.current_time is None or st.current_time >= points[-1].epoch:
            st.current_index = 0
            st.current_time = points[0].epoch
            try:
                self._emit(points, st.auto_pan_enabled)
            except Exception:
                _logger.exception("Initial sample failed; playback not started")
                self.stop()
                return
        else:
            _logger.debug("Resuming playback at %.0f", st.current_time)

        st.is_playing = True
        self._last_frame_ms = self._scheduler.now()
        self._cancel_pending()
        self._schedule(track)
        _logger.debug("Playback started at index %d", st.current_index)

    def stop(self) -> None:
        """Stop playing.  Safe to call at any time."""
        self._state.is_playing = False
        self._cancel_pending()
        self._last_frame_ms = None
        self._generation += 1

    def toggle(self, track: TrackData) -> None:
        if self._state.is_playing:
            self.stop()
        else:
            self.start(track)

    def step_back(self, track: TrackData) -> None:
        """Stop and move one fix back, emitting the new position."""
        self._step(track, -1)

    def step_forward(self, track: TrackData) -> None:
        """Stop and move one fix forward, emitting the new position."""
        self._step(track, +1)

    def reset(self) -> None:
        """Stop and restore default state (used when a new track is loaded)."""
        self.stop()
        self._state = PlaybackState(speed_multiplier=self._default_speed)

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def set_speed(self, multiplier: float) -> None:
        """Set the playback speed multiplier; non-positive values are ignored."""
        is_number = isinstance(multiplier, (int, float)) and not isinstance(multiplier, bool)
        if not is_number or not math.isfinite(multiplier) or multiplier <= 0:
            _logger.warning(
                "Invalid playback speed %r; keeping %s", multiplier, self._state.speed_multiplier
            )
            return
        self._state.speed_multiplier = float(multiplier)

    def seek(self, index: int, time_ms: float) -> None:
        """Overwrite the playback position.  Emitting a sample is up to the caller."""
        if index < 0:
            _logger.warning("Ignoring seek to negative index %d", index)
            return
        is_number = isinstance(time_ms, (int, float)) and not isinstance(time_ms, bool)
        if not is_number or not math.isfinite(time_ms):
            _logger.warning("Ignoring seek to invalid time %r", time_ms)
            return
        self._state.current_index = index
        self._state.current_time = time_ms

    def set_auto_pan(self, enabled: bool) -> None:
        self._state.auto_pan_enabled = bool(enabled)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _emit(self, points: Sequence[TrackPoint], auto_pan: bool) -> bool:
        """Sample the current time and display it.  Returns False if no sample."""
        st = self._state
        sample = self._sampler(st.current_time, points, st.current_index)
        if sample is None:
            _logger.warning("No interpolated data for time %s", st.current_time)
            return False
        self._display(sample, auto_pan)
        return True

    def _step(self, track: TrackData, delta: int) -> None:
        points = track.points
        if len(points) < 2:
            return
        if self._state.is_playing:
            self.stop()

        st = self._state
        old = max(0, min(st.current_index, len(points) - 1))
        new = max(0, min(old + delta, len(points) - 1))
        if new == old:
            _logger.debug("Step %+d ignored at index %d", delta, old)
            return

        st.current_index = new
        st.current_time = points[new].epoch
        try:
            self._emit(points, st.auto_pan_enabled)
        except Exception:
            _logger.exception("Display update failed after step to index %d", new)

    def _schedule(self, track: TrackData) -> None:
        self._generation += 1
        generation = self._generation
        self._frame_handle = self._scheduler.request_frame(
            lambda ts: self._on_frame(ts, track, generation)
        )

    def _cancel_pending(self) -> None:
        if self._frame_handle is not None:
            self._scheduler.cancel_frame(self._frame_handle)
            self._frame_handle = None

    def _on_frame(self, timestamp_ms: float, track: TrackData, generation: int) -> None:
        # A callback from before the latest stop()/start() must not act.
        if generation != self._generation or not self._state.is_playing:
            return
        self._frame_handle = None

        st = self._state
        points = track.points
        last_frame = self._last_frame_ms if self._last_frame_ms is not None else timestamp_ms
        self._last_frame_ms = timestamp_ms
        delta_wall = max(0.0, min(timestamp_ms - last_frame, self._max_frame_delta_ms))
        advance = delta_wall * st.speed_multiplier
        st.current_time += advance

        last_epoch = points[-1].epoch
        if st.current_time >= last_epoch:
            st.current_time = last_epoch
            st.current_index = len(points) - 1
            try:
                self._emit(points, st.auto_pan_enabled)
            except Exception:
                _logger.exception("Final display update failed at end of track")
            _logger.debug("Reached end of track")
            self.stop()
            return

        idx = st.current_index
        while idx < len(points) - 1 and points[idx + 1].epoch <= st.current_time:
            idx += 1
        st.current_index = idx

        if advance > self._min_time_advance_ms:
            try:
                self._emit(points, st.auto_pan_enabled)
            except Exception:
                _logger.exception("Playback fault at time %.0f; stopping", st.current_time)
                self.stop()
                return

        if st.is_playing:
            self._schedule(track)
