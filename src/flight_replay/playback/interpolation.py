"""TrackInterpolator — instantaneous aircraft state at an arbitrary instant.

Position and altitude are interpolated linearly inside the bracketing
segment.  Heading, speed and vario are estimated over a small time window
around the query instant to smooth GPS noise, falling back to the bracketing
segment when the window collapses.
"""

from __future__ import annotations

from collections.abc import Sequence

from flight_replay.analysis.geo import haversine_m, initial_bearing
from flight_replay.playback.models import InterpolatedSample
from flight_replay.track.models import TrackPoint

_MPS_TO_KPH = 3.6

# Below these spans the windowed estimate is discarded.
_MIN_HEADING_SPAN_MS = 10.0
_MIN_DERIVATIVE_SPAN_S = 0.05
_MIN_FALLBACK_SEGMENT_MS = 100.0


def _lerp(a: float, b: float, t: float) -> float:
    # Exact at both ends: t=0 gives a, t=1 gives b.
    return a * (1.0 - t) + b * t


def find_segment(points: Sequence[TrackPoint], target: float, hint: int = 0) -> int:
    """Return index *i* such that ``points[i]`` / ``points[i + 1]`` bracket *target*.

    Starts at *hint* and walks forward, then backward, so monotonically
    increasing queries cost O(1) amortized.  Requires ``len(points) >= 2``.
    """
    last_seg = len(points) - 2
    i = max(0, min(hint, last_seg))
    while i < last_seg and points[i + 1].epoch <= target:
        i += 1
    while i > 0 and points[i].epoch > target:
        i -= 1
    return i


def _fraction(p1: TrackPoint, p2: TrackPoint, target: float) -> float:
    span = p2.epoch - p1.epoch
    if span <= 0:
        return 1.0
    return max(0.0, min(1.0, (target - p1.epoch) / span))


class TrackInterpolator:
    """Samples a track at arbitrary instants.

    Args:
        heading_window_ms: Half-width of the window used to estimate heading.
        derivative_window_ms: Half-width of the window used for speed and vario.
    """

    def __init__(
        self,
        heading_window_ms: float = 200.0,
        derivative_window_ms: float = 500.0,
    ) -> None:
        self.heading_window_ms = heading_window_ms
        self.derivative_window_ms = derivative_window_ms

    def __call__(
        self,
        target_epoch: float,
        points: Sequence[TrackPoint],
        index_hint: int = 0,
    ) -> InterpolatedSample | None:
        return self.sample(target_epoch, points, index_hint)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def sample(
        self,
        target_epoch: float,
        points: Sequence[TrackPoint],
        index_hint: int = 0,
    ) -> InterpolatedSample | None:
        """Return the interpolated state at *target_epoch*, or None if unavailable.

        *target_epoch* is clamped into the track's time range, so queries
        outside it return the first/last fix.  *index_hint* is where the
        segment search starts (normally the playback index).
        """
        if len(points) < 2 or target_epoch is None:
            return None
        first_epoch = points[0].epoch
        last_epoch = points[-1].epoch
        target = max(first_epoch, min(last_epoch, target_epoch))

        i = find_segment(points, target, index_hint)
        p1, p2 = points[i], points[i + 1]
        t = _fraction(p1, p2, target)

        lat, lon = _lerp(p1.latitude, p2.latitude, t), _lerp(p1.longitude, p2.longitude, t)
        altitude = self._altitude_between(p1, p2, t)

        return InterpolatedSample(
            timestamp=_lerp(p1.timestamp, p2.timestamp, t),
            epoch=target,
            latitude=lat,
            longitude=lon,
            altitude=altitude,
            heading=self._heading(points, target, i, p1, p2),
            speed=self._speed(points, target, i, p1, p2),
            vario=self._vario(points, target, i, p1, p2),
        )

    def position_at(
        self, points: Sequence[TrackPoint], target: float, hint: int = 0
    ) -> tuple[float, float]:
        """Linearly interpolated ``(lat, lon)`` at *target* (clamped)."""
        target = max(points[0].epoch, min(points[-1].epoch, target))
        i = find_segment(points, target, hint)
        p1, p2 = points[i], points[i + 1]
        t = _fraction(p1, p2, target)
        return _lerp(p1.latitude, p2.latitude, t), _lerp(p1.longitude, p2.longitude, t)

    def altitude_at(
        self, points: Sequence[TrackPoint], target: float, hint: int = 0
    ) -> float | None:
        """Linearly interpolated effective altitude at *target* (clamped)."""
        target = max(points[0].epoch, min(points[-1].epoch, target))
        i = find_segment(points, target, hint)
        p1, p2 = points[i], points[i + 1]
        return self._altitude_between(p1, p2, _fraction(p1, p2, target))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _altitude_between(p1: TrackPoint, p2: TrackPoint, t: float) -> float | None:
        a1, a2 = p1.altitude, p2.altitude
        if a1 is None or a2 is None:
            return None
        return _lerp(a1, a2, t)

    def _window(self, points: Sequence[TrackPoint], target: float, half_ms: float) -> tuple[float, float]:
        return (
            max(points[0].epoch, target - half_ms),
            min(points[-1].epoch, target + half_ms),
        )

    def _heading(
        self,
        points: Sequence[TrackPoint],
        target: float,
        hint: int,
        p1: TrackPoint,
        p2: TrackPoint,
    ) -> float | None:
        before, after = self._window(points, target, self.heading_window_ms)
        if after > before + _MIN_HEADING_SPAN_MS:
            lat1, lon1 = self.position_at(points, before, hint)
            lat2, lon2 = self.position_at(points, after, hint)
            heading = initial_bearing(lat1, lon1, lat2, lon2)
            if heading is not None:
                return heading
        return initial_bearing(p1.latitude, p1.longitude, p2.latitude, p2.longitude)

    def _speed(
        self,
        points: Sequence[TrackPoint],
        target: float,
        hint: int,
        p1: TrackPoint,
        p2: TrackPoint,
    ) -> float | None:
        before, after = self._window(points, target, self.derivative_window_ms)
        span_s = (after - before) / 1000.0
        if span_s > _MIN_DERIVATIVE_SPAN_S:
            lat1, lon1 = self.position_at(points, before, hint)
            lat2, lon2 = self.position_at(points, after, hint)
            return haversine_m(lat1, lon1, lat2, lon2) / span_s * _MPS_TO_KPH

        seg_ms = p2.epoch - p1.epoch
        if seg_ms > _MIN_FALLBACK_SEGMENT_MS:
            dist = haversine_m(p1.latitude, p1.longitude, p2.latitude, p2.longitude)
            return dist / (seg_ms / 1000.0) * _MPS_TO_KPH
        return None

    def _vario(
        self,
        points: Sequence[TrackPoint],
        target: float,
        hint: int,
        p1: TrackPoint,
        p2: TrackPoint,
    ) -> float | None:
        before, after = self._window(points, target, self.derivative_window_ms)
        span_s = (after - before) / 1000.0
        if span_s > _MIN_DERIVATIVE_SPAN_S:
            alt1 = self.altitude_at(points, before, hint)
            alt2 = self.altitude_at(points, after, hint)
            if alt1 is not None and alt2 is not None:
                return (alt2 - alt1) / span_s

        seg_ms = p2.epoch - p1.epoch
        a1, a2 = p1.altitude, p2.altitude
        if seg_ms > _MIN_FALLBACK_SEGMENT_MS and a1 is not None and a2 is not None:
            return (a2 - a1) / (seg_ms / 1000.0)
        return None


def sample_at(
    target_epoch: float,
    points: Sequence[TrackPoint],
    index_hint: int = 0,
) -> InterpolatedSample | None:
    """Sample *points* at *target_epoch* with the default windows."""
    return TrackInterpolator().sample(target_epoch, points, index_hint)
