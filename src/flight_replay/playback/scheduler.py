"""Frame scheduling — the host primitive that drives playback.

The controller depends only on :class:`FrameScheduler`
(``request_frame(callback) -> handle`` / ``cancel_frame(handle)``).  Two hosts
are provided:

* :class:`ManualFrameScheduler` — deterministic fake clock for tests.
* :class:`RealtimeFrameLoop` — runs frames at a target rate in the calling thread.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol

FrameCallback = Callable[[float], None]
"""Called with the frame timestamp in milliseconds (monotonic clock)."""


class FrameScheduler(Protocol):
    def request_frame(self, callback: FrameCallback) -> int: ...

    def cancel_frame(self, handle: int) -> None: ...

    def now(self) -> float: ...


class _PendingFrames:
    """Handle bookkeeping shared by both hosts."""

    def __init__(self) -> None:
        self._next_handle = 1
        self._pending: dict[int, FrameCallback] = {}

    def request_frame(self, callback: FrameCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _fire(self, timestamp_ms: float) -> int:
        """Run every callback pending at entry; callbacks requested meanwhile wait."""
        due, self._pending = self._pending, {}
        for callback in due.values():
            callback(timestamp_ms)
        return len(due)


class ManualFrameScheduler(_PendingFrames):
    """Deterministic scheduler driven by explicit :meth:`advance` calls.

    Parameters
    ----------
    start_ms:
        Initial value of the fake clock.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        super().__init__()
        self._now = start_ms
        self.frames_fired = 0

    def now(self) -> float:
        return self._now

    def advance(self, delta_ms: float) -> int:
        """Move the clock forward by *delta_ms* and fire pending frames.

        Returns the number of callbacks fired.
        """
        self._now += delta_ms
        fired = self._fire(self._now)
        self.frames_fired += fired
        return fired

    def run(self, frame_ms: float = 1000.0 / 60.0, max_frames: int = 100_000) -> int:
        """Advance in *frame_ms* steps until nothing is pending or *max_frames* is hit.

        Returns the number of frames advanced.
        """
        frames = 0
        while self.pending_count and frames < max_frames:
            self.advance(frame_ms)
            frames += 1
        return frames


class RealtimeFrameLoop(_PendingFrames):
    """Fires frames at *target_hz* on the thread that calls :meth:`run`.

    Parameters
    ----------
    target_hz:
        Frame rate in Hz.
    sleep:
        Injected for testability; defaults to :func:`time.sleep`.
    clock:
        Seconds-based monotonic clock; defaults to :func:`time.monotonic`.
    """

    def __init__(
        self,
        target_hz: float = 60.0,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        super().__init__()
        self._interval = 1.0 / target_hz
        self._sleep = sleep or time.sleep
        self._clock = clock or time.monotonic

    def now(self) -> float:
        return self._clock() * 1000.0

    def run(self, max_frames: int | None = None) -> int:
        """Block, firing frames until none are pending (or *max_frames* is reached)."""
        frames = 0
        while self.pending_count and (max_frames is None or frames < max_frames):
            t0 = self._clock()
            self._fire(t0 * 1000.0)
            frames += 1
            wait = self._interval - (self._clock() - t0)
            if wait > 0:
                self._sleep(wait)
        return frames
