"""Tests for FlightSession — loading, transport pass-through and scrubbing."""

from __future__ import annotations

import pytest

from flight_replay.config import ReplayConfig
from flight_replay.playback.scheduler import ManualFrameScheduler
from flight_replay.session import FlightSession
from flight_replay.track.parser import FormatError
from tests.builders import LAT0, LON0, b_record, igc_log, north_of

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _flight_igc(n: int = 11, step_s: int = 1) -> str:
    """*n* fixes flying north at 10 m per step, climbing 2 m per step."""
    records = [
        b_record(36_000 + i * step_s, north_of(LAT0, i * 10), LON0, pressure_alt=1000 + 2 * i)
        for i in range(n)
    ]
    return igc_log(records, headers=("HFPLTPILOTINCHARGE:Jane Doe",))


class RecordingDisplay:
    def __init__(self) -> None:
        self.calls = []

    def __call__(self, sample, auto_pan):
        self.calls.append((sample, auto_pan))


@pytest.fixture
def scheduler() -> ManualFrameScheduler:
    return ManualFrameScheduler()


@pytest.fixture
def display() -> RecordingDisplay:
    return RecordingDisplay()


@pytest.fixture
def session(scheduler, display) -> FlightSession:
    return FlightSession(scheduler, display)


@pytest.fixture
def loaded(session) -> FlightSession:
    session.load(_flight_igc(), source="flight.igc")
    return session


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

class TestLoad:
    def test_new_session_is_empty(self, session):
        assert not session.is_loaded
        assert session.track is None
        assert session.stats is None
        assert session.current_sample() is None

    def test_load_parses_and_computes_stats(self, loaded):
        assert loaded.is_loaded
        assert loaded.track.source == "flight.igc"
        assert len(loaded.track.points) == 11
        assert loaded.track.headers["Pilot"] == "Jane Doe"
        assert loaded.stats.duration == pytest.approx(10.0)
        assert loaded.stats.altitude_gain == pytest.approx(20.0)
        assert loaded.sample_interval_ms == pytest.approx(1000.0)

    def test_sample_interval_reflects_logging_rate(self, session):
        session.load(_flight_igc(step_s=4))
        assert session.sample_interval_ms == pytest.approx(4000.0)

    def test_format_error_leaves_session_empty(self, loaded):
        with pytest.raises(FormatError):
            loaded.load(igc_log([], date="150324"))
        assert not loaded.is_loaded
        assert loaded.stats is None

    def test_load_resets_playback(self, loaded, scheduler):
        loaded.set_speed(4.0)
        loaded.toggle()
        scheduler.advance(200)
        loaded.load(_flight_igc())
        ctrl = loaded.controller
        assert not ctrl.is_playing
        assert ctrl.current_time is None
        assert ctrl.current_index == 0
        assert ctrl.speed_multiplier == 1.0
        assert scheduler.pending_count == 0

    def test_close(self, loaded):
        loaded.toggle()
        loaded.close()
        assert not loaded.is_loaded
        assert not loaded.controller.is_playing

    def test_config_flows_into_collaborators(self, scheduler, display):
        config = ReplayConfig(default_playback_speed=2.0, heading_window_ms=50.0)
        session = FlightSession(scheduler, display, config)
        assert session.controller.speed_multiplier == 2.0
        assert session.interpolator.heading_window_ms == 50.0


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class TestTransport:
    def test_controls_without_track_are_noops(self, session, scheduler, display):
        session.toggle()
        session.step_forward()
        session.step_back()
        assert not session.controller.is_playing
        assert scheduler.pending_count == 0
        assert display.calls == []

    def test_toggle_plays_and_pauses(self, loaded, scheduler):
        loaded.toggle()
        assert loaded.controller.is_playing
        scheduler.advance(100)
        loaded.toggle()
        assert not loaded.controller.is_playing

    def test_steps(self, loaded):
        loaded.step_forward()
        loaded.step_forward()
        loaded.step_back()
        assert loaded.controller.current_index == 1

    def test_stop(self, loaded):
        loaded.toggle()
        loaded.stop()
        assert not loaded.controller.is_playing

    def test_manual_pan_during_playback_disables_auto_pan(self, loaded):
        loaded.toggle()
        loaded.notify_manual_pan()
        assert not loaded.controller.auto_pan_enabled

    def test_manual_pan_while_stopped_keeps_auto_pan(self, loaded):
        loaded.notify_manual_pan()
        assert loaded.controller.auto_pan_enabled

    def test_current_sample_defaults_to_first_fix(self, loaded):
        sample = loaded.current_sample()
        assert sample.epoch == loaded.track.first_epoch

    def test_current_sample_follows_playback(self, loaded, scheduler):
        loaded.toggle()
        scheduler.advance(300)
        assert loaded.current_sample().epoch == loaded.track.first_epoch + 300


# ---------------------------------------------------------------------------
# Scrubbing
# ---------------------------------------------------------------------------

class TestScrub:
    def test_scrub_previews_without_panning(self, loaded, display):
        sample = loaded.scrub(4)
        assert sample.epoch == loaded.track.points[4].epoch
        assert display.calls == [(sample, False)]
        assert loaded.controller.current_index == 4

    def test_commit_scrub_pans_when_auto_pan_on(self, loaded, display):
        sample = loaded.commit_scrub(6)
        assert display.calls == [(sample, True)]
        assert loaded.controller.current_time == loaded.track.points[6].epoch

    def test_commit_scrub_respects_auto_pan_off(self, loaded, display):
        loaded.set_auto_pan(False)
        loaded.commit_scrub(6)
        assert display.calls[-1][1] is False

    def test_scrub_stops_playback(self, loaded, scheduler):
        loaded.toggle()
        loaded.scrub(3)
        assert not loaded.controller.is_playing
        assert scheduler.pending_count == 0

    @pytest.mark.parametrize("index", [-1, 11, 99])
    def test_out_of_range_scrub_is_ignored(self, loaded, display, index):
        assert loaded.scrub(index) is None
        assert loaded.commit_scrub(index) is None
        assert display.calls == []
        assert loaded.controller.current_time is None

    def test_play_resumes_from_scrub_position(self, loaded, scheduler):
        loaded.commit_scrub(5)
        loaded.toggle()
        scheduler.advance(100)
        assert loaded.controller.current_time == loaded.track.points[5].epoch + 100
