"""Tests for IGCParser — headers, B records, epochs and failure modes."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from flight_replay.track.models import TrackData
from flight_replay.track.parser import (
    FormatError,
    IGCParser,
    RecordError,
    parse_date,
    parse_igc,
    parse_lat_lon,
    parse_time,
)
from tests.builders import LAT0, LON0, b_record, igc_log

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

MARCH_15_2024_MS = int(datetime(2024, 3, 15, tzinfo=timezone.utc).timestamp()) * 1000


@pytest.fixture
def parser() -> IGCParser:
    return IGCParser()


def _fixes(n: int, start_s: int = 36_000, step_s: int = 1) -> list[str]:
    return [b_record(start_s + i * step_s, LAT0 + i * 0.001, LON0) for i in range(n)]


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------

class TestFieldParsers:
    def test_parse_time(self):
        assert parse_time("000000") == 0
        assert parse_time("123456") == 12 * 3600 + 34 * 60 + 56
        assert parse_time("235959") == 86_399

    @pytest.mark.parametrize("text", ["240000", "126000", "120060", "12345", "12a456"])
    def test_parse_time_rejects_bad_values(self, text):
        with pytest.raises(RecordError):
            parse_time(text)

    def test_parse_date_year_pivot(self):
        assert parse_date("150324") == date(2024, 3, 15)
        assert parse_date("010169") == date(2069, 1, 1)
        assert parse_date("010170") == date(1970, 1, 1)
        assert parse_date("311299") == date(1999, 12, 31)

    @pytest.mark.parametrize("text", ["320124", "001324", "300223", "15032"])
    def test_parse_date_rejects_bad_values(self, text):
        with pytest.raises(RecordError):
            parse_date(text)

    def test_parse_lat_lon_north_east(self):
        lat, lon = parse_lat_lon("4630000N", "00807500E")
        assert lat == pytest.approx(46.5)
        assert lon == pytest.approx(8.125)

    def test_parse_lat_lon_south_west_negative(self):
        lat, lon = parse_lat_lon("3352500S", "15112000W")
        assert lat == pytest.approx(-(33 + 52.5 / 60))
        assert lon == pytest.approx(-(151 + 12 / 60))

    @pytest.mark.parametrize(
        "lat, lon",
        [
            ("4630000X", "00807500E"),  # bad hemisphere
            ("4630000N", "00807500Q"),
            ("46300a0N", "00807500E"),  # non-digit
            ("9130000N", "00807500E"),  # > 90 deg
            ("4630000N", "18100000E"),  # > 180 deg
        ],
    )
    def test_parse_lat_lon_rejects_bad_coordinates(self, lat, lon):
        with pytest.raises(RecordError):
            parse_lat_lon(lat, lon)


# ---------------------------------------------------------------------------
# Successful parses
# ---------------------------------------------------------------------------

class TestParse:
    def test_returns_track_data_with_all_valid_fixes(self, parser):
        track = parser.parse(igc_log(_fixes(5)), source="flight.igc")
        assert isinstance(track, TrackData)
        assert len(track.points) == 5
        assert track.source == "flight.igc"
        assert track.is_valid()
        assert not track.relative_epoch

    def test_epoch_is_date_plus_time_of_day(self, parser):
        track = parser.parse(igc_log(_fixes(3, start_s=36_000)))
        assert track.flight_date == date(2024, 3, 15)
        assert [p.epoch for p in track.points] == [
            MARCH_15_2024_MS + 36_000_000,
            MARCH_15_2024_MS + 36_001_000,
            MARCH_15_2024_MS + 36_002_000,
        ]

    def test_fix_fields(self, parser):
        content = igc_log([
            b_record(3600, 46.5, 8.125, pressure_alt=1234, gps_alt=1250),
            b_record(3601, -33.5, -151.2, pressure_alt=-12, gps_alt=5),
        ])
        p1, p2 = parser.parse(content).points
        assert p1.timestamp == 3600
        assert p1.latitude == pytest.approx(46.5)
        assert p1.longitude == pytest.approx(8.125)
        assert p1.pressure_altitude == 1234
        assert p1.gps_altitude == 1250
        assert p1.altitude == 1234
        assert p2.latitude == pytest.approx(-33.5)
        assert p2.longitude == pytest.approx(-151.2)
        assert p2.pressure_altitude == -12

    def test_unreadable_pressure_altitude_falls_back_to_gps(self, parser):
        good = b_record(3600, LAT0, LON0)
        bad_baro = b_record(3601, LAT0, LON0, gps_alt=777)
        bad_baro = bad_baro[:25] + "ABCDE" + bad_baro[30:]
        p1, p2 = parser.parse(igc_log([good, bad_baro])).points
        assert p2.pressure_altitude is None
        assert p2.gps_altitude == 777
        assert p2.altitude == 777

    def test_blank_gps_altitude_field_keeps_the_fix(self, parser):
        records = [
            b_record(3600 + i, LAT0, LON0, pressure_alt=900 + i)[:30] + "     " for i in range(2)
        ]
        p1, p2 = parser.parse(igc_log(records)).points
        assert p1.gps_altitude is None
        assert p2.gps_altitude is None
        assert p2.pressure_altitude == 901
        assert p2.altitude == 901

    def test_invalid_validity_fixes_are_dropped_silently(self, parser):
        records = _fixes(4)
        records.insert(2, b_record(36_010, LAT0, LON0, validity="V"))
        track = parser.parse(igc_log(records))
        assert len(track.points) == 4
        assert track.skipped_records == 0

    def test_malformed_records_are_skipped_and_counted(self, parser, caplog):
        records = _fixes(3)
        records.append(b_record(36_100, LAT0, LON0)[:30])           # short
        records.append("B250000" + b_record(36_101, LAT0, LON0)[7:])  # bad hour
        records.append(b_record(36_102, LAT0, LON0).replace("N", "X", 1))
        with caplog.at_level("WARNING"):
            track = parser.parse(igc_log(records))
        assert len(track.points) == 3
        assert track.skipped_records == 3
        assert any("skipped" in w for w in track.warnings)
        assert "Skipping B record" in caplog.text

    def test_ascending_records_give_non_decreasing_epochs(self, parser):
        track = parser.parse(igc_log(_fixes(50, step_s=4)))
        assert len(track.points) == 50
        epochs = [p.epoch for p in track.points]
        assert epochs == sorted(epochs)

    def test_ignores_other_record_kinds_and_blank_lines(self, parser):
        content = igc_log(_fixes(2), headers=("LXXXcomment", "", "I013638FXA", "E123456PEV"))
        assert len(parser.parse(content).points) == 2

    def test_module_shortcut(self):
        assert len(parse_igc(igc_log(_fixes(2))).points) == 2


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------

class TestHeaders:
    def test_standard_codes_get_friendly_names(self, parser):
        content = igc_log(
            _fixes(2),
            headers=(
                "HFPLTPILOTINCHARGE:Jane Doe",
                "HFGTYGLIDERTYPE:Ventus 2",
                "HFGIDGLIDERID:D-1234",
                "HFDTMGPSDATUM:WGS84",
                "HOSITSite:Grindelwald",
            ),
        )
        headers = parser.parse(content).headers
        assert headers["Pilot"] == "Jane Doe"
        assert headers["Glider Type"] == "Ventus 2"
        assert headers["Glider ID"] == "D-1234"
        assert headers["GPS Datum"] == "WGS84"
        assert headers["Site"] == "Grindelwald"
        assert headers["Date"] == "2024-03-15"

    def test_unknown_code_kept_verbatim(self, parser):
        content = igc_log(_fixes(2), headers=("HFXYZ:something",))
        assert parser.parse(content).headers["XYZ"] == "something"

    def test_long_form_date_record(self, parser):
        content = igc_log(_fixes(2), date=None, headers=("HFDTEDATE:150324,01",))
        track = parser.parse(content)
        assert track.flight_date == date(2024, 3, 15)
        assert track.points[0].epoch == MARCH_15_2024_MS + 36_000_000


# ---------------------------------------------------------------------------
# Midnight rollover and degraded dates
# ---------------------------------------------------------------------------

class TestEpochs:
    def test_utc_midnight_rollover_adds_a_day(self, parser):
        records = [
            b_record(86_390, LAT0, LON0),
            b_record(86_399, LAT0, LON0),
            b_record(5, LAT0, LON0),
            b_record(15, LAT0, LON0),
        ]
        epochs = [p.epoch for p in parser.parse(igc_log(records)).points]
        day = 86_400_000
        assert epochs == [
            MARCH_15_2024_MS + 86_390_000,
            MARCH_15_2024_MS + 86_399_000,
            MARCH_15_2024_MS + day + 5_000,
            MARCH_15_2024_MS + day + 15_000,
        ]
        assert epochs == sorted(epochs)

    def test_small_backward_step_is_not_a_rollover(self, parser):
        records = [b_record(36_010, LAT0, LON0), b_record(36_000, LAT0, LON0)]
        p1, p2 = parser.parse(igc_log(records)).points
        assert p2.epoch - p1.epoch == -10_000

    def test_unparsable_date_falls_back_to_relative_epoch(self, parser, caplog):
        with caplog.at_level("WARNING"):
            track = parser.parse(igc_log(_fixes(3, start_s=100), date="320124"))
        assert track.relative_epoch
        assert track.flight_date is None
        assert track.headers["Date"] == "Invalid"
        assert [p.epoch for p in track.points] == [100_000, 101_000, 102_000]
        assert any("relative" in w for w in track.warnings)

    def test_later_valid_date_record_wins_over_unparsable_one(self, parser):
        content = igc_log(_fixes(2), date="320124", headers=("HFDTE150324",))
        track = parser.parse(content)
        assert not track.relative_epoch
        assert track.flight_date == date(2024, 3, 15)


# ---------------------------------------------------------------------------
# Fatal errors
# ---------------------------------------------------------------------------

class TestFormatErrors:
    def test_missing_date_record(self, parser):
        with pytest.raises(FormatError, match="HFDTE"):
            parser.parse(igc_log(_fixes(5), date=None))

    def test_date_record_without_digits(self, parser):
        with pytest.raises(FormatError):
            parser.parse(igc_log(_fixes(5), date=None, headers=("HFDTEDATE:unknown",)))

    def test_fewer_than_two_valid_fixes(self, parser):
        records = [b_record(36_000, LAT0, LON0), b_record(36_001, LAT0, LON0, validity="V")]
        with pytest.raises(FormatError, match="Insufficient valid data points"):
            parser.parse(igc_log(records))

    def test_empty_content(self, parser):
        with pytest.raises(FormatError):
            parser.parse("")

    def test_format_error_is_a_value_error(self):
        assert issubclass(FormatError, ValueError)
