"""IGCParser — converts raw IGC flight-log text to TrackData.

Only two record kinds matter here:

* ``H`` records: header metadata, including the mandatory ``HFDTE`` date.
* ``B`` records: fixed-width position fixes::

      B HHMMSS DDMMmmmN DDDMMmmmE V PPPPP GGGGG
      0 1      7        15        24 25   30   35

Every other record kind is ignored.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone

from flight_replay.track.models import TrackData, TrackPoint

_logger = logging.getLogger(__name__)

_B_RECORD_MIN_LEN = 35
_VALID_FIX = "A"

_ROLLOVER_THRESHOLD_S = 12 * 3600
_DAY_MS = 24 * 3600 * 1000

# Two-digit years below the pivot belong to the 2000s.
_YEAR_PIVOT = 70

_STANDARD_HEADERS: dict[str, str] = {
    "PLT": "Pilot",
    "GTY": "Glider Type",
    "GID": "Glider ID",
    "CID": "Comp ID",
    "CCL": "Comp Class",
    "SIT": "Site",
    "RFW": "Firmware",
    "RHW": "Hardware",
    "FTY": "Logger Type",
    "GPS": "GPS Receiver",
    "PRS": "Pressure Sensor",
    "DTM": "GPS Datum",
}

_HEADER_RE = re.compile(r"^H([FOP])([A-Z0-9]{3})(?:([^:]*):)?(.*)", re.IGNORECASE)
_DATE_RE = re.compile(r"\d{6}")


class FormatError(ValueError):
    """Raised when the log as a whole cannot produce a usable track."""


class RecordError(ValueError):
    """Raised for a single malformed record; the parser skips it and continues."""


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------

def parse_time(text: str) -> int:
    """Parse ``HHMMSS`` into seconds since midnight.

    Raises
    ------
    RecordError
        If *text* is not six digits or a component is out of range.
    """
    if len(text) != 6 or not text.isdigit():
        raise RecordError(f"Invalid time string: {text!r}")
    h, m, s = int(text[0:2]), int(text[2:4]), int(text[4:6])
    if h > 23 or m > 59 or s > 59:
        raise RecordError(f"Time out of range: H={h} M={m} S={s} from {text!r}")
    return h * 3600 + m * 60 + s


def parse_date(text: str) -> date:
    """Parse ``DDMMYY`` into a :class:`~datetime.date` (years pivot at 70).

    Raises
    ------
    RecordError
        If *text* is not six digits or does not name a real calendar day.
    """
    if len(text) != 6 or not text.isdigit():
        raise RecordError(f"Invalid date string: {text!r}")
    day, month, yy = int(text[0:2]), int(text[2:4]), int(text[4:6])
    year = yy + (2000 if yy < _YEAR_PIVOT else 1900)
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise RecordError(f"Invalid date components in {text!r}: {exc}") from exc


def parse_lat_lon(lat_text: str, lon_text: str) -> tuple[float, float]:
    """Parse ``DDMMmmmN`` / ``DDDMMmmmE`` into signed decimal degrees.

    Raises
    ------
    RecordError
        On bad digits, an unknown hemisphere letter, or an out-of-range result.
    """
    if len(lat_text) != 8 or len(lon_text) != 9:
        raise RecordError(f"Invalid coordinate format: lat={lat_text!r} lon={lon_text!r}")

    lat_digits, lat_hem = lat_text[:7], lat_text[7].upper()
    lon_digits, lon_hem = lon_text[:8], lon_text[8].upper()
    if not lat_digits.isdigit() or not lon_digits.isdigit():
        raise RecordError(f"Non-numeric coordinate: lat={lat_text!r} lon={lon_text!r}")
    if lat_hem not in ("N", "S") or lon_hem not in ("E", "W"):
        raise RecordError(f"Invalid hemisphere: lat={lat_text!r} lon={lon_text!r}")

    lat = int(lat_digits[0:2]) + (int(lat_digits[2:4]) + int(lat_digits[4:7]) / 1000.0) / 60.0
    lon = int(lon_digits[0:3]) + (int(lon_digits[3:5]) + int(lon_digits[5:8]) / 1000.0) / 60.0
    if lat_hem == "S":
        lat = -lat
    if lon_hem == "W":
        lon = -lon

    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
        raise RecordError(f"Coordinate out of bounds: lat={lat} lon={lon}")
    return lat, lon


def _parse_altitude(text: str) -> float | None:
    try:
        return float(int(text))
    except ValueError:
        return None


def _date_epoch_ms(d: date) -> int:
    midnight = datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
    return int(midnight.timestamp()) * 1000


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class IGCParser:
    """Parses IGC text into a :class:`TrackData`.

    Malformed B records are logged and skipped.  The parse fails only when no
    ``HFDTE`` record is present or fewer than two valid fixes survive.
    """

    def parse(self, content: str, source: str = "") -> TrackData:
        """Convert *content* to a :class:`TrackData`.

        Parameters
        ----------
        content:
            Full text of the flight log.
        source:
            Opaque identifier stored on the result (e.g. the file name).

        Raises
        ------
        FormatError
            If the date record is missing or fewer than 2 valid fixes are found.
        """
        headers: dict[str, str] = {}
        points: list[TrackPoint] = []
        warnings: list[str] = []
        raw_date: str | None = None
        flight_date: date | None = None
        skipped = 0

        for lineno, line in enumerate(content.splitlines(), start=1):
            # Trailing blanks can be an empty fixed-width field; keep them.
            if not line.strip():
                continue
            kind = line[0].upper()

            if kind == "H":
                if line[:5].upper() == "HFDTE":
                    match = _DATE_RE.search(line, 5)
                    if match is None:
                        _logger.warning("Malformed HFDTE record (line %d): %r", lineno, line)
                        continue
                    if flight_date is not None:
                        continue
                    raw_date = match.group(0)
                    try:
                        flight_date = parse_date(raw_date)
                    except RecordError as exc:
                        _logger.warning("Unparsable HFDTE record (line %d): %s", lineno, exc)
                        continue
                    headers["Date"] = flight_date.isoformat()
                else:
                    self._parse_header(line, headers)

            elif kind == "B":
                try:
                    point = self._parse_fix(line)
                except RecordError as exc:
                    skipped += 1
                    _logger.warning("Skipping B record (line %d): %s", lineno, exc)
                    continue
                if point is not None:
                    points.append(point)

        if raw_date is None:
            raise FormatError("Invalid IGC format: missing HFDTE date record")
        if len(points) < 2:
            raise FormatError(
                f"Insufficient valid data points: {len(points)} valid B record(s), need at least 2"
            )

        relative = flight_date is None
        if relative:
            headers.setdefault("Date", "Invalid")
            msg = (
                f"Invalid HFDTE date {raw_date!r}; "
                "epoch times are relative, not absolute"
            )
            _logger.warning(msg)
            warnings.append(msg)
            base_ms = 0
        else:
            base_ms = _date_epoch_ms(flight_date)

        self._assign_epochs(points, base_ms)
        if skipped:
            warnings.append(f"{skipped} malformed position record(s) skipped")

        _logger.info("IGC parsing complete: %d track points (%d skipped)", len(points), skipped)
        return TrackData(
            headers=headers,
            points=points,
            source=source,
            flight_date=flight_date,
            relative_epoch=relative,
            skipped_records=skipped,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_header(line: str, headers: dict[str, str]) -> None:
        if len(line) < 6:
            return
        match = _HEADER_RE.match(line)
        if match is None:
            return
        code = match.group(2).upper()
        headers[_STANDARD_HEADERS.get(code, code)] = (match.group(4) or "").strip()

    @staticmethod
    def _parse_fix(line: str) -> TrackPoint | None:
        """Return a TrackPoint for a valid fix, None for a non-'A' fix.

        Raises RecordError if the record is malformed.
        """
        if len(line) < _B_RECORD_MIN_LEN:
            raise RecordError(f"Short B record ({len(line)} chars): {line!r}")

        if line[24].upper() != _VALID_FIX:
            _logger.debug("Ignoring fix with validity %r: %r", line[24], line)
            return None

        timestamp = parse_time(line[1:7])
        lat, lon = parse_lat_lon(line[7:15], line[15:24])
        return TrackPoint(
            timestamp=timestamp,
            latitude=lat,
            longitude=lon,
            pressure_altitude=_parse_altitude(line[25:30]),
            gps_altitude=_parse_altitude(line[30:35]),
        )

    @staticmethod
    def _assign_epochs(points: list[TrackPoint], base_ms: int) -> None:
        """Set ``epoch`` on every point, adding a day at each UTC-midnight crossing."""
        offset_ms = 0
        last_ts: int | None = None
        for p in points:
            if last_ts is not None and last_ts - p.timestamp > _ROLLOVER_THRESHOLD_S:
                offset_ms += _DAY_MS
                _logger.info("Detected UTC midnight rollover at timestamp %d", p.timestamp)
            p.epoch = base_ms + p.timestamp * 1000 + offset_ms
            last_ts = p.timestamp


def parse_igc(content: str, source: str = "") -> TrackData:
    """Parse IGC *content* with a default :class:`IGCParser`."""
    return IGCParser().parse(content, source)
