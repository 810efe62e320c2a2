"""Flight-log data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass
class TrackPoint:
    """A single valid GPS/barometric fix taken from a B record."""

    timestamp: int
    """Seconds since UTC midnight [0, 86399]."""

    latitude: float
    """Latitude in decimal degrees [-90, 90]. Positive = north."""

    longitude: float
    """Longitude in decimal degrees [-180, 180]. Positive = east."""

    pressure_altitude: float | None
    """Barometric altitude in metres, or None if the field was unreadable."""

    gps_altitude: float | None
    """GNSS altitude in metres, or None if the field was unreadable."""

    epoch: int = 0
    """Absolute time in milliseconds since the Unix epoch (assigned by the parser)."""

    @property
    def altitude(self) -> float | None:
        """Effective altitude: pressure altitude if present, else GPS altitude."""
        if self.pressure_altitude is not None:
            return self.pressure_altitude
        return self.gps_altitude


@dataclass
class TrackData:
    """A parsed flight log.

    Built once per successful parse and replaced wholesale on the next load.
    Consumers treat ``points`` as read-only.
    """

    headers: dict[str, str]
    """Header metadata keyed by friendly name (``"Pilot"``, ``"Glider Type"``, ...)."""

    points: list[TrackPoint]
    """Accepted fixes in recording order. ``epoch`` is non-decreasing."""

    source: str = ""
    """Opaque identifier of where the content came from (e.g. a file name)."""

    flight_date: date | None = None
    """UTC date from the HFDTE record, or None when it could not be parsed."""

    relative_epoch: bool = False
    """True when the date was unusable and epochs are anchored at 1970-01-01.

    Epochs stay internally consistent but are not absolute instants.
    """

    skipped_records: int = 0
    """Number of malformed B records that were dropped during parsing."""

    warnings: list[str] = field(default_factory=list)
    """Non-fatal problems worth surfacing to the user."""

    @property
    def first_epoch(self) -> int | None:
        return self.points[0].epoch if self.points else None

    @property
    def last_epoch(self) -> int | None:
        return self.points[-1].epoch if self.points else None

    def is_valid(self) -> bool:
        """Return True if the track has enough fixes to analyse and replay."""
        return len(self.points) >= 2
