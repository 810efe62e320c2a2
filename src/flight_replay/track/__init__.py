"""Flight-log parsing.

Public API
----------
TrackPoint   - single accepted position/altitude fix
TrackData    - parsed log: headers + ordered fixes
IGCParser    - raw IGC text → TrackData
parse_igc    - module-level shortcut for ``IGCParser().parse``
FormatError  - raised when a log cannot yield a usable track
RecordError  - raised (and caught) for a single malformed record
"""

from flight_replay.track.models import TrackData, TrackPoint
from flight_replay.track.parser import FormatError, IGCParser, RecordError, parse_igc

__all__ = [
    "FormatError",
    "IGCParser",
    "RecordError",
    "TrackData",
    "TrackPoint",
    "parse_igc",
]
