"""Flight Replay — IGC flight-log parsing, statistics and playback."""

__version__ = "0.1.0"
