"""Replay configuration — thresholds and playback tuning.

Values can be overridden from the environment with ``FLIGHT_REPLAY_<FIELD>``
variables (e.g. ``FLIGHT_REPLAY_GROUND_SPEED_THRESHOLD_KMH=8``).  Entry-point
scripts call :func:`dotenv.load_dotenv` first so a ``.env`` file works too.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

ENV_PREFIX = "FLIGHT_REPLAY_"


class ReplayConfig(BaseModel):
    """Tunable constants for statistics, interpolation and playback."""

    # Statistics
    ground_speed_threshold_kmh: float = Field(default=5.0, ge=0)
    min_circling_duration_s: float = Field(default=15.0, ge=0)
    min_circling_turn_deg: float = Field(default=180.0, ge=0)
    min_turn_step_deg: float = Field(default=1.0, ge=0)

    # Playback
    default_playback_speed: float = Field(default=1.0, gt=0)
    max_frame_delta_ms: float = Field(default=500.0, gt=0)
    min_time_advance_ms: float = Field(default=0.1, ge=0)

    # Interpolation windows (half-widths)
    heading_window_ms: float = Field(default=200.0, gt=0)
    derivative_window_ms: float = Field(default=500.0, gt=0)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ReplayConfig:
        """Build a config from ``FLIGHT_REPLAY_*`` variables over the defaults.

        Raises ``pydantic.ValidationError`` for values that fail validation.
        """
        env = os.environ if environ is None else environ
        overrides = {}
        for name in cls.model_fields:
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None and raw.strip():
                overrides[name] = raw.strip()
        return cls(**overrides)
