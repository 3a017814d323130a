"""Stream configuration.

Defaults come from the environment so callers can tune tracing and timing
without touching code. Values are resolved once per subscription.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from reportstream.report_logging import should_log_reports, value_preview_max_len


def _env_float(name: str, default: float | None) -> float | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return float(raw)


@dataclass(frozen=True)
class StreamConfig:
    log_reports: bool = False
    log_value_max_len: int = 200
    poll_interval_s: float = 0.25
    idle_timeout_s: float | None = None
    sample_period_s: float = 0.25


def load_config() -> StreamConfig:
    """Build a StreamConfig from REPORTSTREAM_* environment variables."""
    poll = _env_float("REPORTSTREAM_POLL_INTERVAL_S", 0.25)
    sample = _env_float("REPORTSTREAM_SAMPLE_PERIOD_S", 0.25)
    idle = _env_float("REPORTSTREAM_IDLE_TIMEOUT_S", None)

    if poll is None or poll <= 0:
        raise ValueError(f"REPORTSTREAM_POLL_INTERVAL_S must be positive, got {poll!r}")
    if sample is None or sample <= 0:
        raise ValueError(f"REPORTSTREAM_SAMPLE_PERIOD_S must be positive, got {sample!r}")
    if idle is not None and idle <= 0:
        raise ValueError(f"REPORTSTREAM_IDLE_TIMEOUT_S must be positive, got {idle!r}")

    return StreamConfig(
        log_reports=should_log_reports(),
        log_value_max_len=value_preview_max_len(),
        poll_interval_s=poll,
        idle_timeout_s=idle,
        sample_period_s=sample,
    )
