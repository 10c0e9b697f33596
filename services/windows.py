"""Time-range tokens used by the aggregated series endpoint."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

DEFAULT_TIME_RANGE = "24h"

TIME_RANGES: dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "12h": timedelta(hours=12),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


def is_known_time_range(token: Optional[str]) -> bool:
    return token in TIME_RANGES


def resolve_window(token: Optional[str], now: datetime) -> datetime:
    """Map a time-range token to the start of its window.

    Unknown or missing tokens fall back to the last 24 hours.
    """
    delta = TIME_RANGES.get(token or DEFAULT_TIME_RANGE, TIME_RANGES[DEFAULT_TIME_RANGE])
    return now - delta
