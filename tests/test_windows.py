from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from services.windows import TIME_RANGES, is_known_time_range, resolve_window

NOW = datetime(2024, 3, 10, 15, 45, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("1h", timedelta(hours=1)),
        ("6h", timedelta(hours=6)),
        ("12h", timedelta(hours=12)),
        ("24h", timedelta(hours=24)),
        ("7d", timedelta(days=7)),
        ("30d", timedelta(days=30)),
    ],
)
def test_known_tokens_map_to_window_start(token: str, expected: timedelta) -> None:
    assert resolve_window(token, NOW) == NOW - expected
    assert is_known_time_range(token)


@pytest.mark.parametrize("token", ["bogus-token", "", None, "24H", "2d"])
def test_unknown_tokens_fall_back_to_24h(token) -> None:
    assert resolve_window(token, NOW) == resolve_window("24h", NOW)


def test_unknown_tokens_are_detectable() -> None:
    assert not is_known_time_range("bogus-token")
    assert not is_known_time_range(None)
    assert set(TIME_RANGES) == {"1h", "6h", "12h", "24h", "7d", "30d"}
