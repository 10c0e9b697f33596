from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STORE_NAME_ENV = "READINGS_STORE_NAME"
_STORE_PATH_ENV = "READINGS_STORE_PATH"
_DEFAULT_LIMIT_ENV = "READINGS_DEFAULT_LIMIT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    store_name: str
    store_persistence_path: Optional[str]
    default_readings_limit: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        store_name=_read_str_env(_STORE_NAME_ENV, "sensor_readings"),
        store_persistence_path=_read_optional_env(_STORE_PATH_ENV, "./tmp/readings.json"),
        default_readings_limit=_read_positive_int(_DEFAULT_LIMIT_ENV, 50),
        log_level=_read_log_level("INFO"),
    )
