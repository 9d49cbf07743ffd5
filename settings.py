from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STORE_NAME_ENV = "READING_STORE_NAME"
_STORE_PATH_ENV = "READING_STORE_PATH"
_WINDOW_SECONDS_ENV = "AGGREGATION_WINDOW_SECONDS"
_INTERVAL_SECONDS_ENV = "AGGREGATION_INTERVAL_SECONDS"
_RECENT_WINDOW_SECONDS_ENV = "RECENT_WINDOW_SECONDS"
_SCHEDULER_ENABLED_ENV = "SCHEDULER_ENABLED"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    store_name: str
    store_path: Optional[str]
    aggregation_window_seconds: float
    aggregation_interval_seconds: float
    recent_window_seconds: float
    scheduler_enabled: bool
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


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


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
        store_name=_read_str_env(_STORE_NAME_ENV, "environment"),
        store_path=_read_optional_env(_STORE_PATH_ENV, "./tmp/readings.json"),
        aggregation_window_seconds=_read_positive_float(_WINDOW_SECONDS_ENV, 300.0),
        aggregation_interval_seconds=_read_positive_float(_INTERVAL_SECONDS_ENV, 10.0),
        recent_window_seconds=_read_positive_float(_RECENT_WINDOW_SECONDS_ENV, 1800.0),
        scheduler_enabled=_read_bool_env(_SCHEDULER_ENABLED_ENV, True),
        log_level=_read_log_level("INFO"),
    )
