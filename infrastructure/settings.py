"""Centralized application settings.

A single place to load runtime configuration values for the reservation
engine. Components receive an :class:`AppSettings` snapshot at construction
time instead of reading ``os.getenv`` on their own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

from dotenv import load_dotenv

from tracking import t

from . import constants


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Normalize environment strings such as "true"/"1" into booleans."""
    t('infrastructure.settings._to_bool')

    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Optional[str], default: int) -> int:
    t('infrastructure.settings._to_int')

    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _to_float(value: Optional[str], default: float) -> float:
    t('infrastructure.settings._to_float')

    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class AppSettings:
    """Immutable snapshot of high-level configuration values."""

    production_mode: bool
    timezone: str
    data_directory: str
    log_directory: str
    api_base_url: str
    api_timeout_seconds: float
    buffer_slots: int
    max_waiting_list: int
    penalty_window_hours: int
    reload_after_action: bool


def load_settings(env: Optional[Mapping[str, str]] = None) -> AppSettings:
    """Load configuration from the environment and fall back to defaults."""
    t('infrastructure.settings.load_settings')

    if env is None:
        load_dotenv(override=False)
        env = os.environ

    production_mode = _to_bool(env.get("PRODUCTION_MODE", "false"))
    timezone = env.get("PITCHBOOK_TIMEZONE", constants.DEFAULT_TIMEZONE)

    data_directory = env.get("DATA_DIRECTORY", "data")
    log_directory = env.get("LOG_DIRECTORY", os.path.join("logs", "latest_log"))

    api_base_url = env.get("BOOKING_API_URL", constants.DEFAULT_API_BASE_URL).rstrip("/")
    api_timeout_seconds = _to_float(
        env.get("BOOKING_API_TIMEOUT_SECONDS"),
        constants.DEFAULT_API_TIMEOUT_SECONDS,
    )

    buffer_slots = max(_to_int(env.get("RESERVATION_BUFFER_SLOTS"), constants.BUFFER_SLOTS), 0)
    max_waiting_list = max(_to_int(env.get("WAITING_LIST_LIMIT"), constants.MAX_WAITING_LIST), 0)
    penalty_window_hours = max(
        _to_int(env.get("PENALTY_WINDOW_HOURS"), constants.PENALTY_WINDOW_HOURS),
        0,
    )
    reload_after_action = _to_bool(env.get("RELOAD_AFTER_ACTION"), default=True)

    return AppSettings(
        production_mode=production_mode,
        timezone=timezone,
        data_directory=data_directory,
        log_directory=log_directory,
        api_base_url=api_base_url,
        api_timeout_seconds=api_timeout_seconds,
        buffer_slots=buffer_slots,
        max_waiting_list=max_waiting_list,
        penalty_window_hours=penalty_window_hours,
        reload_after_action=reload_after_action,
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached :class:`AppSettings` instance."""
    t('infrastructure.settings.get_settings')

    return load_settings()
