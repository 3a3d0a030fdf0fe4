"""Timezone-aware date/time helpers for reservation scheduling."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional

import pytz

from tracking import t

from .constants import DATE_FORMAT, DEFAULT_TIMEZONE, TIME_FORMAT_12H, TIME_FORMAT_24H


def get_timezone(timezone_str: str = DEFAULT_TIMEZONE):
    t('infrastructure.timeutils.get_timezone')
    return pytz.timezone(timezone_str)


def local_now(timezone_str: str = DEFAULT_TIMEZONE) -> datetime:
    """Return the current time in the configured timezone."""
    t('infrastructure.timeutils.local_now')
    return datetime.now(get_timezone(timezone_str))


def parse_date(value: Any) -> date:
    """Accept ``date``, ``datetime`` or ISO strings (``2025-01-01T00:00:00Z`` too)."""
    t('infrastructure.timeutils.parse_date')
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        head = value.split("T", 1)[0]
        return datetime.strptime(head, DATE_FORMAT).date()
    raise ValueError(f"Unsupported date value: {value!r}")


def parse_time_label(label: str) -> time:
    """Parse a slot label in 24h (``18:30``) or 12h (``06:30 PM``) form."""
    t('infrastructure.timeutils.parse_time_label')
    if not isinstance(label, str) or ":" not in label:
        raise ValueError(f"Time label {label!r} missing colon separator")

    cleaned = " ".join(label.strip().upper().split())
    for fmt in (TIME_FORMAT_24H, TIME_FORMAT_12H, "%I:%M%p"):
        try:
            return datetime.strptime(cleaned, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised time label {label!r}")


def game_start(game_date: date, label: str, timezone_str: str = DEFAULT_TIMEZONE) -> datetime:
    """Combine a calendar day and slot label into an aware start datetime."""
    t('infrastructure.timeutils.game_start')
    naive = datetime.combine(game_date, parse_time_label(label))
    return get_timezone(timezone_str).localize(naive)


def to_local(value: datetime, timezone_str: str = DEFAULT_TIMEZONE) -> datetime:
    """Convert an aware datetime to the configured zone; naive values are localized."""
    t('infrastructure.timeutils.to_local')
    tz = get_timezone(timezone_str)
    if value.tzinfo is None:
        return tz.localize(value)
    return value.astimezone(tz)


def parse_timestamp(value: Any, timezone_str: str = DEFAULT_TIMEZONE) -> Optional[datetime]:
    """Parse an ISO timestamp into an aware datetime, ``None`` when unparseable."""
    t('infrastructure.timeutils.parse_timestamp')
    if isinstance(value, datetime):
        return to_local(value, timezone_str)
    if not isinstance(value, str) or not value:
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return to_local(parsed, timezone_str)
