"""Suspension dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Suspension:
    """A time-bounded ban preventing a user from joining or queuing."""

    user_id: str
    until: datetime
    reason: str

    def is_active(self, now: datetime) -> bool:
        return now < self.until
