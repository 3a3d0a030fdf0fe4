"""Error taxonomy for the reservation engine."""

from __future__ import annotations

from datetime import datetime
from typing import Optional


class ReservationError(Exception):
    """Base class for engine errors surfaced to callers."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ReservationError, ValueError):
    """A local precondition failed; the remote service was never called."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class ReservationNotFound(ValidationError):
    def __init__(self, reservation_id: object) -> None:
        super().__init__("not_found", "Reservation not found.")
        self.reservation_id = reservation_id


class SuspendedError(ReservationError):
    """The user holds an active suspension; ``until`` is the reinstatement time."""

    def __init__(self, user_id: str, until: datetime, reason: Optional[str] = None) -> None:
        super().__init__(
            f"You are suspended until {until.strftime('%Y-%m-%d %H:%M')} and cannot join games."
        )
        self.user_id = user_id
        self.until = until
        self.reason = reason


class RemoteError(ReservationError):
    """The booking service rejected the request or could not be reached."""

    def __init__(self, action: str, message: str) -> None:
        super().__init__(message)
        self.action = action


class PersistenceWarning(UserWarning):
    """A snapshot write failed; in-memory state stays authoritative."""

    def __init__(self, key: str, detail: str) -> None:
        super().__init__(f"Failed to persist '{key}' snapshot: {detail}")
        self.key = key
        self.detail = detail
