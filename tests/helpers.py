"""Shared fakes and utilities for unit tests."""

from __future__ import annotations

import copy
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from infrastructure.settings import load_settings
from infrastructure.timeutils import get_timezone
from reservations.bootstrap import EngineComponents, build_engine
from reservations.models import LineupPlayer, Reservation, ReservationStatus
from reservations.roster.transitions import derive_status
from reservations.services.booking_gateway import RemoteResult
from users.session import UserRole, UserSession

TZ = "America/Guatemala"
NOW = get_timezone(TZ).localize(datetime(2025, 6, 10, 12, 0))
TODAY = NOW.date()


class DummyLogger:
    """Lightweight stand-in for ``logging.Logger`` that records calls."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, Tuple[Any, ...], Dict[str, Any]]] = []

    def _record(self, level: str, *args: Any, **kwargs: Any) -> None:
        self.records.append((level, args, kwargs))

    def debug(self, *args: Any, **kwargs: Any) -> None:
        self._record("debug", *args, **kwargs)

    def info(self, *args: Any, **kwargs: Any) -> None:
        self._record("info", *args, **kwargs)

    def warning(self, *args: Any, **kwargs: Any) -> None:
        self._record("warning", *args, **kwargs)

    def error(self, *args: Any, **kwargs: Any) -> None:
        self._record("error", *args, **kwargs)

    @property
    def messages(self) -> List[Tuple[str, Any]]:
        """Return formatted messages for quick assertions."""
        formatted: List[Tuple[str, Any]] = []
        for level, args, kwargs in self.records:
            message: Any = kwargs.get("msg")
            if args:
                template = args[0]
                if isinstance(template, str) and len(args) > 1:
                    try:
                        message = template % args[1:]
                    except (TypeError, ValueError):
                        message = template
                else:
                    message = template
            formatted.append((level, message))
        return formatted


class FixedClock:
    """Injectable clock; ``advance`` moves time forward."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


class InMemorySnapshotRepository:
    """Key-value snapshot store that records every save."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self.data: Dict[str, Any] = copy.deepcopy(initial or {})
        self.saves: List[Tuple[str, Any]] = []
        self.fail_writes = False

    def load(self, key: str) -> Optional[Any]:
        if key not in self.data:
            return None
        return copy.deepcopy(self.data[key])

    def save(self, key: str, payload: Any) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.saves.append((key, copy.deepcopy(payload)))
        self.data[key] = copy.deepcopy(payload)

    def saved_keys(self) -> List[str]:
        return [key for key, _ in self.saves]


class FakeGateway:
    """Booking gateway double: succeeds unless told otherwise, records every call."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.failures: Dict[str, str] = {}
        self.responses: Dict[str, RemoteResult] = {}
        self.remote_reservations: Optional[List[Dict[str, Any]]] = None

    def fail(self, name: str, message: str) -> None:
        self.failures[name] = message

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    async def _respond(self, name: str, *args: Any) -> RemoteResult:
        self.calls.append((name, args))
        if name in self.failures:
            return RemoteResult.failure_result(self.failures[name], status_code=400)
        return self.responses.get(name, RemoteResult.success_result(message="ok"))

    async def join(self, ref: str) -> RemoteResult:
        return await self._respond("join", ref)

    async def cancel(self, ref: str) -> RemoteResult:
        return await self._respond("cancel", ref)

    async def join_waitlist(self, ref: str) -> RemoteResult:
        return await self._respond("join_waitlist", ref)

    async def leave_waitlist(self, ref: str) -> RemoteResult:
        return await self._respond("leave_waitlist", ref)

    async def delete_reservation(self, ref: str) -> RemoteResult:
        return await self._respond("delete_reservation", ref)

    async def kick_player(self, ref: str, user_id: str, reason: str, suspension_days: int = 0) -> RemoteResult:
        return await self._respond("kick_player", ref, user_id, reason, suspension_days)

    async def suspend_player(self, user_id: str, reason: str, days: int) -> RemoteResult:
        return await self._respond("suspend_player", user_id, reason, days)

    async def add_game_summary(self, ref: str, summary: Dict[str, Any]) -> RemoteResult:
        return await self._respond("add_game_summary", ref, summary)

    async def complete_game(self, ref: str) -> RemoteResult:
        return await self._respond("complete_game", ref)

    async def create_reservation(self, payload: Dict[str, Any]) -> RemoteResult:
        return await self._respond("create_reservation", payload)

    async def fetch_reservations(self) -> RemoteResult:
        if self.remote_reservations is not None and "fetch_reservations" not in self.failures:
            self.calls.append(("fetch_reservations", ()))
            return RemoteResult.success_result(
                data={"reservations": copy.deepcopy(self.remote_reservations)}
            )
        return await self._respond("fetch_reservations")


class RecordingNotifier:
    def __init__(self, *, raise_error: bool = False) -> None:
        self.sent: List[Tuple[List[str], Optional[int], str, str]] = []
        self.raise_error = raise_error

    async def notify(self, user_ids: Sequence[str], reservation, subject: str, message: str) -> None:
        if self.raise_error:
            raise RuntimeError("mail server down")
        self.sent.append((list(user_ids), reservation.id if reservation else None, subject, message))

    def recipients(self) -> List[str]:
        return [user_id for user_ids, *_ in self.sent for user_id in user_ids]


def player(user_id: str = "player-1", name: str = "Test Player") -> UserSession:
    return UserSession(user_id=user_id, role=UserRole.PLAYER, display_name=name)


def admin(user_id: str = "admin-1") -> UserSession:
    return UserSession(user_id=user_id, role=UserRole.ADMIN, display_name="Admin")


def lineup(count: int, prefix: str = "p") -> List[LineupPlayer]:
    return [LineupPlayer(user_id=f"{prefix}{n}", player_name=f"Player {n}") for n in range(1, count + 1)]


def make_reservation(
    reservation_id: int = 1,
    *,
    joined: int = 0,
    max_players: int = 10,
    game_date: Optional[date] = None,
    time_label: str = "18:00",
    pitch_id: int = 1,
    waiting_list: Optional[List[str]] = None,
    status: Optional[ReservationStatus] = None,
    backend_id: Optional[str] = None,
) -> Reservation:
    reservation = Reservation(
        id=reservation_id,
        pitch_id=pitch_id,
        pitch_name="Downtown Arena",
        location="123 Main St, Downtown",
        date=game_date or TODAY,
        time=time_label,
        max_players=max_players,
        price=60,
        backend_id=backend_id,
        lineup=lineup(joined, prefix=f"r{reservation_id}-p"),
        waiting_list=list(waiting_list or []),
    )
    reservation.status = status or derive_status(reservation)
    return reservation


def make_engine(
    *reservations: Reservation,
    repository: Optional[InMemorySnapshotRepository] = None,
    gateway: Optional[FakeGateway] = None,
    notifier: Optional[RecordingNotifier] = None,
    clock: Optional[FixedClock] = None,
    reload_after_action: bool = False,
) -> EngineComponents:
    """Engine over seeded pitches and exactly ``reservations``; saves are reset afterwards."""

    settings = load_settings({
        "PITCHBOOK_TIMEZONE": TZ,
        "RELOAD_AFTER_ACTION": "true" if reload_after_action else "false",
        "DATA_DIRECTORY": "unused",
    })
    repository = repository or InMemorySnapshotRepository({
        "reservations": [],
        "suspendedPlayers": [],
    })
    engine = build_engine(
        settings,
        gateway=gateway or FakeGateway(),
        notifier=notifier or RecordingNotifier(),
        repository=repository,
        clock=clock or FixedClock(),
    )
    for reservation in reservations:
        engine.store.add_reservation(reservation)
    repository.saves.clear()
    return engine
