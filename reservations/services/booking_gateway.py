"""Contract between the engine and the remote booking service."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol


class RemoteStatus(Enum):
    """Overall outcome of a remote call."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class RemoteResult:
    """Envelope returned by every gateway call."""

    status: RemoteStatus
    message: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    status_code: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status == RemoteStatus.SUCCESS

    @classmethod
    def success_result(
        cls,
        *,
        message: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ) -> "RemoteResult":
        return cls(
            status=RemoteStatus.SUCCESS,
            message=message,
            data=dict(data or {}),
            status_code=status_code,
        )

    @classmethod
    def failure_result(
        cls,
        message: str,
        *,
        data: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ) -> "RemoteResult":
        return cls(
            status=RemoteStatus.FAILURE,
            message=message,
            data=dict(data or {}),
            status_code=status_code,
        )


class BookingGateway(Protocol):
    """Remote operations the orchestrator awaits before touching local state.

    ``ref`` is the reservation's remote reference (its ``backend_id`` or, for
    records that never came from the service, the local id as a string).
    """

    async def join(self, ref: str) -> RemoteResult:
        ...

    async def cancel(self, ref: str) -> RemoteResult:
        ...

    async def join_waitlist(self, ref: str) -> RemoteResult:
        ...

    async def leave_waitlist(self, ref: str) -> RemoteResult:
        ...

    async def delete_reservation(self, ref: str) -> RemoteResult:
        ...

    async def kick_player(
        self,
        ref: str,
        user_id: str,
        reason: str,
        suspension_days: int = 0,
    ) -> RemoteResult:
        ...

    async def suspend_player(self, user_id: str, reason: str, days: int) -> RemoteResult:
        ...

    async def add_game_summary(self, ref: str, summary: Dict[str, Any]) -> RemoteResult:
        ...

    async def complete_game(self, ref: str) -> RemoteResult:
        ...

    async def create_reservation(self, payload: Dict[str, Any]) -> RemoteResult:
        ...

    async def fetch_reservations(self) -> RemoteResult:
        """On success ``data["reservations"]`` holds the remote payload list."""
        ...


def remote_reservations(result: RemoteResult) -> List[Dict[str, Any]]:
    """Reservation payloads carried by a successful ``fetch_reservations`` result."""

    items = result.data.get("reservations")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]
