"""
Action Orchestrator

Runs every user-facing action as one logical operation: validate against the
local snapshot, await the booking service, then apply the local mutation and
optionally reload the authoritative list. A rejected or unreachable remote
call raises :class:`RemoteError` and leaves local state exactly as it was.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from infrastructure.constants import DEFAULT_TIMEZONE, RESERVATIONS_KEY
from infrastructure.timeutils import local_now
from reservations.errors import RemoteError, ReservationError, ReservationNotFound, ValidationError
from reservations.models import (
    FinalScore,
    GameSummary,
    Reservation,
    ReservationStatus,
)
from reservations.roster.transitions import normalise_roster
from reservations.roster.validation import (
    ensure_bookable,
    ensure_single_game_per_day,
    ensure_within_capacity,
)
from reservations.services.booking_gateway import RemoteResult, remote_reservations
from reservations.services.notifications import NotificationBuilder, dispatch_safely
from reservations.store.record_codec import DEFAULT_CODEC, RecordCodec
from tracking import t
from users.session import UserRole, UserSession

PENALTY_NOTICE = "Leaving a game less than {hours} hours before start time may result in penalties."


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a successful orchestrated action."""

    action: str
    reservation_id: Optional[int]
    message: str
    penalty: bool = False
    reservation: Optional[Reservation] = None
    affected_reservations: Tuple[int, ...] = ()


class ActionOrchestrator:
    """
    Coordinates remote calls with local roster, waitlist and game mutations.

    Actions touching the same reservation are serialised with a
    per-reservation ``asyncio.Lock`` so two joins racing for the last seat
    cannot both pass validation.
    """

    def __init__(
        self,
        store,
        roster,
        waitlist,
        suspensions,
        games,
        catalog,
        gateway,
        notifier,
        *,
        codec: Optional[RecordCodec] = None,
        reload_after_action: bool = True,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Optional[Callable[[], datetime]] = None,
        messages: Optional[NotificationBuilder] = None,
    ) -> None:
        t('reservations.services.action_orchestrator.ActionOrchestrator.__init__')
        self.logger = logging.getLogger('ActionOrchestrator')
        self.store = store
        self.roster = roster
        self.waitlist = waitlist
        self.suspensions = suspensions
        self.games = games
        self.catalog = catalog
        self.gateway = gateway
        self.notifier = notifier
        self.codec = codec or DEFAULT_CODEC
        self.reload_after_action = reload_after_action
        self._clock = clock or (lambda: local_now(timezone))
        self.messages = messages or NotificationBuilder()
        self._locks: Dict[int, asyncio.Lock] = {}
        self._suspension_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------
    async def join_game(self, session: Optional[UserSession], reservation_id: int) -> ActionResult:
        t('reservations.services.action_orchestrator.ActionOrchestrator.join_game')
        user = self._require_role(session, UserRole.PLAYER, "Admins cannot join games.")

        async with self._lock_for(reservation_id):
            reservation = self._require_reservation(reservation_id)
            ensure_bookable(reservation)
            now = self._clock()
            self.suspensions.ensure_not_suspended(user.user_id, now)
            if reservation.has_joined(user.user_id):
                raise ValidationError("already_joined", "You have already joined this game.")
            ensure_single_game_per_day(
                self.store.live_reservations(),
                user_id=user.user_id,
                target_date=reservation.date,
                exclude_id=reservation.id,
                logger=self.logger,
            )
            ensure_within_capacity(reservation, reservation.max_players)

            await self._remote("join", self.gateway.join(reservation.remote_ref))

            try:
                self.roster.join_game(reservation_id, user.user_id, user.player_name, now)
            except ReservationError:
                # A suspension can land while the remote join is in flight.
                await self._rollback_remote_join(reservation.remote_ref, user.user_id)
                raise
            await self._reload()
            return self._result(
                "join", reservation_id, "You have successfully joined the game."
            )

    async def leave_game(self, session: Optional[UserSession], reservation_id: int) -> ActionResult:
        """Cancel the caller's seat; the result flags late cancellations."""

        t('reservations.services.action_orchestrator.ActionOrchestrator.leave_game')
        user = self._require_session(session)

        async with self._lock_for(reservation_id):
            reservation = self._require_reservation(reservation_id)
            if not reservation.has_joined(user.user_id):
                raise ValidationError("not_joined", "You have not joined this game.")
            ensure_bookable(reservation)
            penalty = self.roster.is_penalty(reservation, self._clock())

            await self._remote("cancel", self.gateway.cancel(reservation.remote_ref))

            self.roster.leave_game(reservation_id, user.user_id)
            await self._notify_if_seat_opened(reservation)
            await self._reload()

            message = "You have left the game successfully."
            if penalty:
                self.logger.warning(
                    "User %s left reservation %s inside the penalty window",
                    user.user_id,
                    reservation_id,
                )
                hours = int(self.roster.penalty_window.total_seconds() // 3600)
                message = f"{message} {PENALTY_NOTICE.format(hours=hours)}"
            return self._result("leave", reservation_id, message, penalty=penalty)

    async def join_waiting_list(
        self,
        session: Optional[UserSession],
        reservation_id: int,
    ) -> ActionResult:
        t('reservations.services.action_orchestrator.ActionOrchestrator.join_waiting_list')
        user = self._require_role(session, UserRole.PLAYER, "Admins cannot join waiting lists.")

        async with self._lock_for(reservation_id):
            reservation = self._require_reservation(reservation_id)
            now = self._clock()
            self.waitlist.validate_join(reservation, user.user_id, now)

            await self._remote("join_waitlist", self.gateway.join_waitlist(reservation.remote_ref))

            position = self.waitlist.join_waiting_list(reservation_id, user.user_id, now)
            await self._reload()
            return self._result(
                "join_waitlist",
                reservation_id,
                f"You've been added to the waiting list (position {position}).",
            )

    async def leave_waiting_list(
        self,
        session: Optional[UserSession],
        reservation_id: int,
    ) -> ActionResult:
        t('reservations.services.action_orchestrator.ActionOrchestrator.leave_waiting_list')
        user = self._require_role(session, UserRole.PLAYER, "Admins cannot join waiting lists.")

        async with self._lock_for(reservation_id):
            reservation = self._require_reservation(reservation_id)
            if not reservation.is_queued(user.user_id):
                raise ValidationError("not_queued", "You are not on the waiting list.")

            await self._remote("leave_waitlist", self.gateway.leave_waitlist(reservation.remote_ref))

            self.waitlist.leave_waiting_list(reservation_id, user.user_id)
            await self._reload()
            return self._result(
                "leave_waitlist", reservation_id, "You've been removed from the waiting list."
            )

    # ------------------------------------------------------------------
    # Admin actions
    # ------------------------------------------------------------------
    async def delete_reservation(
        self,
        session: Optional[UserSession],
        reservation_id: int,
    ) -> ActionResult:
        t('reservations.services.action_orchestrator.ActionOrchestrator.delete_reservation')
        self._require_role(session, UserRole.ADMIN, "Only admins can delete reservations.")

        async with self._lock_for(reservation_id):
            reservation = self._require_reservation(reservation_id)

            await self._remote("delete", self.gateway.delete_reservation(reservation.remote_ref))

            removed = self.games.delete_reservation(reservation_id)
            recipients = [p.user_id for p in removed.joined_players()] + list(removed.waiting_list)
            await dispatch_safely(
                self.notifier,
                recipients,
                removed,
                self.messages.game_cancelled(removed),
                logger=self.logger,
            )
            await self._reload()
        self._locks.pop(reservation_id, None)
        return ActionResult(
            action="delete",
            reservation_id=reservation_id,
            message="The reservation has been successfully deleted.",
        )

    async def kick_player(
        self,
        session: Optional[UserSession],
        reservation_id: int,
        user_id: str,
        reason: str = "",
        suspension_days: int = 0,
    ) -> ActionResult:
        """Remove a player from a lineup, optionally suspending them as well."""

        t('reservations.services.action_orchestrator.ActionOrchestrator.kick_player')
        self._require_role(session, UserRole.ADMIN, "Only admins can kick players.")
        if suspension_days < 0:
            raise ValidationError("invalid_duration", "Suspension length cannot be negative.")

        async with self._lock_for(reservation_id):
            reservation = self._require_reservation(reservation_id)
            if not reservation.has_joined(user_id):
                raise ValidationError("not_in_lineup", "Player is not part of this game.")

            await self._remote(
                "kick",
                self.gateway.kick_player(reservation.remote_ref, user_id, reason, suspension_days),
            )

            self.roster.leave_game(reservation_id, user_id)
            affected: List[int] = [reservation_id]
            if suspension_days > 0:
                for other in self.suspensions.suspend(user_id, suspension_days, reason, self._clock()):
                    if other not in affected:
                        affected.append(other)

            await dispatch_safely(
                self.notifier,
                [user_id],
                reservation,
                self.messages.removed_from_game(reservation, reason),
                logger=self.logger,
            )
            await self._notify_if_seat_opened(reservation)
            await self._reload()
            return self._result(
                "kick",
                reservation_id,
                "Player has been removed from the game.",
                affected=tuple(affected),
            )

    async def suspend_player(
        self,
        session: Optional[UserSession],
        user_id: str,
        reason: str,
        duration_days: int,
    ) -> ActionResult:
        t('reservations.services.action_orchestrator.ActionOrchestrator.suspend_player')
        self._require_role(session, UserRole.ADMIN, "Only admins can suspend players.")
        if not user_id:
            raise ValidationError("missing_user", "A player must be selected.")
        if duration_days <= 0:
            raise ValidationError("invalid_duration", "Suspension length must be at least one day.")

        async with self._suspension_lock:
            await self._remote(
                "suspend", self.gateway.suspend_player(user_id, reason, duration_days)
            )

            now = self._clock()
            affected = self.suspensions.suspend(user_id, duration_days, reason, now)
            suspension = self.suspensions.active_suspension(user_id, now)
            await dispatch_safely(
                self.notifier,
                [user_id],
                None,
                self.messages.suspension_notice(reason, suspension.until if suspension else None),
                logger=self.logger,
            )
            await self._reload()
        return ActionResult(
            action="suspend",
            reservation_id=None,
            message=f"Player has been suspended for {duration_days} days.",
            affected_reservations=tuple(affected),
        )

    async def add_game_summary(
        self,
        session: Optional[UserSession],
        reservation_id: int,
        summary: GameSummary,
    ) -> ActionResult:
        t('reservations.services.action_orchestrator.ActionOrchestrator.add_game_summary')
        self._require_role(session, UserRole.ADMIN, "Only admins can add summaries.")
        if not summary.text or not summary.text.strip():
            raise ValidationError("empty_summary", "Summary text is required.")

        async with self._lock_for(reservation_id):
            reservation = self._require_reservation(reservation_id)
            self.games.ensure_summary_allowed(reservation)

            await self._remote(
                "summary",
                self.gateway.add_game_summary(reservation.remote_ref, summary.to_remote_payload()),
            )

            self.games.record_summary(reservation_id, summary)
            await self._reload()
            return self._result(
                "summary", reservation_id, "Game summary has been saved successfully."
            )

    async def complete_game(
        self,
        session: Optional[UserSession],
        reservation_id: int,
        *,
        final_score: Optional[FinalScore] = None,
        mvp_player_id: Optional[str] = None,
    ) -> ActionResult:
        t('reservations.services.action_orchestrator.ActionOrchestrator.complete_game')
        self._require_role(session, UserRole.ADMIN, "Only admins can complete games.")

        async with self._lock_for(reservation_id):
            reservation = self._require_reservation(reservation_id)
            self.games.ensure_completable(reservation)

            await self._remote("complete", self.gateway.complete_game(reservation.remote_ref))

            self.games.complete_game(
                reservation_id, final_score=final_score, mvp_player_id=mvp_player_id
            )
            await self._reload()
            return self._result("complete", reservation_id, "Game marked as completed.")

    async def create_reservation(
        self,
        session: Optional[UserSession],
        pitch_id: int,
        game_date: Union[date, str],
        time_label: str,
        *,
        max_players: Optional[int] = None,
        price: Optional[float] = None,
        title: Optional[str] = None,
    ) -> ActionResult:
        t('reservations.services.action_orchestrator.ActionOrchestrator.create_reservation')
        self._require_role(session, UserRole.ADMIN, "Only admins can create reservations.")

        pitch, day, capacity = self.games.prepare_reservation(
            pitch_id, game_date, time_label, max_players
        )
        payload = self.codec.creation_payload(
            pitch=pitch,
            game_date=day,
            time_label=time_label,
            max_players=capacity,
            price=pitch.price_per_hour if price is None else price,
            title=title,
        )

        result = await self._remote("create", self.gateway.create_reservation(payload))

        created = self.games.create_reservation(
            pitch.id,
            day,
            time_label,
            max_players=capacity,
            price=price,
            title=title,
            backend_id=self._created_backend_id(result),
        )
        await self._reload()
        return self._result("create", created.id, "Reservation created successfully.")

    # ------------------------------------------------------------------
    # Reload
    # ------------------------------------------------------------------
    async def reload(self) -> bool:
        """Replace local reservations with the booking service's list."""

        t('reservations.services.action_orchestrator.ActionOrchestrator.reload')
        result = await self.gateway.fetch_reservations()
        if not result.success:
            self.logger.warning("Reload skipped, keeping local state: %s", result.message)
            return False

        next_id = max((r.id for r in self.store.live_reservations()), default=0) + 1
        reloaded: List[Reservation] = []
        for payload in remote_reservations(result):
            previous = self.store.find_by_remote_ref(str(payload.get("_id")))
            if previous is not None:
                local_id = previous.id
            else:
                local_id = next_id
                next_id += 1
            try:
                reservation = self.codec.reservation_from_remote(
                    payload, local_id=local_id, previous=previous
                )
            except (KeyError, TypeError, ValueError) as exc:
                self.logger.warning("Skipping malformed remote reservation: %s", exc)
                continue
            if reservation.pitch_id is None:
                pitch = self.catalog.find_by_name(reservation.pitch_name)
                reservation.pitch_id = pitch.id if pitch else None
            normalise_roster(
                reservation,
                max_waiting_list=self.waitlist.max_waiting_list,
                buffer_slots=self.roster.buffer_slots,
                logger=self.logger,
            )
            reloaded.append(reservation)

        self.store.replace_all(RESERVATIONS_KEY, reloaded)
        self.logger.info("Reloaded %s reservations from booking service", len(reloaded))
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _lock_for(self, reservation_id: int) -> asyncio.Lock:
        lock = self._locks.get(reservation_id)
        if lock is None:
            lock = self._locks[reservation_id] = asyncio.Lock()
        return lock

    @staticmethod
    def _require_session(session: Optional[UserSession]) -> UserSession:
        if session is None or not session.user_id:
            raise ValidationError("not_logged_in", "Please log in to continue.")
        return session

    def _require_role(
        self,
        session: Optional[UserSession],
        role: UserRole,
        message: str,
    ) -> UserSession:
        user = self._require_session(session)
        if user.role is not role:
            self.logger.info("Rejected %s action for user %s", user.role.value, user.user_id)
            raise ValidationError("forbidden", message)
        return user

    def _require_reservation(self, reservation_id: int) -> Reservation:
        reservation = self.store.get_reservation(reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation

    async def _remote(self, action: str, call: Awaitable[RemoteResult]) -> RemoteResult:
        result = await call
        if not result.success:
            message = result.message or f"Remote {action} failed"
            self.logger.warning("Remote %s rejected: %s", action, message)
            raise RemoteError(action, message)
        self.logger.debug("Remote %s succeeded", action)
        return result

    async def _rollback_remote_join(self, remote_ref: str, user_id: str) -> None:
        result = await self.gateway.cancel(remote_ref)
        if result.success:
            self.logger.info("Rolled back remote join of %s on %s", user_id, remote_ref)
        else:
            self.logger.error(
                "Remote join of %s on %s could not be rolled back: %s",
                user_id,
                remote_ref,
                result.message,
            )

    async def _reload(self) -> None:
        if self.reload_after_action:
            await self.reload()

    async def _notify_if_seat_opened(self, before: Reservation) -> None:
        after = self.store.get_reservation(before.id)
        if after is None:
            return
        if (
            before.status is ReservationStatus.FULL
            and after.status is ReservationStatus.OPEN
            and after.waiting_list
        ):
            await self.waitlist.notify_waiting_list(before.id)

    @staticmethod
    def _created_backend_id(result: RemoteResult) -> Optional[str]:
        data: Any = result.data.get("reservation", result.data)
        if isinstance(data, dict) and data.get("_id"):
            return str(data["_id"])
        return None

    def _result(
        self,
        action: str,
        reservation_id: int,
        message: str,
        *,
        penalty: bool = False,
        affected: Tuple[int, ...] = (),
    ) -> ActionResult:
        return ActionResult(
            action=action,
            reservation_id=reservation_id,
            message=message,
            penalty=penalty,
            reservation=self.store.get_reservation(reservation_id),
            affected_reservations=affected,
        )
