"""
Roster Manager

Join/leave logic for reservation lineups. Capacity is ``max_players`` plus a
small buffer of overflow seats; status is re-derived from the roster after
every change and players on the waiting list are never promoted here.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from infrastructure.constants import (
    BUFFER_SLOTS,
    DEFAULT_TIMEZONE,
    PENALTY_WINDOW_HOURS,
    RESERVATIONS_KEY,
)
from infrastructure.timeutils import game_start, local_now
from reservations.models import LineupPlayer, LineupStatus, Reservation
from reservations.roster.transitions import joined_count, recompute_status
from reservations.roster.validation import ensure_bookable, ensure_within_capacity
from tracking import t


class RosterManager:
    """
    Mutates reservation lineups held by the store.

    Attributes:
        store: ReservationStore owning the reservations
        suspensions: SuspensionManager consulted before every join
        buffer_slots (int): Overflow seats allowed above ``max_players``
        penalty_window (timedelta): Late-cancellation window before kick-off
    """

    def __init__(
        self,
        store,
        suspensions,
        *,
        buffer_slots: int = BUFFER_SLOTS,
        penalty_window_hours: int = PENALTY_WINDOW_HOURS,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        t('reservations.roster.manager.RosterManager.__init__')
        self.logger = logging.getLogger('RosterManager')
        self.store = store
        self.suspensions = suspensions
        self.buffer_slots = buffer_slots
        self.penalty_window = timedelta(hours=penalty_window_hours)
        self.timezone = timezone
        self._clock = clock or (lambda: local_now(timezone))

    # ---- Capacity helpers ----
    def effective_capacity(self, reservation: Reservation) -> int:
        t('reservations.roster.manager.RosterManager.effective_capacity')
        return reservation.max_players + self.buffer_slots

    def available_seats(self, reservation: Reservation) -> int:
        """Regular seats left before the game turns full (buffer not included)."""

        t('reservations.roster.manager.RosterManager.available_seats')
        return max(0, reservation.max_players - joined_count(reservation))

    # ---- Mutations ----
    def join_game(
        self,
        reservation_id: int,
        user_id: str,
        player_name: str,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Add ``user_id`` to the lineup.

        Returns False when the user already holds a joined seat. Raises
        ``SuspendedError`` for suspended users and ``ValidationError`` when the
        game is closed or the buffered capacity is exhausted.
        """

        t('reservations.roster.manager.RosterManager.join_game')
        reservation = self.store.live_reservation(reservation_id)
        if reservation.has_joined(user_id):
            self.logger.debug("User %s already in reservation %s", user_id, reservation_id)
            return False

        current = now or self._clock()
        self.suspensions.ensure_not_suspended(user_id, current)
        ensure_bookable(reservation)
        ensure_within_capacity(reservation, self.effective_capacity(reservation))

        # one entry per user; stale left/invited rows are replaced
        reservation.lineup = [p for p in reservation.lineup if p.user_id != user_id]
        reservation.lineup.append(
            LineupPlayer(
                user_id=user_id,
                player_name=player_name or user_id,
                status=LineupStatus.JOINED,
                joined_at=current,
            )
        )
        if user_id in reservation.waiting_list:
            reservation.waiting_list = [u for u in reservation.waiting_list if u != user_id]

        status = recompute_status(reservation)
        self.store.persist(RESERVATIONS_KEY)
        self.logger.info(
            "User %s joined reservation %s (%s/%s, %s)",
            user_id,
            reservation_id,
            joined_count(reservation),
            reservation.max_players,
            status.value,
        )
        return True

    def leave_game(self, reservation_id: int, user_id: str) -> bool:
        """Drop every lineup entry for ``user_id``; returns whether anything changed."""

        t('reservations.roster.manager.RosterManager.leave_game')
        reservation = self.store.live_reservation(reservation_id)
        remaining = [p for p in reservation.lineup if p.user_id != user_id]
        if len(remaining) == len(reservation.lineup):
            return False

        reservation.lineup = remaining
        status = recompute_status(reservation)
        self.store.persist(RESERVATIONS_KEY)
        self.logger.info(
            "User %s left reservation %s (%s/%s, %s)",
            user_id,
            reservation_id,
            joined_count(reservation),
            reservation.max_players,
            status.value,
        )
        return True

    # ---- Queries ----
    def has_joined_on_date(self, target_date: date, user_id: str) -> bool:
        """True when the user holds a seat in an open or full game on ``target_date``."""

        t('reservations.roster.manager.RosterManager.has_joined_on_date')
        for reservation in self.store.live_reservations():
            if reservation.date != target_date:
                continue
            if reservation.status.is_active and reservation.has_joined(user_id):
                return True
        return False

    def is_penalty(self, reservation: Reservation, now: Optional[datetime] = None) -> bool:
        """True when leaving now falls inside the late-cancellation window."""

        t('reservations.roster.manager.RosterManager.is_penalty')
        try:
            start = game_start(reservation.date, reservation.time, self.timezone)
        except ValueError as exc:
            self.logger.warning(
                "Cannot compute penalty for reservation %s: %s", reservation.id, exc
            )
            return False

        remaining = start - (now or self._clock())
        return timedelta(0) <= remaining < self.penalty_window
