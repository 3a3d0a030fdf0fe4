"""Bounded FIFO waiting list attached to each full reservation."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from infrastructure.constants import MAX_WAITING_LIST, RESERVATIONS_KEY
from reservations.errors import ValidationError
from reservations.models import Reservation, ReservationStatus
from reservations.services.notifications import NotificationBuilder, dispatch_safely
from tracking import t


class WaitlistManager:
    """
    Queue management for full games.

    Queued users are only ever notified; promotion into the lineup requires
    an explicit join by the user.
    """

    def __init__(
        self,
        store,
        suspensions,
        notifier,
        *,
        max_waiting_list: int = MAX_WAITING_LIST,
        messages: Optional[NotificationBuilder] = None,
    ) -> None:
        t('reservations.waitlist.manager.WaitlistManager.__init__')
        self.logger = logging.getLogger('WaitlistManager')
        self.store = store
        self.suspensions = suspensions
        self.notifier = notifier
        self.max_waiting_list = max_waiting_list
        self.messages = messages or NotificationBuilder()

    def validate_join(
        self,
        reservation: Reservation,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> None:
        """Raise unless ``user_id`` may be queued on ``reservation``."""

        t('reservations.waitlist.manager.WaitlistManager.validate_join')
        if reservation.status is not ReservationStatus.FULL:
            raise ValidationError(
                "game_not_full",
                "You can only join the waiting list when the game is full.",
            )
        if reservation.has_joined(user_id):
            raise ValidationError("already_joined", "You have already joined this game.")
        if reservation.is_queued(user_id):
            raise ValidationError("already_queued", "You are already on the waiting list.")
        if len(reservation.waiting_list) >= self.max_waiting_list:
            raise ValidationError(
                "waitlist_full",
                f"The waiting list is limited to {self.max_waiting_list} players",
            )
        self.suspensions.ensure_not_suspended(user_id, now)

    def join_waiting_list(
        self,
        reservation_id: int,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> int:
        """Append ``user_id`` to the queue and return their 1-based position."""

        t('reservations.waitlist.manager.WaitlistManager.join_waiting_list')
        reservation = self.store.live_reservation(reservation_id)
        self.validate_join(reservation, user_id, now)

        reservation.waiting_list.append(user_id)
        self.store.persist(RESERVATIONS_KEY)
        position = len(reservation.waiting_list)
        self.logger.info(
            "User %s queued for reservation %s at position %s",
            user_id,
            reservation_id,
            position,
        )
        return position

    def leave_waiting_list(self, reservation_id: int, user_id: str) -> bool:
        t('reservations.waitlist.manager.WaitlistManager.leave_waiting_list')
        reservation = self.store.live_reservation(reservation_id)
        if not reservation.is_queued(user_id):
            return False

        reservation.waiting_list = [queued for queued in reservation.waiting_list if queued != user_id]
        self.store.persist(RESERVATIONS_KEY)
        self.logger.info("User %s left waiting list of reservation %s", user_id, reservation_id)
        return True

    def next_in_line(self, reservation_id: int) -> Optional[str]:
        t('reservations.waitlist.manager.WaitlistManager.next_in_line')
        reservation = self.store.live_reservation(reservation_id)
        return reservation.waiting_list[0] if reservation.waiting_list else None

    def position_of(self, reservation_id: int, user_id: str) -> Optional[int]:
        t('reservations.waitlist.manager.WaitlistManager.position_of')
        reservation = self.store.live_reservation(reservation_id)
        if not reservation.is_queued(user_id):
            return None
        return reservation.waiting_list.index(user_id) + 1

    async def notify_waiting_list(self, reservation_id: int) -> List[str]:
        """Tell each queued user that a seat opened up. Membership is left untouched."""

        t('reservations.waitlist.manager.WaitlistManager.notify_waiting_list')
        reservation = self.store.get_reservation(reservation_id)
        if reservation is None or not reservation.waiting_list:
            return []

        notification = self.messages.waitlist_slot_open(reservation)
        notified: List[str] = []
        for user_id in reservation.waiting_list:
            delivered = await dispatch_safely(
                self.notifier,
                [user_id],
                reservation,
                notification,
                logger=self.logger,
            )
            if delivered:
                notified.append(user_id)

        self.logger.info(
            "Notified %s/%s queued users for reservation %s",
            len(notified),
            len(reservation.waiting_list),
            reservation_id,
        )
        return notified
