"""Suspension enforcement: lazy expiry, replace semantics and cascade purge."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from infrastructure.constants import DEFAULT_TIMEZONE, RESERVATIONS_KEY
from infrastructure.timeutils import local_now
from reservations.errors import SuspendedError, ValidationError
from reservations.models import Suspension
from reservations.roster.transitions import recompute_status
from tracking import t


class SuspensionManager:
    """Reads and writes the suspension map held by the store."""

    def __init__(
        self,
        store,
        *,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        t('reservations.suspensions.manager.SuspensionManager.__init__')
        self.logger = logging.getLogger('SuspensionManager')
        self.store = store
        self._clock = clock or (lambda: local_now(timezone))

    # ---- Queries ----
    def active_suspension(self, user_id: str, now: Optional[datetime] = None) -> Optional[Suspension]:
        """Current suspension for ``user_id``; an expired record is purged on sight."""

        t('reservations.suspensions.manager.SuspensionManager.active_suspension')
        suspension = self.store.get_suspension(user_id)
        if suspension is None:
            return None

        current = now or self._clock()
        if suspension.is_active(current):
            return suspension

        self.logger.info(
            "Suspension for user %s expired at %s; removing",
            user_id,
            suspension.until.isoformat(),
        )
        self.store.drop_suspension(user_id)
        return None

    def is_suspended(self, user_id: str, now: Optional[datetime] = None) -> bool:
        t('reservations.suspensions.manager.SuspensionManager.is_suspended')
        return self.active_suspension(user_id, now) is not None

    def ensure_not_suspended(self, user_id: str, now: Optional[datetime] = None) -> None:
        t('reservations.suspensions.manager.SuspensionManager.ensure_not_suspended')
        suspension = self.active_suspension(user_id, now)
        if suspension is not None:
            raise SuspendedError(user_id, suspension.until, suspension.reason)

    def active_suspensions(self, now: Optional[datetime] = None) -> List[Suspension]:
        t('reservations.suspensions.manager.SuspensionManager.active_suspensions')
        self.store.purge_expired_suspensions(now or self._clock())
        return self.store.list_suspensions()

    # ---- Mutations ----
    def suspend(
        self,
        user_id: str,
        duration_days: int,
        reason: str,
        now: Optional[datetime] = None,
    ) -> List[int]:
        """
        Suspend ``user_id`` for ``duration_days`` and purge them from active games.

        A prior suspension for the same user is replaced. Returns the ids of
        the reservations whose lineup or waiting list changed.
        """

        t('reservations.suspensions.manager.SuspensionManager.suspend')
        if not user_id:
            raise ValidationError("missing_user", "A player must be selected.")
        if duration_days <= 0:
            raise ValidationError(
                "invalid_duration", "Suspension length must be at least one day."
            )

        current = now or self._clock()
        suspension = Suspension(
            user_id=user_id,
            until=current + timedelta(days=duration_days),
            reason=reason or "",
        )
        previous = self.store.set_suspension(suspension)
        if previous is not None:
            self.logger.info(
                "Replacing suspension for user %s (was until %s)",
                user_id,
                previous.until.isoformat(),
            )

        affected = self._purge_from_active_games(user_id)
        self.logger.info(
            "Suspended user %s until %s (%s); removed from reservations %s",
            user_id,
            suspension.until.isoformat(),
            suspension.reason,
            affected,
        )
        return affected

    def lift(self, user_id: str) -> bool:
        """Remove a suspension before it expires."""

        t('reservations.suspensions.manager.SuspensionManager.lift')
        removed = self.store.drop_suspension(user_id)
        if removed:
            self.logger.info("Lifted suspension for user %s", user_id)
        return removed

    # ---- Internal helpers ----
    def _purge_from_active_games(self, user_id: str) -> List[int]:
        affected: List[int] = []
        for reservation in self.store.live_reservations():
            if not reservation.status.is_active:
                continue

            lineup = [player for player in reservation.lineup if player.user_id != user_id]
            waiting = [queued for queued in reservation.waiting_list if queued != user_id]
            if len(lineup) == len(reservation.lineup) and len(waiting) == len(reservation.waiting_list):
                continue

            reservation.lineup = lineup
            reservation.waiting_list = waiting
            recompute_status(reservation)
            affected.append(reservation.id)

        if affected:
            self.store.persist(RESERVATIONS_KEY)
        return affected
