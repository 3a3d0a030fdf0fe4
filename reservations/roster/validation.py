"""Validation helpers for roster changes."""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional

from reservations.errors import ValidationError
from reservations.models import Reservation
from reservations.roster.transitions import joined_count
from tracking import t


def ensure_bookable(reservation: Reservation) -> None:
    """Raise ``ValidationError`` unless players can still join or leave the game."""

    t('reservations.roster.validation.ensure_bookable')
    if not reservation.status.is_active:
        raise ValidationError(
            "not_bookable",
            f"This game is {reservation.status.value} and no longer accepts players.",
        )


def ensure_within_capacity(reservation: Reservation, limit: int) -> None:
    """Raise ``ValidationError`` if one more joined player would exceed ``limit``."""

    t('reservations.roster.validation.ensure_within_capacity')
    if joined_count(reservation) >= limit:
        raise ValidationError(
            "capacity_reached",
            "Game is Full, use waiting list.",
        )


def ensure_single_game_per_day(
    reservations: Iterable[Reservation],
    *,
    user_id: str,
    target_date: date,
    exclude_id: Optional[int] = None,
    logger: Any,
) -> None:
    """Raise ``ValidationError`` if the user already holds a seat in another game that day."""

    t('reservations.roster.validation.ensure_single_game_per_day')
    for existing in reservations:
        if exclude_id is not None and existing.id == exclude_id:
            continue
        if existing.date != target_date:
            continue
        if not existing.status.is_active:
            continue
        if not existing.has_joined(user_id):
            continue

        logger.warning(
            "User %s already joined reservation %s on %s",
            user_id,
            existing.id,
            target_date,
        )
        raise ValidationError(
            "already_joined_today",
            "You have already joined a game on this day.",
        )
