"""State transition helpers for reservation rosters."""

from __future__ import annotations

import logging
from typing import Dict, List

from reservations.models import LineupPlayer, Reservation, ReservationStatus
from tracking import t


def joined_count(reservation: Reservation) -> int:
    """Number of lineup entries currently holding a seat."""

    t('reservations.roster.transitions.joined_count')
    return sum(1 for player in reservation.lineup if player.is_joined)


def derive_status(reservation: Reservation) -> ReservationStatus:
    """Status implied by the roster, leaving terminal states untouched."""

    t('reservations.roster.transitions.derive_status')
    status = reservation.status
    if status is ReservationStatus.COMPLETED or status is ReservationStatus.CANCELLED:
        return status
    if status is ReservationStatus.OPEN or status is ReservationStatus.FULL:
        if joined_count(reservation) >= reservation.max_players:
            return ReservationStatus.FULL
        return ReservationStatus.OPEN
    raise ValueError(f"Unhandled reservation status: {status!r}")


def recompute_status(reservation: Reservation) -> ReservationStatus:
    """Mutate ``reservation.status`` to match its roster and return it."""

    t('reservations.roster.transitions.recompute_status')
    reservation.status = derive_status(reservation)
    return reservation.status


def apply_status_update(reservation: Reservation, new_status: ReservationStatus) -> Reservation:
    """Explicit status change (admin edit, completion, cancellation).

    Moving back into an active state re-derives open/full from the roster.
    """

    t('reservations.roster.transitions.apply_status_update')
    if new_status is ReservationStatus.OPEN or new_status is ReservationStatus.FULL:
        reservation.status = ReservationStatus.OPEN
        recompute_status(reservation)
    elif new_status is ReservationStatus.COMPLETED or new_status is ReservationStatus.CANCELLED:
        reservation.status = new_status
    else:
        raise ValueError(f"Unhandled reservation status: {new_status!r}")
    return reservation


def normalise_roster(
    reservation: Reservation,
    *,
    max_waiting_list: int,
    buffer_slots: int,
    logger: logging.Logger,
) -> bool:
    """Repair a roster that arrived from disk or the booking service.

    Merges duplicate lineup entries (a joined entry wins over left/invited
    ones), drops joined players and duplicates from the waiting list, trims
    the queue to ``max_waiting_list`` keeping the earliest arrivals and
    re-derives the status. Rosters above ``max_players + buffer_slots`` are
    kept as-is but reported.

    Returns:
        True when anything on the reservation changed
    """

    t('reservations.roster.transitions.normalise_roster')
    modified = False

    merged: List[LineupPlayer] = []
    positions: Dict[str, int] = {}
    for player in reservation.lineup:
        index = positions.get(player.user_id)
        if index is None:
            positions[player.user_id] = len(merged)
            merged.append(player)
            continue
        modified = True
        if player.is_joined and not merged[index].is_joined:
            merged[index] = player
    if modified:
        logger.warning(
            "Merged %s duplicate lineup entries on reservation %s",
            len(reservation.lineup) - len(merged),
            reservation.id,
        )
        reservation.lineup = merged

    queue: List[str] = []
    for user_id in reservation.waiting_list:
        if user_id not in queue and not reservation.has_joined(user_id):
            queue.append(user_id)
    if len(queue) > max_waiting_list:
        logger.warning(
            "Waiting list on reservation %s had %s entries, keeping the first %s",
            reservation.id,
            len(queue),
            max_waiting_list,
        )
        queue = queue[:max_waiting_list]
    if queue != reservation.waiting_list:
        reservation.waiting_list = queue
        modified = True

    ceiling = reservation.max_players + buffer_slots
    joined = joined_count(reservation)
    if joined > ceiling:
        logger.warning(
            "Reservation %s has %s joined players, above the limit of %s",
            reservation.id,
            joined,
            ceiling,
        )

    previous_status = reservation.status
    if recompute_status(reservation) is not previous_status:
        modified = True
    return modified
