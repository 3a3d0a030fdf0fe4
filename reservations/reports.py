"""Read-side views over reservation snapshots: listings and player statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, List, Optional

from infrastructure.constants import DEFAULT_TIMEZONE
from infrastructure.timeutils import game_start, to_local
from reservations.models import HighlightType, Reservation, ReservationStatus
from tracking import t


@dataclass
class ReservationBuckets:
    current: List[Reservation] = field(default_factory=list)
    upcoming: List[Reservation] = field(default_factory=list)
    past: List[Reservation] = field(default_factory=list)


@dataclass(frozen=True)
class PlayerStatistics:
    user_id: str
    games_played: int = 0
    goals: int = 0
    assists: int = 0
    mvps: int = 0
    clean_sheets: int = 0
    wins: int = 0
    losses: int = 0

    @property
    def win_percentage(self) -> float:
        decided = self.wins + self.losses
        if not decided:
            return 0.0
        return round(self.wins * 100.0 / decided, 1)


def _start_or_none(reservation: Reservation, timezone: str) -> Optional[datetime]:
    try:
        return game_start(reservation.date, reservation.time, timezone)
    except ValueError:
        return None


def categorize(
    reservations: Iterable[Reservation],
    now: datetime,
    timezone: str = DEFAULT_TIMEZONE,
) -> ReservationBuckets:
    """
    Split reservations into today's remaining games, later days and history.

    Completed games and games whose start time has passed are history (most
    recent first). Cancelled games that have not started stay in their day's
    bucket so players can see the cancellation.
    """

    t('reservations.reports.categorize')
    local = to_local(now, timezone)
    today = local.date()
    buckets = ReservationBuckets()

    for reservation in reservations:
        start = _start_or_none(reservation, timezone)
        started = start is not None and start < local
        if reservation.status is ReservationStatus.COMPLETED or started or reservation.date < today:
            buckets.past.append(reservation)
        elif reservation.date == today:
            buckets.current.append(reservation)
        else:
            buckets.upcoming.append(reservation)

    def _sort_key(reservation: Reservation):
        start = _start_or_none(reservation, timezone)
        return (reservation.date, start.time() if start else reservation.time, reservation.id)

    buckets.current.sort(key=_sort_key)
    buckets.upcoming.sort(key=_sort_key)
    buckets.past.sort(key=_sort_key, reverse=True)
    return buckets


def filter_by_date(reservations: Iterable[Reservation], day: date) -> List[Reservation]:
    t('reservations.reports.filter_by_date')
    return [reservation for reservation in reservations if reservation.date == day]


def player_stats(reservations: Iterable[Reservation], user_id: str) -> PlayerStatistics:
    """
    Aggregate a player's record over completed games.

    Submitted summary lines take precedence; games without one fall back to
    the recorded highlights and carry no win/loss information.
    """

    t('reservations.reports.player_stats')
    played = goals = assists = mvps = clean_sheets = wins = losses = 0

    for reservation in reservations:
        if reservation.status is not ReservationStatus.COMPLETED:
            continue

        line = None
        if reservation.summary is not None:
            line = next(
                (stat for stat in reservation.summary.player_stats if stat.user_id == user_id),
                None,
            )

        if line is not None:
            if not line.attended:
                continue
            played += 1
            goals += line.goals
            assists += line.assists
            clean_sheets += int(line.clean_sheet)
            if line.won:
                wins += 1
            else:
                losses += 1
        elif reservation.has_joined(user_id):
            played += 1
            for highlight in reservation.highlights:
                if highlight.player_id != user_id:
                    continue
                if highlight.type is HighlightType.GOAL:
                    goals += 1
                elif highlight.type is HighlightType.ASSIST:
                    assists += 1
        else:
            continue

        if reservation.mvp_player_id == user_id:
            mvps += 1

    return PlayerStatistics(
        user_id=user_id,
        games_played=played,
        goals=goals,
        assists=assists,
        mvps=mvps,
        clean_sheets=clean_sheets,
        wins=wins,
        losses=losses,
    )
