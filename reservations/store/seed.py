"""Initial dataset used when no snapshot has been persisted yet."""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional

from reservations.models import (
    FinalScore,
    Highlight,
    HighlightType,
    LineupPlayer,
    Pitch,
    Reservation,
    ReservationStatus,
)
from reservations.roster.transitions import derive_status
from tracking import t

_FIRST_NAMES = (
    "Alex", "Sam", "Jordan", "Chris", "Taylor", "Morgan", "Jamie", "Casey",
    "Riley", "Drew", "Robin", "Kai",
)
_LAST_NAMES = ("Garcia", "Lopez", "Smith", "Mendez", "Brown", "Ruiz", "Khan")


def seed_pitches() -> List[Pitch]:
    t('reservations.store.seed.seed_pitches')
    return [
        Pitch(
            id=1,
            name="Downtown Arena",
            location="123 Main St, Downtown",
            city="Guatemala City",
            price_per_hour=60,
            players_per_side=5,
            facilities=frozenset({"Changing Rooms", "Showers", "Free Parking"}),
            description="Modern indoor facility with high-quality turf.",
        ),
        Pitch(
            id=2,
            name="Riverside Fields",
            location="45 River Rd, East Side",
            city="Guatemala City",
            price_per_hour=120,
            players_per_side=11,
            facilities=frozenset({"Changing Rooms", "Showers", "Floodlights", "Equipment Rental"}),
            description="Outdoor pitch with natural grass.",
        ),
        Pitch(
            id=3,
            name="Community Center",
            location="78 Park Lane, North End",
            city="Mixco",
            price_per_hour=40,
            players_per_side=5,
            facilities=frozenset({"Free Parking", "Equipment Rental"}),
        ),
        Pitch(
            id=4,
            name="Sports Academy",
            location="12 Academy Way, West Hill",
            city="Guatemala City",
            price_per_hour=90,
            players_per_side=7,
            facilities=frozenset({
                "Changing Rooms", "Showers", "Free Parking", "Floodlights", "Refreshments",
            }),
        ),
        Pitch(
            id=5,
            name="Central Park",
            location="1 Park Ave, City Center",
            city="Antigua",
            price_per_hour=70,
            players_per_side=7,
            facilities=frozenset({"Free Parking", "Spectator Seating", "Refreshments"}),
        ),
    ]


def seed_lineup(reservation_id: int, count: int) -> List[LineupPlayer]:
    """Deterministic placeholder players for seeded games."""

    t('reservations.store.seed.seed_lineup')
    players = []
    for index in range(count):
        first = _FIRST_NAMES[index % len(_FIRST_NAMES)]
        last = _LAST_NAMES[(index + reservation_id) % len(_LAST_NAMES)]
        players.append(
            LineupPlayer(
                user_id=f"seed-{reservation_id}-{index + 1}",
                player_name=f"{first} {last}",
            )
        )
    return players


def _game(
    reservation_id: int,
    pitch: Pitch,
    day: date,
    time_label: str,
    max_players: int,
    joined: int,
    *,
    title: Optional[str] = None,
    waiting_list: Optional[List[str]] = None,
    completed: bool = False,
) -> Reservation:
    reservation = Reservation(
        id=reservation_id,
        pitch_id=pitch.id,
        pitch_name=pitch.name,
        location=pitch.location,
        date=day,
        time=time_label,
        max_players=max_players,
        price=pitch.price_per_hour,
        title=title,
        lineup=seed_lineup(reservation_id, joined),
        waiting_list=list(waiting_list or []),
    )
    if completed:
        reservation.status = ReservationStatus.COMPLETED
    else:
        reservation.status = derive_status(reservation)
    return reservation


def seed_reservations(today: date) -> List[Reservation]:
    """Games spread around ``today`` covering open, full and completed states."""

    t('reservations.store.seed.seed_reservations')
    pitches = {pitch.id: pitch for pitch in seed_pitches()}
    yesterday = today - timedelta(days=1)

    games = [
        _game(1, pitches[1], today, "18:00", 10, 8, title="Evening 5-a-side"),
        _game(
            2, pitches[2], today + timedelta(days=1), "19:30", 22, 22,
            title="Full 11v11 Match",
            waiting_list=["user123", "user456", "user789"],
        ),
        _game(3, pitches[3], yesterday, "17:00", 10, 10, completed=True),
        _game(
            4, pitches[4], today, "20:00", 14, 14,
            title="Evening 7v7",
            waiting_list=["user234", "user567"],
        ),
        _game(5, pitches[1], today + timedelta(days=2), "09:00", 10, 6, title="Morning 5-a-side"),
        _game(6, pitches[2], today + timedelta(days=7), "18:30", 22, 15, title="Evening 11v11"),
        _game(7, pitches[5], today + timedelta(days=1), "15:00", 14, 9, title="Afternoon 7v7"),
    ]

    finished = games[2]
    scorer, provider = finished.lineup[0], finished.lineup[1]
    finished.final_score = FinalScore(home=3, away=2)
    finished.mvp_player_id = scorer.user_id
    finished.highlights = [
        Highlight(
            id="seed-h-1",
            type=HighlightType.GOAL,
            player_id=scorer.user_id,
            player_name=scorer.player_name,
            minute=12,
            assist_player_id=provider.user_id,
        ),
        Highlight(
            id="seed-h-2",
            type=HighlightType.ASSIST,
            player_id=provider.user_id,
            player_name=provider.player_name,
            minute=12,
        ),
        Highlight(
            id="seed-h-3",
            type=HighlightType.GOAL,
            player_id=scorer.user_id,
            player_name=scorer.player_name,
            minute=67,
            is_penalty=True,
        ),
    ]
    return games
