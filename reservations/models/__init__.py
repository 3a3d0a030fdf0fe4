"""Domain model definitions for the reservation engine."""

from .pitch import Pitch
from .reservation import (
    FinalScore,
    GameSummary,
    Highlight,
    HighlightType,
    LineupPlayer,
    LineupStatus,
    PlayerGameStats,
    Reservation,
    ReservationStatus,
)
from .suspension import Suspension

__all__ = [
    "FinalScore",
    "GameSummary",
    "Highlight",
    "HighlightType",
    "LineupPlayer",
    "LineupStatus",
    "Pitch",
    "PlayerGameStats",
    "Reservation",
    "ReservationStatus",
    "Suspension",
]
