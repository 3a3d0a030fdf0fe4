"""Domain dataclasses for reservations, lineups and highlights."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ReservationStatus(Enum):
    """Closed set of reservation states."""
    OPEN = "open"                # Seats available
    FULL = "full"                # Joined count reached max_players
    COMPLETED = "completed"      # Game played
    CANCELLED = "cancelled"      # Game called off

    @property
    def is_active(self) -> bool:
        """Open and full games are the only ones players can join or leave."""
        if self is ReservationStatus.OPEN or self is ReservationStatus.FULL:
            return True
        if self is ReservationStatus.COMPLETED or self is ReservationStatus.CANCELLED:
            return False
        raise ValueError(f"Unhandled reservation status: {self!r}")


class LineupStatus(Enum):
    JOINED = "joined"
    LEFT = "left"
    INVITED = "invited"


class HighlightType(Enum):
    GOAL = "goal"
    ASSIST = "assist"
    YELLOW_CARD = "yellowCard"
    RED_CARD = "redCard"
    SAVE = "save"
    OTHER = "other"


@dataclass(frozen=True)
class LineupPlayer:
    """One entry in a reservation's roster."""

    user_id: str
    player_name: str
    status: LineupStatus = LineupStatus.JOINED
    joined_at: Optional[datetime] = None

    @property
    def is_joined(self) -> bool:
        return self.status is LineupStatus.JOINED


@dataclass(frozen=True)
class Highlight:
    """A match event recorded by an admin."""

    id: str
    type: HighlightType
    player_id: str
    player_name: str
    minute: int
    description: Optional[str] = None
    is_penalty: bool = False
    assist_player_id: Optional[str] = None


@dataclass(frozen=True)
class FinalScore:
    home: int
    away: int


@dataclass(frozen=True)
class PlayerGameStats:
    """Per-player line of a game summary."""

    user_id: str
    goals: int = 0
    assists: int = 0
    interceptions: int = 0
    clean_sheet: bool = False
    won: bool = False
    attended: bool = True


@dataclass(frozen=True)
class GameSummary:
    """Post-game report submitted by an admin."""

    text: str
    player_stats: Tuple[PlayerGameStats, ...] = field(default_factory=tuple)
    mvp_player_id: Optional[str] = None
    final_score: Optional[FinalScore] = None

    def to_remote_payload(self) -> Dict[str, Any]:
        """Shape expected by the booking service summary endpoint."""
        return {
            "summary": self.text,
            "playerStats": [
                {
                    "userId": stat.user_id,
                    "goals": stat.goals,
                    "assists": stat.assists,
                    "interceptions": stat.interceptions,
                    "cleanSheet": stat.clean_sheet,
                    "won": stat.won,
                    "attended": stat.attended,
                    "mvp": stat.user_id == self.mvp_player_id,
                }
                for stat in self.player_stats
            ],
        }


@dataclass
class Reservation:
    """A scheduled game on a pitch.

    Instances held by the store are live; everything handed out to callers
    is a deep copy produced by :meth:`snapshot`.
    """

    id: int
    pitch_id: Optional[int]
    pitch_name: str
    date: date
    time: str
    max_players: int
    status: ReservationStatus = ReservationStatus.OPEN
    location: str = ""
    price: float = 0.0
    title: Optional[str] = None
    backend_id: Optional[str] = None
    lineup: List[LineupPlayer] = field(default_factory=list)
    waiting_list: List[str] = field(default_factory=list)
    highlights: List[Highlight] = field(default_factory=list)
    final_score: Optional[FinalScore] = None
    mvp_player_id: Optional[str] = None
    summary: Optional[GameSummary] = None

    @property
    def remote_ref(self) -> str:
        """Identifier the booking service knows this reservation by."""
        return self.backend_id or str(self.id)

    def joined_players(self) -> List[LineupPlayer]:
        return [player for player in self.lineup if player.is_joined]

    def has_joined(self, user_id: str) -> bool:
        return any(player.user_id == user_id for player in self.joined_players())

    def is_queued(self, user_id: str) -> bool:
        return user_id in self.waiting_list

    def snapshot(self) -> "Reservation":
        return copy.deepcopy(self)
