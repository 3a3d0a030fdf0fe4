"""Pitch (venue) dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class Pitch:
    """A bookable venue."""

    id: int
    name: str
    location: str
    city: str
    price_per_hour: float
    players_per_side: int
    facilities: FrozenSet[str] = field(default_factory=frozenset)
    description: Optional[str] = None

    @property
    def default_max_players(self) -> int:
        return self.players_per_side * 2
