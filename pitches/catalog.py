"""Catalog of bookable pitches."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Iterable, List, Optional

from reservations.errors import ValidationError
from reservations.models import Pitch
from tracking import t

_EDITABLE_FIELDS = frozenset({
    "name",
    "location",
    "city",
    "price_per_hour",
    "players_per_side",
    "facilities",
    "description",
})


class PitchCatalog:
    """Admin-managed list of venues backed by the reservation store."""

    def __init__(self, store) -> None:
        t('pitches.catalog.PitchCatalog.__init__')
        self.logger = logging.getLogger('PitchCatalog')
        self.store = store

    def list(self) -> List[Pitch]:
        t('pitches.catalog.PitchCatalog.list')
        return sorted(self.store.list_pitches(), key=lambda pitch: pitch.id)

    def get(self, pitch_id: int) -> Optional[Pitch]:
        t('pitches.catalog.PitchCatalog.get')
        return self.store.get_pitch(pitch_id)

    def require(self, pitch_id: int) -> Pitch:
        t('pitches.catalog.PitchCatalog.require')
        pitch = self.store.get_pitch(pitch_id)
        if pitch is None:
            raise ValidationError("pitch_not_found", "Pitch not found.")
        return pitch

    def find_by_name(self, name: str) -> Optional[Pitch]:
        """Case-insensitive lookup used when reconciling remote payloads."""

        t('pitches.catalog.PitchCatalog.find_by_name')
        wanted = (name or "").strip().casefold()
        if not wanted:
            return None
        for pitch in self.store.list_pitches():
            if pitch.name.casefold() == wanted:
                return pitch
        return None

    def add_pitch(
        self,
        *,
        name: str,
        location: str,
        city: str,
        price_per_hour: float,
        players_per_side: int,
        facilities: Iterable[str] = (),
        description: Optional[str] = None,
    ) -> Pitch:
        t('pitches.catalog.PitchCatalog.add_pitch')
        pitch = Pitch(
            id=self.store.next_pitch_id(),
            name=(name or "").strip(),
            location=(location or "").strip(),
            city=(city or "").strip(),
            price_per_hour=price_per_hour,
            players_per_side=players_per_side,
            facilities=frozenset(facilities),
            description=description,
        )
        self._validate(pitch)
        self.store.add_pitch(pitch)
        self.logger.info("Added pitch %s (%s)", pitch.id, pitch.name)
        return pitch

    def update_pitch(self, pitch_id: int, **changes: Any) -> Pitch:
        t('pitches.catalog.PitchCatalog.update_pitch')
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                "invalid_field", f"Cannot edit pitch fields: {', '.join(sorted(unknown))}"
            )

        current = self.require(pitch_id)
        self._ensure_unreferenced(pitch_id, "edited")
        if "facilities" in changes:
            changes["facilities"] = frozenset(changes["facilities"] or ())
        updated = replace(current, **changes)
        self._validate(updated)
        self.store.replace_pitch(updated)
        self.logger.info("Updated pitch %s: %s", pitch_id, sorted(changes))
        return updated

    def remove_pitch(self, pitch_id: int) -> Pitch:
        """Delete a pitch; games that already finished keep their copied name and location."""

        t('pitches.catalog.PitchCatalog.remove_pitch')
        self.require(pitch_id)
        self._ensure_unreferenced(pitch_id, "deleted")
        removed = self.store.remove_pitch(pitch_id)
        self.logger.info("Removed pitch %s (%s)", pitch_id, removed.name)
        return removed

    def _ensure_unreferenced(self, pitch_id: int, verb: str) -> None:
        blocking = [
            reservation.id
            for reservation in self.store.live_reservations()
            if reservation.pitch_id == pitch_id and reservation.status.is_active
        ]
        if blocking:
            self.logger.warning(
                "Pitch %s cannot be %s; active reservations %s", pitch_id, verb, blocking
            )
            raise ValidationError(
                "pitch_in_use",
                f"Pitch cannot be {verb} while it has open or full reservations.",
            )

    @staticmethod
    def _validate(pitch: Pitch) -> None:
        if not pitch.name:
            raise ValidationError("invalid_pitch", "Pitch name is required.")
        if not pitch.location:
            raise ValidationError("invalid_pitch", "Pitch location is required.")
        if pitch.price_per_hour < 0:
            raise ValidationError("invalid_pitch", "Price cannot be negative.")
        if pitch.players_per_side <= 0:
            raise ValidationError("invalid_pitch", "Players per side must be positive.")
