"""Admin-side game operations: scheduling, edits, results and highlights."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any, Optional, Tuple, Union

from infrastructure.constants import (
    BUFFER_SLOTS,
    HIGHLIGHT_MAX_MINUTE,
    HIGHLIGHT_MIN_MINUTE,
    RESERVATIONS_KEY,
)
from infrastructure.timeutils import parse_date, parse_time_label
from reservations.errors import ValidationError
from reservations.models import (
    FinalScore,
    GameSummary,
    Highlight,
    HighlightType,
    Pitch,
    Reservation,
    ReservationStatus,
)
from reservations.roster.transitions import apply_status_update, joined_count, recompute_status
from tracking import t

_EDITABLE_FIELDS = frozenset({
    "title",
    "date",
    "time",
    "max_players",
    "price",
    "location",
    "status",
})


class GameManager:
    """Mutations an admin performs on whole reservations."""

    def __init__(self, store, catalog, *, buffer_slots: int = BUFFER_SLOTS) -> None:
        t('reservations.games.manager.GameManager.__init__')
        self.logger = logging.getLogger('GameManager')
        self.store = store
        self.catalog = catalog
        self.buffer_slots = buffer_slots

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def create_reservation(
        self,
        pitch_id: int,
        game_date: Union[date, str],
        time_label: str,
        *,
        max_players: Optional[int] = None,
        price: Optional[float] = None,
        title: Optional[str] = None,
        backend_id: Optional[str] = None,
    ) -> Reservation:
        """Schedule a new open game on an existing pitch."""

        t('reservations.games.manager.GameManager.create_reservation')
        pitch, day, capacity = self.prepare_reservation(pitch_id, game_date, time_label, max_players)

        reservation = Reservation(
            id=0,
            pitch_id=pitch.id,
            pitch_name=pitch.name,
            location=pitch.location,
            date=day,
            time=time_label,
            max_players=capacity,
            price=pitch.price_per_hour if price is None else price,
            title=title,
            backend_id=backend_id,
            status=ReservationStatus.OPEN,
        )
        created = self.store.add_reservation(reservation)
        self.logger.info(
            "Created reservation %s on pitch %s for %s %s (max %s)",
            created.id,
            pitch.name,
            day,
            time_label,
            capacity,
        )
        return created

    def prepare_reservation(
        self,
        pitch_id: int,
        game_date: Union[date, str],
        time_label: str,
        max_players: Optional[int] = None,
    ) -> Tuple[Pitch, date, int]:
        """Validate a scheduling request; returns the pitch, parsed day and capacity."""

        t('reservations.games.manager.GameManager.prepare_reservation')
        pitch = self.catalog.require(pitch_id)
        day = self._parse_day(game_date)
        self._ensure_time_label(time_label)
        capacity = pitch.default_max_players if max_players is None else max_players
        self._ensure_max_players(capacity)

        for existing in self.store.live_reservations():
            if (
                existing.pitch_id == pitch.id
                and existing.date == day
                and existing.time == time_label
                and existing.status.is_active
            ):
                raise ValidationError(
                    "slot_taken",
                    "A reservation for this pitch at this time already exists.",
                )
        return pitch, day, capacity

    def update_reservation(self, reservation_id: int, **changes: Any) -> Reservation:
        """
        Apply an explicit admin edit.

        This is the only path that can move a completed or cancelled game back
        into play. Capacity changes re-derive open/full for active games.
        """

        t('reservations.games.manager.GameManager.update_reservation')
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                "invalid_field",
                f"Cannot edit reservation fields: {', '.join(sorted(unknown))}",
            )

        reservation = self.store.live_reservation(reservation_id)

        # validate everything before touching the live record
        new_date = self._parse_day(changes["date"]) if "date" in changes else reservation.date
        if "time" in changes:
            self._ensure_time_label(changes["time"])
        new_max = changes.get("max_players", reservation.max_players)
        self._ensure_max_players(new_max)
        if joined_count(reservation) > new_max + self.buffer_slots:
            raise ValidationError(
                "capacity_below_roster",
                "Cannot reduce capacity below the number of joined players.",
            )
        new_status = changes.get("status")
        if new_status is not None and not isinstance(new_status, ReservationStatus):
            try:
                new_status = ReservationStatus(new_status)
            except ValueError:
                raise ValidationError("invalid_status", f"Unknown status: {new_status!r}") from None

        reservation.date = new_date
        reservation.max_players = new_max
        for name in ("title", "time", "price", "location"):
            if name in changes:
                setattr(reservation, name, changes[name])

        if new_status is not None:
            apply_status_update(reservation, new_status)
        else:
            recompute_status(reservation)

        self._save(reservation, "Updated reservation %s: %s", sorted(changes))
        return reservation.snapshot()

    def delete_reservation(self, reservation_id: int) -> Reservation:
        t('reservations.games.manager.GameManager.delete_reservation')
        removed = self.store.remove_reservation(reservation_id)
        self.logger.info(
            "Deleted reservation %s (%s players, %s queued)",
            reservation_id,
            joined_count(removed),
            len(removed.waiting_list),
        )
        return removed

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------
    def complete_game(
        self,
        reservation_id: int,
        *,
        final_score: Optional[FinalScore] = None,
        mvp_player_id: Optional[str] = None,
    ) -> Reservation:
        t('reservations.games.manager.GameManager.complete_game')
        reservation = self.store.live_reservation(reservation_id)
        self.ensure_completable(reservation)

        apply_status_update(reservation, ReservationStatus.COMPLETED)
        if final_score is not None:
            reservation.final_score = final_score
        if mvp_player_id:
            reservation.mvp_player_id = mvp_player_id
        self._save(reservation, "Completed reservation %s")
        return reservation.snapshot()

    def cancel_game(self, reservation_id: int) -> Reservation:
        t('reservations.games.manager.GameManager.cancel_game')
        reservation = self.store.live_reservation(reservation_id)
        if reservation.status is ReservationStatus.COMPLETED:
            raise ValidationError("game_completed", "A completed game cannot be cancelled.")

        apply_status_update(reservation, ReservationStatus.CANCELLED)
        self._save(reservation, "Cancelled reservation %s")
        return reservation.snapshot()

    def record_summary(self, reservation_id: int, summary: GameSummary) -> Reservation:
        """Store the post-game report and mark the game completed."""

        t('reservations.games.manager.GameManager.record_summary')
        reservation = self.store.live_reservation(reservation_id)
        self.ensure_summary_allowed(reservation)

        reservation.summary = summary
        if summary.mvp_player_id:
            reservation.mvp_player_id = summary.mvp_player_id
        if summary.final_score is not None:
            reservation.final_score = summary.final_score
        apply_status_update(reservation, ReservationStatus.COMPLETED)
        self._save(reservation, "Recorded summary for reservation %s")
        return reservation.snapshot()

    @staticmethod
    def ensure_completable(reservation: Reservation) -> None:
        t('reservations.games.manager.GameManager.ensure_completable')
        if reservation.status is ReservationStatus.CANCELLED:
            raise ValidationError("game_cancelled", "A cancelled game cannot be completed.")

    @staticmethod
    def ensure_summary_allowed(reservation: Reservation) -> None:
        t('reservations.games.manager.GameManager.ensure_summary_allowed')
        if reservation.status is ReservationStatus.CANCELLED:
            raise ValidationError(
                "game_cancelled", "Summaries cannot be added to cancelled games."
            )

    # ------------------------------------------------------------------
    # Highlights
    # ------------------------------------------------------------------
    def add_highlight(
        self,
        reservation_id: int,
        *,
        highlight_type: Union[HighlightType, str],
        player_id: str,
        minute: int,
        player_name: Optional[str] = None,
        description: Optional[str] = None,
        is_penalty: bool = False,
        assist_player_id: Optional[str] = None,
    ) -> Highlight:
        t('reservations.games.manager.GameManager.add_highlight')
        reservation = self.store.live_reservation(reservation_id)

        if not isinstance(highlight_type, HighlightType):
            try:
                highlight_type = HighlightType(highlight_type)
            except ValueError:
                raise ValidationError(
                    "invalid_highlight", f"Unknown highlight type: {highlight_type!r}"
                ) from None
        if not player_id:
            raise ValidationError("invalid_highlight", "A player must be selected.")
        if not isinstance(minute, int) or not HIGHLIGHT_MIN_MINUTE <= minute <= HIGHLIGHT_MAX_MINUTE:
            raise ValidationError(
                "invalid_highlight",
                f"Minute must be between {HIGHLIGHT_MIN_MINUTE} and {HIGHLIGHT_MAX_MINUTE}.",
            )

        if player_name is None:
            player_name = next(
                (p.player_name for p in reservation.lineup if p.user_id == player_id),
                player_id,
            )

        highlight = Highlight(
            id=uuid.uuid4().hex,
            type=highlight_type,
            player_id=player_id,
            player_name=player_name,
            minute=minute,
            description=description,
            is_penalty=is_penalty,
            assist_player_id=assist_player_id,
        )
        reservation.highlights.append(highlight)
        self._save(reservation, "Added highlight to reservation %s: %s", highlight.type.value)
        return highlight

    def delete_highlight(self, reservation_id: int, highlight_id: str) -> bool:
        t('reservations.games.manager.GameManager.delete_highlight')
        reservation = self.store.live_reservation(reservation_id)
        remaining = [h for h in reservation.highlights if h.id != highlight_id]
        if len(remaining) == len(reservation.highlights):
            return False
        reservation.highlights = remaining
        self._save(reservation, "Deleted highlight from reservation %s: %s", highlight_id)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _save(self, reservation: Reservation, message: str, *details: Any) -> None:
        self.store.persist(RESERVATIONS_KEY)
        self.logger.info(message, reservation.id, *details)

    @staticmethod
    def _parse_day(value: Union[date, str]) -> date:
        try:
            return parse_date(value)
        except ValueError as exc:
            raise ValidationError("invalid_date", str(exc)) from exc

    @staticmethod
    def _ensure_time_label(label: str) -> None:
        try:
            parse_time_label(label)
        except ValueError as exc:
            raise ValidationError("invalid_time", str(exc)) from exc

    @staticmethod
    def _ensure_max_players(value: Any) -> None:
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ValidationError("invalid_capacity", "Max players must be a positive number.")
