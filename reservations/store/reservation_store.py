"""
Reservation Store

Single source of truth for reservations, pitches and suspensions. Holds the
collections in memory, persists JSON snapshots through a key-value
repository and reloads them at startup. Durability is best-effort: a failed
write is recorded as a :class:`PersistenceWarning` and the in-memory state
stays authoritative for the session.
"""

from __future__ import annotations

import copy
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from infrastructure.constants import (
    BUFFER_SLOTS,
    MAX_WAITING_LIST,
    PITCHES_KEY,
    RESERVATIONS_KEY,
    SNAPSHOT_KEYS,
    SUSPENSIONS_KEY,
)
from infrastructure.timeutils import local_now
from reservations.errors import PersistenceWarning, ReservationNotFound, ValidationError
from reservations.models import Pitch, Reservation, Suspension
from reservations.roster.transitions import normalise_roster
from reservations.store.record_codec import DEFAULT_CODEC, RecordCodec
from reservations.store.seed import seed_pitches, seed_reservations
from tracking import t

_MODEL_TYPES = {
    PITCHES_KEY: Pitch,
    RESERVATIONS_KEY: Reservation,
    SUSPENSIONS_KEY: Suspension,
}


class ReservationStore:
    """
    Owns every engine entity and its durable snapshot.

    Attributes:
        repository: Key-value snapshot repository (``load``/``save`` by key)
        persistence_warnings: Write failures recorded during this session
        logger (logging.Logger): Logger instance for this class
    """

    def __init__(
        self,
        repository: Any,
        *,
        codec: Optional[RecordCodec] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_waiting_list: int = MAX_WAITING_LIST,
        buffer_slots: int = BUFFER_SLOTS,
    ) -> None:
        t('reservations.store.reservation_store.ReservationStore.__init__')
        self.logger = logging.getLogger('ReservationStore')
        self.repository = repository
        self._codec = codec or DEFAULT_CODEC
        self._clock = clock or (lambda: local_now(self._codec.timezone))
        self.max_waiting_list = max_waiting_list
        self.buffer_slots = buffer_slots
        self._reservations: Dict[int, Reservation] = {}
        self._pitches: Dict[int, Pitch] = {}
        self._suspensions: Dict[str, Suspension] = {}
        self.persistence_warnings: List[PersistenceWarning] = []
        self.loaded = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Read persisted snapshots, seeding any kind that is missing or corrupt."""

        t('reservations.store.reservation_store.ReservationStore.load')
        self._pitches = {pitch.id: pitch for pitch in self._load_kind(PITCHES_KEY)}
        self._reservations = {
            reservation.id: reservation for reservation in self._load_kind(RESERVATIONS_KEY)
        }
        self._suspensions = {
            suspension.user_id: suspension for suspension in self._load_kind(SUSPENSIONS_KEY)
        }

        repaired = self._normalise_loaded_reservations()
        if repaired:
            self.logger.warning(
                "Normalised %s loaded reservations with inconsistent rosters",
                repaired,
            )
            self.persist(RESERVATIONS_KEY)

        expired = self.purge_expired_suspensions(self._clock())
        if expired:
            self.logger.info("Dropped %s expired suspensions on load", expired)

        self.loaded = True
        self.logger.info(f"""RESERVATION STORE LOADED
        Pitches: {len(self._pitches)}
        Reservations: {len(self._reservations)}
        Active suspensions: {len(self._suspensions)}
        Status breakdown: {self.status_counts()}
        """)

    def flush(self) -> bool:
        """Persist every collection; returns False if any write failed."""

        t('reservations.store.reservation_store.ReservationStore.flush')
        results = [self.persist(kind) for kind in SNAPSHOT_KEYS]
        return all(results)

    def persist(self, kind: str) -> bool:
        """Write one collection back to durable storage."""

        t('reservations.store.reservation_store.ReservationStore.persist')
        payload = self._serialise(kind)
        try:
            self.repository.save(kind, payload)
        except (OSError, TypeError, ValueError) as exc:
            warning = PersistenceWarning(kind, str(exc))
            self.persistence_warnings.append(warning)
            self.logger.warning("%s", warning)
            return False
        return True

    def replace_all(self, kind: str, items: Iterable[Any]) -> None:
        """Atomically swap a whole collection, then persist it."""

        t('reservations.store.reservation_store.ReservationStore.replace_all')
        model_type = _MODEL_TYPES.get(kind)
        if model_type is None:
            raise ValueError(f"Unknown snapshot kind: {kind!r}")

        staged = [copy.deepcopy(item) for item in items]
        for item in staged:
            if not isinstance(item, model_type):
                raise TypeError(
                    f"replace_all({kind!r}) expected {model_type.__name__}, received {type(item).__name__}"
                )

        if kind == PITCHES_KEY:
            self._pitches = {pitch.id: pitch for pitch in staged}
        elif kind == RESERVATIONS_KEY:
            self._reservations = {reservation.id: reservation for reservation in staged}
        else:
            self._suspensions = {suspension.user_id: suspension for suspension in staged}

        self.logger.info("Replaced %s collection with %s items", kind, len(staged))
        self.persist(kind)

    # ------------------------------------------------------------------
    # Reservations
    # ------------------------------------------------------------------
    def list_reservations(self) -> List[Reservation]:
        t('reservations.store.reservation_store.ReservationStore.list_reservations')
        return [reservation.snapshot() for reservation in self._reservations.values()]

    def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        t('reservations.store.reservation_store.ReservationStore.get_reservation')
        reservation = self._reservations.get(reservation_id)
        return reservation.snapshot() if reservation else None

    def find_by_remote_ref(self, remote_ref: str) -> Optional[Reservation]:
        """Match a booking-service id against backend ids and bare local ids."""

        t('reservations.store.reservation_store.ReservationStore.find_by_remote_ref')
        for reservation in self._reservations.values():
            if reservation.remote_ref == remote_ref:
                return reservation.snapshot()
        return None

    def live_reservation(self, reservation_id: int) -> Reservation:
        """Mutable record for engine managers; never hand this to callers."""

        t('reservations.store.reservation_store.ReservationStore.live_reservation')
        reservation = self._reservations.get(reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation

    def live_reservations(self) -> List[Reservation]:
        t('reservations.store.reservation_store.ReservationStore.live_reservations')
        return list(self._reservations.values())

    def next_reservation_id(self) -> int:
        return max(self._reservations, default=0) + 1

    def add_reservation(self, reservation: Reservation) -> Reservation:
        """Insert a reservation, assigning a fresh id when missing or taken."""

        t('reservations.store.reservation_store.ReservationStore.add_reservation')
        record = copy.deepcopy(reservation)
        if record.id <= 0 or record.id in self._reservations:
            record.id = self.next_reservation_id()
        self._reservations[record.id] = record
        self.persist(RESERVATIONS_KEY)
        self.logger.info(
            "Added reservation %s (%s on %s at %s)",
            record.id,
            record.pitch_name,
            record.date,
            record.time,
        )
        return record.snapshot()

    def remove_reservation(self, reservation_id: int) -> Reservation:
        t('reservations.store.reservation_store.ReservationStore.remove_reservation')
        if reservation_id not in self._reservations:
            raise ReservationNotFound(reservation_id)
        removed = self._reservations.pop(reservation_id)
        self.persist(RESERVATIONS_KEY)
        self.logger.info("Removed reservation %s", reservation_id)
        return removed

    # ------------------------------------------------------------------
    # Pitches
    # ------------------------------------------------------------------
    def list_pitches(self) -> List[Pitch]:
        t('reservations.store.reservation_store.ReservationStore.list_pitches')
        return list(self._pitches.values())

    def get_pitch(self, pitch_id: int) -> Optional[Pitch]:
        t('reservations.store.reservation_store.ReservationStore.get_pitch')
        return self._pitches.get(pitch_id)

    def add_pitch(self, pitch: Pitch) -> Pitch:
        t('reservations.store.reservation_store.ReservationStore.add_pitch')
        if pitch.id in self._pitches:
            raise ValidationError("duplicate_pitch", f"Pitch {pitch.id} already exists.")
        self._pitches[pitch.id] = pitch
        self.persist(PITCHES_KEY)
        return pitch

    def replace_pitch(self, pitch: Pitch) -> Pitch:
        t('reservations.store.reservation_store.ReservationStore.replace_pitch')
        if pitch.id not in self._pitches:
            raise ValidationError("pitch_not_found", "Pitch not found.")
        self._pitches[pitch.id] = pitch
        self.persist(PITCHES_KEY)
        return pitch

    def remove_pitch(self, pitch_id: int) -> Pitch:
        t('reservations.store.reservation_store.ReservationStore.remove_pitch')
        if pitch_id not in self._pitches:
            raise ValidationError("pitch_not_found", "Pitch not found.")
        removed = self._pitches.pop(pitch_id)
        self.persist(PITCHES_KEY)
        return removed

    def next_pitch_id(self) -> int:
        return max(self._pitches, default=0) + 1

    # ------------------------------------------------------------------
    # Suspensions
    # ------------------------------------------------------------------
    def get_suspension(self, user_id: str) -> Optional[Suspension]:
        t('reservations.store.reservation_store.ReservationStore.get_suspension')
        return self._suspensions.get(user_id)

    def list_suspensions(self) -> List[Suspension]:
        t('reservations.store.reservation_store.ReservationStore.list_suspensions')
        return list(self._suspensions.values())

    def set_suspension(self, suspension: Suspension) -> Optional[Suspension]:
        """Store a suspension, replacing any prior one for the same user."""

        t('reservations.store.reservation_store.ReservationStore.set_suspension')
        previous = self._suspensions.get(suspension.user_id)
        self._suspensions[suspension.user_id] = suspension
        self.persist(SUSPENSIONS_KEY)
        return previous

    def drop_suspension(self, user_id: str) -> bool:
        t('reservations.store.reservation_store.ReservationStore.drop_suspension')
        if self._suspensions.pop(user_id, None) is None:
            return False
        self.persist(SUSPENSIONS_KEY)
        return True

    def purge_expired_suspensions(self, now: datetime) -> int:
        """Remove suspensions whose ``until`` has passed; persists when any were dropped."""

        t('reservations.store.reservation_store.ReservationStore.purge_expired_suspensions')
        expired = [
            user_id for user_id, suspension in self._suspensions.items()
            if not suspension.is_active(now)
        ]
        for user_id in expired:
            del self._suspensions[user_id]
        if expired:
            self.persist(SUSPENSIONS_KEY)
        return len(expired)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def status_counts(self) -> Dict[str, int]:
        return dict(Counter(r.status.value for r in self._reservations.values()))

    def _load_kind(self, kind: str) -> List[Any]:
        raw = self.repository.load(kind)
        if raw is None:
            self.logger.info("No %s snapshot found; seeding initial dataset", kind)
            return self._seed_and_persist(kind)

        if not isinstance(raw, list):
            self.logger.warning(
                "Invalid %s snapshot format; expected list, received %s",
                kind,
                type(raw).__name__,
            )
            return self._seed_and_persist(kind)

        try:
            items = [self._decode(kind, item) for item in raw]
        except (KeyError, TypeError, ValueError) as exc:
            self.logger.error("Corrupt %s snapshot ignored: %s", kind, exc)
            return self._seed_and_persist(kind)

        self.logger.debug("Loaded %s %s from snapshot", len(items), kind)
        return items

    def _seed_and_persist(self, kind: str) -> List[Any]:
        if kind == PITCHES_KEY:
            items: List[Any] = seed_pitches()
            self._pitches = {pitch.id: pitch for pitch in items}
        elif kind == RESERVATIONS_KEY:
            items = seed_reservations(self._clock().date())
            self._reservations = {reservation.id: reservation for reservation in items}
        else:
            items = []
            self._suspensions = {}
        self.persist(kind)
        return items

    def _decode(self, kind: str, payload: Any) -> Any:
        if kind == PITCHES_KEY:
            return self._codec.pitch_from_storage(payload)
        if kind == RESERVATIONS_KEY:
            return self._codec.reservation_from_storage(payload)
        return self._codec.suspension_from_storage(payload)

    def _serialise(self, kind: str) -> List[Dict[str, Any]]:
        if kind == PITCHES_KEY:
            return [self._codec.pitch_to_storage(p) for p in self._pitches.values()]
        if kind == RESERVATIONS_KEY:
            return [self._codec.reservation_to_storage(r) for r in self._reservations.values()]
        if kind == SUSPENSIONS_KEY:
            return [self._codec.suspension_to_storage(s) for s in self._suspensions.values()]
        raise ValueError(f"Unknown snapshot kind: {kind!r}")

    def _normalise_loaded_reservations(self) -> int:
        """Repair rosters loaded from disk. Returns how many reservations changed."""

        repaired = 0
        for reservation in self._reservations.values():
            if normalise_roster(
                reservation,
                max_waiting_list=self.max_waiting_list,
                buffer_slots=self.buffer_slots,
                logger=self.logger,
            ):
                repaired += 1
        return repaired
