"""Reservation store and snapshot persistence."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .record_codec import RecordCodec
    from .reservation_store import ReservationStore
    from .snapshot_repository import JsonSnapshotRepository

__all__ = [
    "JsonSnapshotRepository",
    "RecordCodec",
    "ReservationStore",
]


def __getattr__(name: str):
    if name == "ReservationStore":
        module = import_module("reservations.store.reservation_store")
    elif name == "RecordCodec":
        module = import_module("reservations.store.record_codec")
    elif name == "JsonSnapshotRepository":
        module = import_module("reservations.store.snapshot_repository")
    else:
        raise AttributeError(name)
    return getattr(module, name)
