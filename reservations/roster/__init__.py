"""Roster (lineup) domain services."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .manager import RosterManager

__all__ = [
    "RosterManager",
]


def __getattr__(name: str):
    if name == "RosterManager":
        module = import_module("reservations.roster.manager")
    else:
        raise AttributeError(name)
    return getattr(module, name)
