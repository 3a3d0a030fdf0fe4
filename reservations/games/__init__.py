"""Admin game operations."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .manager import GameManager

__all__ = [
    "GameManager",
]


def __getattr__(name: str):
    if name == "GameManager":
        module = import_module("reservations.games.manager")
    else:
        raise AttributeError(name)
    return getattr(module, name)
