"""Waiting list management."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .manager import WaitlistManager

__all__ = [
    "WaitlistManager",
]


def __getattr__(name: str):
    if name == "WaitlistManager":
        module = import_module("reservations.waitlist.manager")
    else:
        raise AttributeError(name)
    return getattr(module, name)
