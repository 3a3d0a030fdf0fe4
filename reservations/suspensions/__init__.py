"""Suspension enforcement."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .manager import SuspensionManager

__all__ = [
    "SuspensionManager",
]


def __getattr__(name: str):
    if name == "SuspensionManager":
        module = import_module("reservations.suspensions.manager")
    else:
        raise AttributeError(name)
    return getattr(module, name)
