"""PitchBook reservation engine."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .bootstrap import EngineComponents, build_engine

__all__ = [
    "EngineComponents",
    "build_engine",
]


def __getattr__(name: str):
    if name in {"EngineComponents", "build_engine"}:
        module = import_module("reservations.bootstrap")
    else:
        raise AttributeError(name)
    return getattr(module, name)
