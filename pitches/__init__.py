"""Pitch catalog."""

from .catalog import PitchCatalog

__all__ = ["PitchCatalog"]
