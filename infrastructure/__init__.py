"""Infrastructure helpers."""

from .settings import AppSettings, get_settings, load_settings
from .constants import *  # noqa: F401,F403

__all__ = ["get_settings", "load_settings", "AppSettings"]
