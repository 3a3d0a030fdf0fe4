"""Caller identity and roles."""

from .session import UserRole, UserSession

__all__ = ["UserRole", "UserSession"]
