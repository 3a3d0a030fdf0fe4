"""
Session identity for engine callers.

Authentication itself lives outside the engine; callers hand over who is
acting and in which role, and the orchestrator gates actions on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from tracking import t


class UserRole(Enum):
    """Roles recognised by the action orchestrator"""
    ADMIN = "admin"     # Manages games, pitches and players
    PLAYER = "player"   # Joins games and waiting lists


@dataclass(frozen=True)
class UserSession:
    user_id: str
    role: UserRole
    display_name: str = ""
    auth_token: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @property
    def player_name(self) -> str:
        return self.display_name or self.user_id

    @classmethod
    def from_profile(cls, profile: Mapping[str, Any], auth_token: Optional[str] = None) -> "UserSession":
        """
        Build a session from a backend user profile

        Args:
            profile: Mapping with ``_id``/``id``, ``role`` and name fields
            auth_token: Bearer token issued at login, if any

        Returns:
            UserSession for the profile; unknown roles map to player
        """
        t('users.session.UserSession.from_profile')
        user_id = str(profile.get("_id") or profile.get("id") or "")
        if not user_id:
            raise ValueError("User profile is missing an id")
        try:
            role = UserRole(str(profile.get("role") or "player").lower())
        except ValueError:
            role = UserRole.PLAYER
        name = " ".join(
            part for part in (profile.get("firstName"), profile.get("lastName")) if part
        ).strip()
        return cls(
            user_id=user_id,
            role=role,
            display_name=name or str(profile.get("username") or ""),
            auth_token=auth_token,
        )
