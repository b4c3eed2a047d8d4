#!/usr/bin/env python3
"""
Roles and the authenticated identity.

Role is fixed at registration. Access to individual resources is decided by
ownership and membership in ``rbac.policies``.
"""

from dataclasses import dataclass
from enum import Enum

from rbac.errors import InvalidInput


class Role(str, Enum):
    PROJECT_MANAGER = "project-manager"
    EVENT_ORGANIZER = "event-organizer"
    TEAM_MEMBER = "team-member"

    @classmethod
    def parse(cls, value) -> "Role":
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(r.value for r in cls)
            raise InvalidInput(
                "Invalid role",
                errors=[{"field": "role", "message": f"Role must be one of: {allowed}"}],
            )


@dataclass(frozen=True)
class Identity:
    """Authenticated user attached to a request."""
    id: str  # canonical string form
    email: str
    role: Role
    name: str = ""
