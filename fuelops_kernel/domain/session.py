"""
User session domain types (``fuelops_kernel.domain.session``).

Responsibility
--------------
The authenticated user as the core sees it: identity, role, home station
and bearer token.  Passed explicitly to services and lifecycle guards;
there is no ambient "current user".

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Backend role names."""

    SUPER_ADMIN = "ROLE_SUPER_ADMIN"
    ADMIN = "ROLE_ADMIN"
    STATION_MANAGER = "ROLE_STATION_MANAGER"

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]


_ROLE_LABELS: dict[Role, str] = {
    Role.SUPER_ADMIN: "Super Admin",
    Role.ADMIN: "Admin",
    Role.STATION_MANAGER: "Station Manager",
}


@dataclass(frozen=True)
class UserSession:
    """Authenticated user.  Immutable."""

    user_id: str
    name: str
    role: Role
    station_id: str | None = None
    station_name: str | None = None
    token: str | None = None

    @property
    def can_edit(self) -> bool:
        return self.role is Role.STATION_MANAGER

    @property
    def can_validate(self) -> bool:
        return self.role in (Role.ADMIN, Role.SUPER_ADMIN)

    @property
    def can_approve(self) -> bool:
        return self.role is Role.SUPER_ADMIN

    @property
    def is_station_scoped(self) -> bool:
        """Station managers only ever see their own station."""
        return self.role is Role.STATION_MANAGER

    def to_profile(self) -> dict[str, Any]:
        """Minimal profile persisted alongside the token (no token inside)."""
        return {
            "id": self.user_id,
            "name": self.name,
            "role": self.role.value,
            "stationId": self.station_id,
            "stationName": self.station_name,
        }

    @classmethod
    def from_profile(
        cls, profile: dict[str, Any], token: str | None = None
    ) -> "UserSession":
        return cls(
            user_id=str(profile["id"]),
            name=str(profile.get("name") or profile.get("username") or ""),
            role=Role(profile["role"]),
            station_id=profile.get("stationId"),
            station_name=profile.get("stationName"),
            token=token,
        )
