"""
bot_access.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
- Define the dashboard role hierarchy and the per-request `ResolvedAccess` result.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


class Role(enum.StrEnum):
    superadmin = "superadmin"
    admin = "admin"
    member = "member"


# Higher rank wins when a principal holds several roles.
ROLE_RANK: Mapping[Role | None, int] = MappingProxyType(
    {None: 0, Role.member: 1, Role.admin: 2, Role.superadmin: 3}
)


def role_at_least(role: Role | None, required: Role) -> bool:
    return ROLE_RANK[role] >= ROLE_RANK[required]


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity.
    """

    id: str
    email: str

    @property
    def email_canonical(self) -> str:
        return self.email.strip().lower()


@dataclass(frozen=True, slots=True)
class RoleClassification:
    """
    Output of the role classifier for one principal.

    `unavailable` is set when a data-access error prevented classification; the
    role is then always None.
    """

    principal_id: str
    role: Role | None
    is_superadmin: bool = False
    unavailable: bool = False
    # resource id -> per-resource role, active assignments only.
    assignment_roles: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ResolvedAccess:
    principal_id: str
    role: Role | None
    accessible_resource_ids: frozenset[str]
    is_superadmin: bool = False
    unavailable: bool = False
    assignment_roles: Mapping[str, str] = field(default_factory=dict)

    def can_access(self, resource_id: str) -> bool:
        return resource_id in self.accessible_resource_ids

    def role_for(self, resource_id: str) -> str | None:
        if self.is_superadmin:
            return Role.superadmin.value
        return self.assignment_roles.get(resource_id)

    def as_dict(self) -> dict[str, object]:
        return {
            "principal_id": self.principal_id,
            "role": self.role.value if self.role is not None else None,
            "accessible_resource_ids": sorted(self.accessible_resource_ids),
            "is_superadmin": self.is_superadmin,
        }


# --- Module Notes -----------------------------------------------------------
# ResolvedAccess is built per request and never stored; role changes must apply
# on the very next request.
