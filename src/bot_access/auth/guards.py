"""
bot_access.auth.guards

Authorization checks that mint elevation grants.

Responsibilities:
- Turn a freshly resolved access result into an `ElevationGrant` or refuse.
- Keep the decision "may this request use the trusted credential" in one place.

A grant is the only accepted argument of `db.elevated.ElevatedQueryGateway.session`.
Grants are minted per call site, right before the elevated query, from access
that was resolved for the current request.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from bot_access.auth.models import (
    Principal,
    ResolvedAccess,
    Role,
    RoleClassification,
    role_at_least,
)
from bot_access.errors import ClassificationUnavailable, Forbidden, NotAuthenticated
from bot_access.observability.logging import get_logger

log = get_logger(__name__)

_MINT = object()


class ElevationBasis(enum.StrEnum):
    superadmin = "superadmin"
    resource_admin = "resource_admin"
    invitee = "invitee"
    inviter = "inviter"


@dataclass(frozen=True, slots=True)
class ElevationGrant:
    principal_id: str
    operation: str
    basis: ElevationBasis
    resource_id: str | None = None
    _key: object = field(default=None, repr=False, compare=False)

    @property
    def is_minted(self) -> bool:
        return self._key is _MINT


def _check_available(access: ResolvedAccess | RoleClassification) -> None:
    if access.unavailable:
        raise ClassificationUnavailable(
            "Role classification unavailable", principal_id=access.principal_id
        )


def grant_superadmin(
    access: ResolvedAccess | RoleClassification, *, operation: str
) -> ElevationGrant:
    _check_available(access)
    if not role_at_least(access.role, Role.superadmin):
        log.info(
            "elevation_denied",
            principal_id=access.principal_id,
            operation=operation,
            role=access.role,
        )
        raise Forbidden("Superadmin role required", operation=operation)
    return ElevationGrant(
        principal_id=access.principal_id,
        operation=operation,
        basis=ElevationBasis.superadmin,
        _key=_MINT,
    )


def grant_resource_admin(
    access: ResolvedAccess,
    *,
    resource_id: str,
    operation: str,
    owner_id: str | None = None,
) -> ElevationGrant:
    # Superadmins pass for any resource; otherwise the per-resource role decides.
    # `owner_id` names the principal that created the target row, if any.
    _check_available(access)
    if access.is_superadmin:
        return ElevationGrant(
            principal_id=access.principal_id,
            operation=operation,
            basis=ElevationBasis.superadmin,
            resource_id=resource_id,
            _key=_MINT,
        )
    # Owning the row only counts while the owner can still reach the resource.
    if (
        owner_id is not None
        and owner_id == access.principal_id
        and access.can_access(resource_id)
    ):
        return ElevationGrant(
            principal_id=access.principal_id,
            operation=operation,
            basis=ElevationBasis.inviter,
            resource_id=resource_id,
            _key=_MINT,
        )
    if not access.can_access(resource_id) or access.role_for(resource_id) != Role.admin.value:
        log.info(
            "elevation_denied",
            principal_id=access.principal_id,
            operation=operation,
            resource_id=resource_id,
        )
        raise Forbidden(
            "Admin role on this bot required", operation=operation, resource_id=resource_id
        )
    return ElevationGrant(
        principal_id=access.principal_id,
        operation=operation,
        basis=ElevationBasis.resource_admin,
        resource_id=resource_id,
        _key=_MINT,
    )


def grant_invitee(principal: Principal, *, operation: str) -> ElevationGrant:
    # The elevated queries behind this grant are restricted to rows keyed by
    # the principal's own verified email.
    if not principal.email_canonical:
        raise NotAuthenticated("Token carries no email claim")
    return ElevationGrant(
        principal_id=principal.id,
        operation=operation,
        basis=ElevationBasis.invitee,
        _key=_MINT,
    )


# --- Module Notes -----------------------------------------------------------
# Grants are never serialized or stored; holding one across requests would
# defeat the point of re-resolving roles per request.
