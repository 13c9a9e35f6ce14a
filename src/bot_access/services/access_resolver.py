"""
bot_access.services.access_resolver

Single entry point for per-request access resolution.

Responsibilities:
- Run RoleClassifier then AccessibleResourceSet for one principal.
- Narrow an optional client-selected bot against the resolved set.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.auth.models import Principal, ResolvedAccess
from bot_access.db.elevated import ElevatedQueryGateway
from bot_access.observability.logging import get_logger
from bot_access.services.accessible_resources import AccessibleResourceSet
from bot_access.services.role_classifier import RoleClassifier, SuperadminProcedure

log = get_logger(__name__)


class AccessResolver:
    def __init__(
        self,
        *,
        session: AsyncSession,
        gateway: ElevatedQueryGateway,
        procedure: SuperadminProcedure | None = None,
    ) -> None:
        self._session = session
        self._gateway = gateway
        self._procedure = procedure

    async def resolve(self, principal: Principal) -> ResolvedAccess:
        # No memoization: a role change must apply to the next call.
        classification = await RoleClassifier(
            session=self._session, procedure=self._procedure
        ).classify(principal)
        if classification.unavailable:
            log.warning("access_unavailable", principal_id=principal.id)
            return ResolvedAccess(
                principal_id=principal.id,
                role=None,
                accessible_resource_ids=frozenset(),
                unavailable=True,
            )

        resource_ids = await AccessibleResourceSet(
            session=self._session, gateway=self._gateway
        ).resolve(classification)
        return ResolvedAccess(
            principal_id=principal.id,
            role=classification.role,
            accessible_resource_ids=resource_ids,
            is_superadmin=classification.is_superadmin,
            assignment_roles=dict(classification.assignment_roles),
        )


def scope_resource_filter(access: ResolvedAccess, requested: str | None) -> frozenset[str]:
    """
    Bots a query may touch, given an optional client-selected bot.

    The selection is a UI preference: it can only narrow the resolved set.
    """

    if requested is None or requested == "":
        return access.accessible_resource_ids
    if requested in access.accessible_resource_ids:
        return frozenset({requested})
    log.info(
        "resource_filter_rejected", principal_id=access.principal_id, requested=requested
    )
    return frozenset()
