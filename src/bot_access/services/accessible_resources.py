"""
bot_access.services.accessible_resources

Accessible bot set for a classified principal.

Responsibilities:
- superadmin: every provisioned bot identifier, enumerated on the elevated path.
- admin/member: distinct bots of the principal's active assignments.
- no role: the empty set.

Non-superadmin results never contain a bot without an active assignment for
that principal. Read errors propagate as `DataUnavailable`, never as "no access".
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.auth.guards import grant_superadmin
from bot_access.auth.models import Role, RoleClassification
from bot_access.db.elevated import ElevatedQueryGateway
from bot_access.db.repositories.assignments import AssignmentRepo
from bot_access.db.repositories.bots import BotRepo
from bot_access.errors import DataUnavailable


class AccessibleResourceSet:
    def __init__(self, *, session: AsyncSession, gateway: ElevatedQueryGateway) -> None:
        self._session = session
        self._gateway = gateway

    async def resolve(self, classification: RoleClassification) -> frozenset[str]:
        if classification.unavailable or classification.role is None:
            return frozenset()

        try:
            if classification.role is Role.superadmin:
                grant = grant_superadmin(classification, operation="bots.enumerate")
                async with self._gateway.session(grant) as session:
                    return frozenset(await BotRepo(session).all_share_names())

            rows = await AssignmentRepo(self._session).active_for_user(
                classification.principal_id
            )
        except SQLAlchemyError as e:
            raise DataUnavailable(
                "Could not read accessible bots", principal_id=classification.principal_id
            ) from e

        return frozenset(row.bot_share_name for row in rows if row.bot_share_name)


# --- Module Notes -----------------------------------------------------------
# Every downstream listing must intersect its query with this set.
