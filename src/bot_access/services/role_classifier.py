"""
bot_access.services.role_classifier

Role classification for one principal.

Responsibilities:
- Decide superadmin status via the trusted server procedure, falling back to the
  `bot_super_users` table when the procedure is missing or failing.
- Derive admin/member/none from the principal's active assignments.
- Fail closed: a data-access error yields `role=None` with `unavailable=True`.

Role precedence is superadmin > admin > member > none. The dashboard-level role
is the maximum across bots; per-bot roles are kept in `assignment_roles`.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from bot_access.auth.models import ROLE_RANK, Principal, Role, RoleClassification
from bot_access.db.models import AssignmentRole
from bot_access.db.repositories.assignments import AssignmentRepo
from bot_access.db.repositories.superusers import SuperUserRepo
from bot_access.db.session import bind_request_claims
from bot_access.observability.logging import get_logger

log = get_logger(__name__)


class SuperadminProcedure(Protocol):
    async def is_superadmin(self, principal: Principal) -> bool: ...


class SqlSuperadminProcedure:
    """
    Calls the `is_superadmin()` database function on its own connection.

    The function reads the caller from the request claims bound on that
    connection, so no client-supplied filter can influence the answer.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def is_superadmin(self, principal: Principal) -> bool:
        async with self._engine.connect() as conn:
            await bind_request_claims(conn, principal)
            value = (await conn.execute(text("SELECT is_superadmin()"))).scalar_one()
        if not isinstance(value, bool):
            raise TypeError(f"is_superadmin() returned {type(value).__name__}, expected bool")
        return value


class RoleClassifier:
    def __init__(
        self,
        *,
        session: AsyncSession,
        procedure: SuperadminProcedure | None = None,
    ) -> None:
        self._session = session
        self._procedure = procedure

    async def classify(self, principal: Principal) -> RoleClassification:
        superadmin = await self._check_superadmin(principal)
        if superadmin is None:
            return _unavailable(principal)
        if superadmin:
            log.info("role_classified", principal_id=principal.id, role=Role.superadmin.value)
            return RoleClassification(
                principal_id=principal.id, role=Role.superadmin, is_superadmin=True
            )

        try:
            rows = await AssignmentRepo(self._session).active_for_user(principal.id)
            assignment_roles: dict[str, str] = {}
            for row in rows:
                # Enum coercion rejects role strings outside the known set.
                assigned = AssignmentRole(row.role)
                if assignment_roles.get(row.bot_share_name) != AssignmentRole.admin.value:
                    assignment_roles[row.bot_share_name] = assigned.value
        except (SQLAlchemyError, LookupError, ValueError) as e:
            log.error("assignment_lookup_failed", principal_id=principal.id, error=str(e))
            return _unavailable(principal)

        role: Role | None = max(
            (Role(v) for v in assignment_roles.values()), key=ROLE_RANK.__getitem__, default=None
        )

        log.info(
            "role_classified",
            principal_id=principal.id,
            role=role.value if role is not None else None,
            assignments=len(assignment_roles),
        )
        return RoleClassification(
            principal_id=principal.id, role=role, assignment_roles=assignment_roles
        )

    async def _check_superadmin(self, principal: Principal) -> bool | None:
        # Primary path; any failure (missing function, error, unreachable) falls through.
        if self._procedure is not None:
            try:
                result = await self._procedure.is_superadmin(principal)
            except Exception as e:
                log.warning(
                    "superadmin_procedure_failed", principal_id=principal.id, error=str(e)
                )
            else:
                if isinstance(result, bool):
                    return result
                log.warning(
                    "superadmin_procedure_invalid_result",
                    principal_id=principal.id,
                    result_type=type(result).__name__,
                )

        # Fallback path: "no row" is a normal False, only query errors are failures.
        try:
            return await SuperUserRepo(self._session).is_active_superuser(principal.id)
        except SQLAlchemyError as e:
            log.error("superadmin_fallback_failed", principal_id=principal.id, error=str(e))
            return None


def _unavailable(principal: Principal) -> RoleClassification:
    return RoleClassification(principal_id=principal.id, role=None, unavailable=True)


# --- Module Notes -----------------------------------------------------------
# The primary and fallback checks run sequentially; the fallback only runs when
# the primary did not produce a boolean.
