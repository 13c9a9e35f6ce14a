"""
bot_access.services.assignment_service

Assignment lifecycle (superadmin-only administration of bot roles).

Responsibilities:
- List, create, update and hard-delete `bot_users` rows.
- Re-resolve the caller's role immediately before every operation.
- Report duplicates as `Conflict`, with the unique constraint as the final word.

State per (user, bot): absent -> active -> {active, inactive} -> absent.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from bot_access.auth.guards import ElevationGrant, grant_superadmin
from bot_access.auth.models import Principal
from bot_access.db.elevated import ElevatedQueryGateway
from bot_access.db.models import AssignmentRole, BotUser
from bot_access.db.repositories.assignments import AssignmentRepo
from bot_access.db.repositories.bots import BotRepo
from bot_access.errors import Conflict, DataUnavailable, NotFound
from bot_access.observability.logging import get_logger
from bot_access.services.access_resolver import AccessResolver

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AssignmentRecord:
    id: uuid.UUID
    user_id: str
    bot_share_name: str
    role: AssignmentRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: BotUser) -> AssignmentRecord:
        return cls(
            id=row.id,
            user_id=row.user_id,
            bot_share_name=row.bot_share_name,
            role=AssignmentRole(row.role),
            is_active=row.is_active,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class AssignmentService:
    def __init__(self, *, resolver: AccessResolver, gateway: ElevatedQueryGateway) -> None:
        self._resolver = resolver
        self._gateway = gateway

    async def _authorize(self, principal: Principal, operation: str) -> ElevationGrant:
        # Fresh resolution per call: a demoted superadmin loses access immediately.
        access = await self._resolver.resolve(principal)
        return grant_superadmin(access, operation=operation)

    async def list_all(self, principal: Principal) -> list[AssignmentRecord]:
        grant = await self._authorize(principal, "assignments.list")
        async with self._gateway.session(grant) as session:
            rows = await AssignmentRepo(session).list_all()
            return [AssignmentRecord.from_row(r) for r in rows]

    async def create(
        self,
        principal: Principal,
        *,
        user_id: str,
        bot_share_name: str,
        role: AssignmentRole,
        is_active: bool = True,
    ) -> AssignmentRecord:
        grant = await self._authorize(principal, "assignments.create")
        async with self._gateway.session(grant) as session:
            repo = AssignmentRepo(session)
            existing = await repo.get_for_pair(user_id=user_id, bot_share_name=bot_share_name)
            if existing is not None:
                raise _duplicate(user_id, bot_share_name, existing_id=existing.id)
            if not await BotRepo(session).exists(bot_share_name):
                raise NotFound("Bot not found", bot_share_name=bot_share_name)

            try:
                row = await repo.create(
                    user_id=user_id,
                    bot_share_name=bot_share_name,
                    role=role,
                    is_active=is_active,
                )
                await session.commit()
            except IntegrityError as e:
                # A concurrent create won the race; the constraint is authoritative.
                await session.rollback()
                raise _duplicate(user_id, bot_share_name) from e

            log.info(
                "assignment_created",
                actor=principal.id,
                assignment_id=str(row.id),
                user_id=user_id,
                bot_share_name=bot_share_name,
                role=role.value,
            )
            return AssignmentRecord.from_row(row)

    async def update(
        self,
        principal: Principal,
        assignment_id: uuid.UUID,
        *,
        role: AssignmentRole | None = None,
        is_active: bool | None = None,
    ) -> AssignmentRecord:
        grant = await self._authorize(principal, "assignments.update")
        async with self._gateway.session(grant) as session:
            try:
                row = await AssignmentRepo(session).patch(
                    assignment_id, role=role, is_active=is_active
                )
                if row is None:
                    raise NotFound("Assignment not found", assignment_id=str(assignment_id))
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DataUnavailable(
                    "Could not update assignment", assignment_id=str(assignment_id)
                ) from e

            log.info(
                "assignment_updated",
                actor=principal.id,
                assignment_id=str(assignment_id),
                role=role.value if role is not None else None,
                is_active=is_active,
            )
            return AssignmentRecord.from_row(row)

    async def delete(self, principal: Principal, assignment_id: uuid.UUID) -> None:
        grant = await self._authorize(principal, "assignments.delete")
        async with self._gateway.session(grant) as session:
            deleted = await AssignmentRepo(session).delete(assignment_id)
            if not deleted:
                raise NotFound("Assignment not found", assignment_id=str(assignment_id))
            await session.commit()
        log.info("assignment_deleted", actor=principal.id, assignment_id=str(assignment_id))


def _duplicate(
    user_id: str, bot_share_name: str, *, existing_id: uuid.UUID | None = None
) -> Conflict:
    log.info("assignment_conflict", user_id=user_id, bot_share_name=bot_share_name)
    details: dict[str, str] = {"user_id": user_id, "bot_share_name": bot_share_name}
    if existing_id is not None:
        details["assignment_id"] = str(existing_id)
    return Conflict("Assignment already exists for this user and bot", **details)


# --- Module Notes -----------------------------------------------------------
# The existence pre-check only produces a friendlier error; concurrent duplicate
# creates are rejected by `uq_bot_users_user_bot`.
