"""
bot_access.db.repositories.assignments

Repository for `BotUser` (assignment) entities.

Responsibilities:
- Read a principal's active assignments (always keyed on `user_id`).
- Create, patch and hard-delete single assignment rows.
"""

from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.db.models import AssignmentRole, BotUser


class AssignmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def active_for_user(self, user_id: str) -> list[BotUser]:
        stmt = (
            select(BotUser)
            .where(BotUser.user_id == user_id, BotUser.is_active.is_(True))
            # Role and active flag may have changed through the elevated session.
            .execution_options(populate_existing=True)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def get_for_pair(self, *, user_id: str, bot_share_name: str) -> BotUser | None:
        stmt = select(BotUser).where(
            BotUser.user_id == user_id, BotUser.bot_share_name == bot_share_name
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_all(self) -> list[BotUser]:
        stmt = select(BotUser).order_by(BotUser.user_id, BotUser.bot_share_name)
        return list((await self._session.execute(stmt)).scalars().all())

    async def create(
        self,
        *,
        user_id: str,
        bot_share_name: str,
        role: AssignmentRole,
        is_active: bool = True,
    ) -> BotUser:
        row = BotUser(
            user_id=user_id,
            bot_share_name=bot_share_name,
            role=role,
            is_active=is_active,
        )
        self._session.add(row)
        # Flush so the unique constraint fires here rather than at commit.
        await self._session.flush()
        return row

    async def patch(
        self,
        assignment_id: uuid.UUID,
        *,
        role: AssignmentRole | None = None,
        is_active: bool | None = None,
    ) -> BotUser | None:
        row = await self._session.get(BotUser, assignment_id, with_for_update=True)
        if row is None:
            return None
        if role is not None:
            row.role = role
        if is_active is not None:
            row.is_active = is_active
        await self._session.flush()
        return row

    async def delete(self, assignment_id: uuid.UUID) -> bool:
        result = await self._session.execute(delete(BotUser).where(BotUser.id == assignment_id))
        return (result.rowcount or 0) > 0


# --- Module Notes -----------------------------------------------------------
# Deletes are hard deletes: a later create for the same pair is allowed.
