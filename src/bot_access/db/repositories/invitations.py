"""
bot_access.db.repositories.invitations

Repository for `UserInvitation` entities.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy import delete, desc, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.db.models import AssignmentRole, UserInvitation


def canonical_email(value: str) -> str:
    return value.strip().lower()


class InvitationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, invitation_id: uuid.UUID) -> UserInvitation | None:
        return await self._session.get(UserInvitation, invitation_id)

    async def get_by_email(self, email: str) -> UserInvitation | None:
        stmt = select(UserInvitation).where(UserInvitation.email == canonical_email(email))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def create(
        self,
        *,
        email: str,
        first_name: str,
        surname: str,
        role: AssignmentRole,
        bot_share_name: str,
        invited_by: str,
    ) -> UserInvitation:
        row = UserInvitation(
            email=canonical_email(email),
            first_name=first_name,
            surname=surname,
            role=role,
            bot_share_name=bot_share_name,
            invited_by=invited_by,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def delete(self, invitation_id: uuid.UUID) -> bool:
        result = await self._session.execute(
            delete(UserInvitation).where(UserInvitation.id == invitation_id)
        )
        return (result.rowcount or 0) > 0

    async def list_all(self) -> list[UserInvitation]:
        stmt = select(UserInvitation).order_by(desc(UserInvitation.created_at))
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_visible_to(
        self, *, user_id: str, bot_share_names: Iterable[str]
    ) -> list[UserInvitation]:
        # Invitations the user sent, plus those for bots they can access.
        names = list(bot_share_names)
        clauses = [UserInvitation.invited_by == user_id]
        if names:
            clauses.append(UserInvitation.bot_share_name.in_(names))
        stmt = (
            select(UserInvitation)
            .where(or_(*clauses))
            .order_by(desc(UserInvitation.created_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())
