from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.db.models import SuperUser


class SuperUserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def is_active_superuser(self, user_id: str) -> bool:
        # No row is a normal outcome (False); query errors propagate to the caller.
        stmt = select(SuperUser.id).where(
            SuperUser.user_id == user_id, SuperUser.is_active.is_(True)
        )
        return (await self._session.execute(stmt)).first() is not None
