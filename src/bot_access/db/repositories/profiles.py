from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.db.models import UserProfile


class ProfileRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str) -> UserProfile | None:
        return await self._session.get(UserProfile, user_id)

    async def list_all(self) -> list[UserProfile]:
        stmt = select(UserProfile)
        return list((await self._session.execute(stmt)).scalars().all())

    async def upsert(self, *, user_id: str, first_name: str, surname: str) -> UserProfile:
        existing = await self._session.get(UserProfile, user_id)
        if existing is not None:
            existing.first_name = first_name
            existing.surname = surname
            await self._session.flush()
            return existing

        profile = UserProfile(id=user_id, first_name=first_name, surname=surname)
        self._session.add(profile)
        await self._session.flush()
        return profile
