"""
bot_access.db.repositories.bots

Repository for `Bot` entities.

Responsibilities:
- Enumerate provisioned bot identifiers (superadmin resolution).
- Fetch bot details for an already-authorized identifier set.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.db.models import Bot


class BotRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def all_share_names(self) -> set[str]:
        stmt = select(Bot.bot_share_name).where(Bot.bot_share_name.is_not(None))
        return {name for name in (await self._session.execute(stmt)).scalars().all() if name}

    async def list_by_share_names(self, share_names: Iterable[str]) -> list[Bot]:
        names = list(share_names)
        if not names:
            return []
        stmt = select(Bot).where(Bot.bot_share_name.in_(names)).order_by(Bot.client_name)
        return list((await self._session.execute(stmt)).scalars().all())

    async def exists(self, share_name: str) -> bool:
        stmt = select(Bot.id).where(Bot.bot_share_name == share_name)
        return (await self._session.execute(stmt)).first() is not None


# --- Module Notes -----------------------------------------------------------
# `all_share_names` is only called on elevated sessions; under RLS the standard
# role would see a narrower set.
