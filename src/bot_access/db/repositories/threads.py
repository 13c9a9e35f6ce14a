"""
bot_access.db.repositories.threads

Repository for `Thread` entities.

Responsibilities:
- List threads restricted to an explicit, already-authorized set of bots.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.db.models import Thread


class ThreadRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_bots(
        self,
        bot_share_names: Iterable[str],
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Thread]:
        # An empty scope returns nothing; there is no "unfiltered" mode.
        names = list(bot_share_names)
        if not names:
            return []
        stmt = (
            select(Thread)
            .where(Thread.bot_share_name.in_(names), Thread.message_count > 0)
            .order_by(desc(Thread.created_at))
            .offset(offset)
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# Callers pass `services.access_resolver.scope_resource_filter(...)` output here.
