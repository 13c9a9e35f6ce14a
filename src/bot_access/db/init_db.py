"""
bot_access.db.init_db

DB initialization helpers (dev/test convenience).

Responsibilities:
- Create tables for local development and tests.
- Keep production migration workflow separate (Alembic).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from bot_access.db import models  # noqa: F401  # ensure models are registered on Base.metadata
from bot_access.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    """
    Dev/test bootstrap: create tables if they don't exist.
    RLS policies and the `is_superadmin()` function only come from Alembic.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# --- Module Notes -----------------------------------------------------------
# Without the migration, the primary superadmin procedure does not exist and the
# classifier uses its table fallback; that is the expected dev/test behavior.
