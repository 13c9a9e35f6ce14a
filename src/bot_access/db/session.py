"""
bot_access.db.session

Async SQLAlchemy engine + session factory helpers.

Responsibilities:
- Create the standard and elevated async engines from settings.
- Create the async sessionmaker with safe defaults.
- Bind the caller's identity into the DB session so row-level policies apply.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from bot_access.auth.models import Principal
from bot_access.settings import Settings


def create_engine(url: str) -> AsyncEngine:
    # pool_pre_ping helps detect stale connections in long-lived processes.
    return create_async_engine(
        url,
        pool_pre_ping=True,
        future=True,
    )


def create_standard_engine(settings: Settings) -> AsyncEngine:
    return create_engine(settings.database_url)


def create_elevated_engine(settings: Settings) -> AsyncEngine | None:
    # None is a legal startup state; elevated operations fail with
    # ConfigurationError at call time (see db.elevated).
    if not settings.elevated_database_url:
        return None
    return create_engine(settings.elevated_database_url)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False avoids surprising lazy loads after commits.
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


async def bind_request_claims(
    target: AsyncSession | AsyncConnection, principal: Principal
) -> None:
    """
    Expose the caller to PostgreSQL row-level policies for the current transaction.
    Other backends have no RLS; the repositories filter by principal explicitly.
    """

    bind = target.bind if isinstance(target, AsyncSession) else target
    if bind.dialect.name != "postgresql":
        return
    await target.execute(
        text("SELECT set_config('request.jwt.claim.sub', :sub, true)"),
        {"sub": principal.id},
    )
    await target.execute(
        text("SELECT set_config('request.jwt.claim.email', :email, true)"),
        {"email": principal.email_canonical},
    )


# --- Module Notes -----------------------------------------------------------
# The API layer uses FastAPI dependencies for session scoping (`api.deps`).
