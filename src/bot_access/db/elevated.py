"""
bot_access.db.elevated

Elevated query gateway.

Responsibilities:
- Own the sessionmaker bound to the trusted (policy-bypassing) credential.
- Open a session only for a freshly minted `ElevationGrant`.
- Fail with `ConfigurationError` when the trusted credential is absent; there is
  no silent fallback to the standard, policy-filtered engine.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from bot_access.auth.guards import ElevationGrant
from bot_access.db.session import create_sessionmaker
from bot_access.errors import ConfigurationError, Forbidden
from bot_access.observability.logging import get_logger

log = get_logger(__name__)


class ElevatedQueryGateway:
    def __init__(self, engine: AsyncEngine | None) -> None:
        self._engine = engine
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = (
            create_sessionmaker(engine) if engine is not None else None
        )

    @property
    def configured(self) -> bool:
        return self._sessionmaker is not None

    @asynccontextmanager
    async def session(self, grant: ElevationGrant) -> AsyncIterator[AsyncSession]:
        if not isinstance(grant, ElevationGrant) or not grant.is_minted:
            raise Forbidden("Elevated access requires an authorization grant")
        if self._sessionmaker is None:
            log.error(
                "elevated_credential_missing",
                principal_id=grant.principal_id,
                operation=grant.operation,
            )
            raise ConfigurationError(
                "Elevated database credential is not configured", operation=grant.operation
            )

        log.info(
            "elevated_session_opened",
            principal_id=grant.principal_id,
            operation=grant.operation,
            basis=grant.basis.value,
            resource_id=grant.resource_id,
        )
        async with self._sessionmaker() as session:
            yield session

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()


# --- Module Notes -----------------------------------------------------------
# Callers commit explicitly; an exception inside the block rolls the session back
# when it closes.
