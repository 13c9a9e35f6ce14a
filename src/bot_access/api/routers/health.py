"""
bot_access.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness check (`/healthz`).
- Provide readiness check (`/readyz`) with DB connectivity validation.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.api.deps import db_session, gateway_from_app
from bot_access.db.elevated import ElevatedQueryGateway

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(
    session: AsyncSession = Depends(db_session),
    gateway: ElevatedQueryGateway = Depends(gateway_from_app),
) -> dict[str, object]:
    # Readiness: the standard DB must answer; elevated config is reported, not tested.
    await session.execute(text("SELECT 1"))
    return {"status": "ready", "elevated_configured": gateway.configured}
