"""
bot_access.api.routers.access

Read endpoints scoped by the caller's resolved access.

Responsibilities:
- Return the caller's own ResolvedAccess.
- List details of accessible bots.
- List threads, intersected with the accessible set (optional bot selection
  only narrows it).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.api.deps import gateway_from_app, principal_session, resolved_access
from bot_access.auth.guards import grant_superadmin
from bot_access.auth.models import ResolvedAccess
from bot_access.db.elevated import ElevatedQueryGateway
from bot_access.db.models import Bot
from bot_access.db.repositories.bots import BotRepo
from bot_access.db.repositories.threads import ThreadRepo
from bot_access.services.access_resolver import scope_resource_filter

router = APIRouter(prefix="/v1", tags=["access"])


class AccessResponse(BaseModel):
    success: bool = True
    principal_id: str
    role: str | None
    accessible_resource_ids: list[str]
    is_superadmin: bool


class BotItem(BaseModel):
    id: uuid.UUID
    bot_share_name: str
    client_name: str


class BotsResponse(BaseModel):
    success: bool = True
    bots: list[BotItem]


class ThreadItem(BaseModel):
    id: uuid.UUID
    bot_share_name: str
    thread_id: str | None
    message_preview: str | None
    message_count: int
    created_at: datetime
    updated_at: datetime


class ThreadsResponse(BaseModel):
    success: bool = True
    threads: list[ThreadItem]
    has_more: bool


@router.get("/me/access", response_model=AccessResponse)
async def get_my_access(access: ResolvedAccess = Depends(resolved_access)) -> AccessResponse:
    return AccessResponse(**access.as_dict())


@router.get("/bots", response_model=BotsResponse)
async def list_accessible_bots(
    access: ResolvedAccess = Depends(resolved_access),
    session: AsyncSession = Depends(principal_session),
    gateway: ElevatedQueryGateway = Depends(gateway_from_app),
) -> BotsResponse:
    if not access.accessible_resource_ids:
        return BotsResponse(bots=[])

    bots: list[Bot]
    if access.is_superadmin:
        grant = grant_superadmin(access, operation="bots.details")
        async with gateway.session(grant) as elevated:
            bots = await BotRepo(elevated).list_by_share_names(access.accessible_resource_ids)
    else:
        bots = await BotRepo(session).list_by_share_names(access.accessible_resource_ids)

    return BotsResponse(
        bots=[
            BotItem(id=b.id, bot_share_name=b.bot_share_name or "", client_name=b.client_name)
            for b in bots
        ]
    )


@router.get("/threads", response_model=ThreadsResponse)
async def list_threads(
    bot: str | None = Query(default=None, max_length=128),
    limit: int = Query(default=20, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    access: ResolvedAccess = Depends(resolved_access),
    session: AsyncSession = Depends(principal_session),
    gateway: ElevatedQueryGateway = Depends(gateway_from_app),
) -> ThreadsResponse:
    scope = scope_resource_filter(access, bot)
    if not scope:
        return ThreadsResponse(threads=[], has_more=False)

    if access.is_superadmin:
        grant = grant_superadmin(access, operation="threads.list")
        async with gateway.session(grant) as elevated:
            rows = await ThreadRepo(elevated).list_for_bots(scope, limit=limit, offset=offset)
    else:
        rows = await ThreadRepo(session).list_for_bots(scope, limit=limit, offset=offset)

    return ThreadsResponse(
        threads=[
            ThreadItem(
                id=t.id,
                bot_share_name=t.bot_share_name,
                thread_id=t.thread_id,
                message_preview=t.message_preview,
                message_count=t.message_count,
                created_at=t.created_at,
                updated_at=t.updated_at,
            )
            for t in rows
        ],
        has_more=len(rows) == limit,
    )


# --- Module Notes -----------------------------------------------------------
# No handler here filters by a client-supplied bot alone; every query runs
# against `scope_resource_filter(...)` output.
