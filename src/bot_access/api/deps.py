"""
bot_access.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and shared clients.
- Build per-request services (resolver, assignment and invitation services).
- Resolve the caller's access once per request, never across requests.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bot_access.auth.deps import get_principal
from bot_access.auth.models import Principal, ResolvedAccess
from bot_access.db.elevated import ElevatedQueryGateway
from bot_access.db.session import bind_request_claims
from bot_access.errors import ClassificationUnavailable
from bot_access.identity_clients.admin_http import IdentityAdmin
from bot_access.services.access_resolver import AccessResolver
from bot_access.services.assignment_service import AssignmentService
from bot_access.services.invitation_service import InvitationService
from bot_access.services.role_classifier import SuperadminProcedure
from bot_access.services.user_directory import UserDirectoryService
from bot_access.settings import Settings


def settings_dep(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created on app startup in `bot_access.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


def gateway_from_app(request: Request) -> ElevatedQueryGateway:
    return request.app.state.gateway  # type: ignore[attr-defined]


def procedure_from_app(request: Request) -> SuperadminProcedure | None:
    return request.app.state.superadmin_procedure  # type: ignore[attr-defined]


def identity_from_app(request: Request) -> IdentityAdmin | None:
    return request.app.state.identity_admin  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


async def principal_session(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> AsyncSession:
    # Standard (policy-filtered) session carrying the caller's identity.
    await bind_request_claims(session, principal)
    return session


def access_resolver(
    session: AsyncSession = Depends(principal_session),
    gateway: ElevatedQueryGateway = Depends(gateway_from_app),
    procedure: SuperadminProcedure | None = Depends(procedure_from_app),
) -> AccessResolver:
    return AccessResolver(session=session, gateway=gateway, procedure=procedure)


async def resolved_access(
    principal: Principal = Depends(get_principal),
    resolver: AccessResolver = Depends(access_resolver),
) -> ResolvedAccess:
    access = await resolver.resolve(principal)
    if access.unavailable:
        # Fail closed, but tell the caller this is not a "no access" answer.
        raise ClassificationUnavailable(
            "Role classification unavailable", principal_id=principal.id
        )
    return access


def assignment_service(
    resolver: AccessResolver = Depends(access_resolver),
    gateway: ElevatedQueryGateway = Depends(gateway_from_app),
) -> AssignmentService:
    return AssignmentService(resolver=resolver, gateway=gateway)


def invitation_service(
    session: AsyncSession = Depends(principal_session),
    resolver: AccessResolver = Depends(access_resolver),
    gateway: ElevatedQueryGateway = Depends(gateway_from_app),
    identity: IdentityAdmin | None = Depends(identity_from_app),
) -> InvitationService:
    return InvitationService(
        session=session, resolver=resolver, gateway=gateway, identity=identity
    )


def user_directory(
    resolver: AccessResolver = Depends(access_resolver),
    gateway: ElevatedQueryGateway = Depends(gateway_from_app),
    identity: IdentityAdmin | None = Depends(identity_from_app),
) -> UserDirectoryService:
    return UserDirectoryService(resolver=resolver, gateway=gateway, identity=identity)


# --- Module Notes -----------------------------------------------------------
# Mutating services re-run the resolver themselves right before each write, so
# they do not depend on `resolved_access`.
