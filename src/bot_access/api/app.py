"""
bot_access.api.app

FastAPI app factory for the bot access service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Initialize and dispose shared infrastructure (standard and elevated engines,
  superadmin procedure, identity admin client).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bot_access import __version__
from bot_access.api.errors import register_error_handlers
from bot_access.api.routers.access import router as access_router
from bot_access.api.routers.assignments import router as assignments_router
from bot_access.api.routers.dev_auth import router as dev_auth_router
from bot_access.api.routers.health import router as health_router
from bot_access.api.routers.invitations import router as invitations_router
from bot_access.api.routers.users import router as users_router
from bot_access.db.elevated import ElevatedQueryGateway
from bot_access.db.init_db import init_db
from bot_access.db.session import (
    create_elevated_engine,
    create_sessionmaker,
    create_standard_engine,
)
from bot_access.identity_clients.admin_http import create_identity_admin, create_identity_http
from bot_access.observability.logging import configure_logging, get_logger
from bot_access.observability.middleware import RequestContextMiddleware
from bot_access.services.role_classifier import SqlSuperadminProcedure
from bot_access.settings import Settings, get_settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_standard_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        app.state.superadmin_procedure = SqlSuperadminProcedure(engine)

        elevated_engine = create_elevated_engine(settings)
        if elevated_engine is None:
            log.warning("elevated_credential_not_configured")
        app.state.gateway = ElevatedQueryGateway(elevated_engine)

        identity_http = create_identity_http(settings)
        app.state.identity_http = identity_http
        try:
            app.state.identity_admin = create_identity_admin(settings, identity_http)

            if settings.env in ("dev", "test"):
                # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
                await init_db(elevated_engine or engine)

            yield
        finally:
            await app.state.gateway.dispose()
            if identity_http is not None:
                await identity_http.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Bot Access Service",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    # Every `Depends(get_settings)` sees the settings this app was built with.
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(access_router)
    app.include_router(assignments_router)
    app.include_router(users_router)
    app.include_router(invitations_router)

    return app


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; authorization
# logic stays in services.
