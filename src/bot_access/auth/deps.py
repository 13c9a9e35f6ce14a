"""
bot_access.auth.deps

FastAPI dependency functions for authentication.

Responsibilities:
- Convert a bearer token into a typed `Principal` (PrincipalResolver).
- Refuse requests without a valid identity; nothing defaults to a role.
"""

from __future__ import annotations

import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bot_access.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from bot_access.auth.models import Principal
from bot_access.errors import NotAuthenticated
from bot_access.settings import Settings, get_settings

_bearer = HTTPBearer(auto_error=False)


class PrincipalResolver:
    """
    Extracts the authenticated identity from identity-provider tokens.
    """

    def __init__(self, cfg: JwtConfig) -> None:
        self._cfg = cfg

    def resolve(self, token: str | None) -> Principal:
        if not token:
            raise NotAuthenticated("Missing bearer token")
        try:
            payload = decode_and_validate(cfg=self._cfg, token=token)
        except JwtValidationError as e:
            raise NotAuthenticated(f"Invalid token: {e}") from e

        subject = str(payload.get("sub") or "")
        email = payload.get("email") or ""
        if not subject:
            raise NotAuthenticated("Invalid token subject")
        if not isinstance(email, str):
            raise NotAuthenticated("Invalid token email")
        return Principal(id=subject, email=email)


async def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_settings),
) -> Principal:
    token = creds.credentials if creds is not None else None
    principal = PrincipalResolver(JwtConfig.from_settings(settings)).resolve(token)
    structlog.contextvars.bind_contextvars(principal_id=principal.id)
    return principal


# --- Module Notes -----------------------------------------------------------
# Roles are not read from the token: `api.deps.resolved_access` derives them
# from the database on every request.
