"""
bot_access.services.user_directory

Superadmin directory of accounts.

Responsibilities:
- List identity-provider accounts joined with their `user_profiles` row, so
  assignment administration can be done with real user ids.
- Re-check the superadmin role before each listing.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from bot_access.auth.guards import grant_superadmin
from bot_access.auth.models import Principal
from bot_access.db.elevated import ElevatedQueryGateway
from bot_access.db.models import UserProfile
from bot_access.db.repositories.profiles import ProfileRepo
from bot_access.errors import ConfigurationError, DataUnavailable
from bot_access.identity_clients.admin_http import (
    IdentityAccount,
    IdentityAdmin,
    IdentityProviderError,
)
from bot_access.observability.logging import get_logger
from bot_access.services.access_resolver import AccessResolver

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    id: str
    email: str
    setup_completed: bool
    first_name: str | None
    surname: str | None

    @classmethod
    def join(cls, account: IdentityAccount, profile: UserProfile | None) -> DirectoryEntry:
        return cls(
            id=account.id,
            email=account.email,
            setup_completed=account.setup_completed,
            first_name=profile.first_name if profile is not None else None,
            surname=profile.surname if profile is not None else None,
        )


class UserDirectoryService:
    def __init__(
        self,
        *,
        resolver: AccessResolver,
        gateway: ElevatedQueryGateway,
        identity: IdentityAdmin | None,
    ) -> None:
        self._resolver = resolver
        self._gateway = gateway
        self._identity = identity

    async def list_users(self, principal: Principal) -> list[DirectoryEntry]:
        access = await self._resolver.resolve(principal)
        grant = grant_superadmin(access, operation="users.list")
        if self._identity is None:
            raise ConfigurationError("Identity provider admin API is not configured")

        async with self._gateway.session(grant) as session:
            # Account paging and the profile read are independent.
            try:
                accounts, profiles = await asyncio.gather(
                    self._identity.list_users(), ProfileRepo(session).list_all()
                )
            except IdentityProviderError as e:
                raise DataUnavailable("Identity provider unavailable") from e

        by_id = {p.id: p for p in profiles}
        log.info("users_listed", actor=principal.id, count=len(accounts))
        return sorted(
            (DirectoryEntry.join(a, by_id.get(a.id)) for a in accounts),
            key=lambda e: e.email,
        )
