"""
tests.conftest

Shared fixtures: a file-backed SQLite database reachable through a standard and
an elevated engine, seed helpers and a fake identity provider.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from bot_access.auth.models import Principal
from bot_access.db.elevated import ElevatedQueryGateway
from bot_access.db.init_db import init_db
from bot_access.db.models import (
    AssignmentRole,
    Bot,
    BotUser,
    SuperUser,
    Thread,
    UserInvitation,
)
from bot_access.db.session import create_engine, create_sessionmaker
from bot_access.identity_clients.admin_http import IdentityAccount, IdentityProviderError
from bot_access.services.access_resolver import AccessResolver

SUPERADMIN = Principal(id="user-super", email="root@example.com")
ADMIN = Principal(id="user-admin", email="admin@example.com")
MEMBER = Principal(id="user-member", email="member@example.com")
OUTSIDER = Principal(id="user-nobody", email="nobody@example.com")


@dataclass
class Db:
    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]
    gateway: ElevatedQueryGateway

    def resolver(self, session: AsyncSession) -> AccessResolver:
        return AccessResolver(session=session, gateway=self.gateway)


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'bot_access.db'}"


@pytest_asyncio.fixture
async def db(db_url: str) -> AsyncIterator[Db]:
    engine = create_engine(db_url)
    await init_db(engine)
    # Same database, second engine: stands in for the trusted credential.
    gateway = ElevatedQueryGateway(create_engine(db_url))
    try:
        yield Db(engine=engine, sessionmaker=create_sessionmaker(engine), gateway=gateway)
    finally:
        await gateway.dispose()
        await engine.dispose()


@pytest_asyncio.fixture
async def session(db: Db) -> AsyncIterator[AsyncSession]:
    async with db.sessionmaker() as s:
        yield s


async def add_rows(db: Db, *rows: Any) -> None:
    async with db.sessionmaker() as s:
        s.add_all(rows)
        await s.commit()


def bot(name: str | None, client_name: str = "") -> Bot:
    return Bot(bot_share_name=name, client_name=client_name or (name or "unprovisioned"))


def superuser(user_id: str, *, is_active: bool = True) -> SuperUser:
    return SuperUser(user_id=user_id, is_active=is_active)


def assignment(
    user_id: str, bot_share_name: str, role: AssignmentRole, *, is_active: bool = True
) -> BotUser:
    return BotUser(user_id=user_id, bot_share_name=bot_share_name, role=role, is_active=is_active)


def invitation(
    email: str,
    bot_share_name: str,
    *,
    role: AssignmentRole = AssignmentRole.member,
    invited_by: str = ADMIN.id,
) -> UserInvitation:
    return UserInvitation(
        email=email,
        first_name="Ada",
        surname="Lovelace",
        role=role,
        bot_share_name=bot_share_name,
        invited_by=invited_by,
    )


def thread(bot_share_name: str, *, message_count: int = 1, age_minutes: int = 0) -> Thread:
    created = datetime(2026, 1, 1) - timedelta(minutes=age_minutes)
    return Thread(
        bot_share_name=bot_share_name,
        thread_id=f"t-{bot_share_name}-{age_minutes}",
        message_preview="hello",
        message_count=message_count,
        created_at=created,
        updated_at=created,
    )


async def seed_tenants(db: Db) -> None:
    """
    Two tenants: `alpha` (admin + member) and `beta` (admin only), plus one
    unprovisioned bot and one superadmin.
    """

    await add_rows(db, bot("alpha"), bot("beta"), bot(None))
    await add_rows(
        db,
        superuser(SUPERADMIN.id),
        assignment(ADMIN.id, "alpha", AssignmentRole.admin),
        assignment(MEMBER.id, "alpha", AssignmentRole.member),
    )


class FailingSession:
    """Session stand-in whose every query fails like a lost connection."""

    async def execute(self, *args: Any, **kwargs: Any) -> Any:
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


@dataclass
class FakeIdentity:
    accounts: dict[str, IdentityAccount] = field(default_factory=dict)
    invited: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    fail: bool = False

    async def list_users(self) -> list[IdentityAccount]:
        if self.fail:
            raise IdentityProviderError("identity provider down")
        return list(self.accounts.values())

    async def find_user_by_email(self, email: str) -> IdentityAccount | None:
        if self.fail:
            raise IdentityProviderError("identity provider down")
        return self.accounts.get(email.strip().lower())

    async def invite_user_by_email(
        self, email: str, *, metadata: dict[str, Any]
    ) -> IdentityAccount:
        if self.fail:
            raise IdentityProviderError("identity provider down")
        account = IdentityAccount(id=f"acct-{email}", email=email, setup_completed=False)
        self.accounts[email] = account
        self.invited.append((email, metadata))
        return account

    async def delete_user(self, user_id: str) -> None:
        if self.fail:
            raise IdentityProviderError("identity provider down")
        self.deleted.append(user_id)
        self.accounts = {k: v for k, v in self.accounts.items() if v.id != user_id}


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()
