"""
tests.test_accessible_resources

Accessible bot sets, per-request resolution and resource filter narrowing.
"""

from __future__ import annotations

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.auth.models import Principal, ResolvedAccess, Role, RoleClassification
from bot_access.db.elevated import ElevatedQueryGateway
from bot_access.db.models import AssignmentRole, BotUser
from bot_access.errors import ConfigurationError, DataUnavailable
from bot_access.services.access_resolver import scope_resource_filter
from bot_access.services.accessible_resources import AccessibleResourceSet

from conftest import (
    ADMIN,
    MEMBER,
    OUTSIDER,
    SUPERADMIN,
    Db,
    FailingSession,
    add_rows,
    assignment,
    bot,
    seed_tenants,
)


@pytest.mark.asyncio
async def test_superadmin_sees_every_provisioned_bot(db: Db, session: AsyncSession) -> None:
    await seed_tenants(db)
    # `beta` has no members at all; the superadmin still sees it.
    access = await db.resolver(session).resolve(SUPERADMIN)
    assert access.role is Role.superadmin
    assert access.accessible_resource_ids == frozenset({"alpha", "beta"})


@pytest.mark.asyncio
async def test_non_superadmin_sees_only_active_assignments(db: Db, session: AsyncSession) -> None:
    await seed_tenants(db)
    await add_rows(db, bot("gamma"))
    await add_rows(db, assignment(MEMBER.id, "gamma", AssignmentRole.member, is_active=False))

    access = await db.resolver(session).resolve(MEMBER)
    assert access.role is Role.member
    assert access.accessible_resource_ids == frozenset({"alpha"})
    assert not access.can_access("beta")
    assert not access.can_access("gamma")


@pytest.mark.asyncio
async def test_no_role_means_empty_set(db: Db, session: AsyncSession) -> None:
    await seed_tenants(db)
    access = await db.resolver(session).resolve(OUTSIDER)
    assert access.role is None
    assert access.accessible_resource_ids == frozenset()


@pytest.mark.asyncio
async def test_superadmin_without_elevated_credential_is_a_configuration_error(
    db: Db, session: AsyncSession
) -> None:
    await seed_tenants(db)
    resources = AccessibleResourceSet(session=session, gateway=ElevatedQueryGateway(None))
    classification = RoleClassification(
        principal_id=SUPERADMIN.id, role=Role.superadmin, is_superadmin=True
    )
    with pytest.raises(ConfigurationError):
        await resources.resolve(classification)


@pytest.mark.asyncio
async def test_read_error_is_not_reported_as_no_access(db: Db) -> None:
    resources = AccessibleResourceSet(session=FailingSession(), gateway=db.gateway)  # type: ignore[arg-type]
    classification = RoleClassification(principal_id=MEMBER.id, role=Role.member)
    with pytest.raises(DataUnavailable):
        await resources.resolve(classification)


@pytest.mark.asyncio
async def test_role_changes_apply_on_next_resolution(db: Db, session: AsyncSession) -> None:
    await seed_tenants(db)
    resolver = db.resolver(session)
    assert (await resolver.resolve(ADMIN)).role is Role.admin

    async with db.sessionmaker() as other:
        await other.execute(
            update(BotUser).where(BotUser.user_id == ADMIN.id).values(role=AssignmentRole.member)
        )
        await other.commit()
    assert (await resolver.resolve(ADMIN)).role is Role.member

    async with db.sessionmaker() as other:
        await other.execute(
            update(BotUser).where(BotUser.user_id == ADMIN.id).values(is_active=False)
        )
        await other.commit()
    access = await resolver.resolve(ADMIN)
    assert access.role is None
    assert access.accessible_resource_ids == frozenset()


def test_resource_filter_only_narrows() -> None:
    access = ResolvedAccess(
        principal_id=MEMBER.id,
        role=Role.member,
        accessible_resource_ids=frozenset({"alpha", "beta"}),
    )
    assert scope_resource_filter(access, None) == frozenset({"alpha", "beta"})
    assert scope_resource_filter(access, "") == frozenset({"alpha", "beta"})
    assert scope_resource_filter(access, "alpha") == frozenset({"alpha"})
    # A foreign bot never widens the scope.
    assert scope_resource_filter(access, "gamma") == frozenset()


@pytest.mark.asyncio
async def test_inactive_assignment_is_excluded_from_admin_set(
    db: Db, session: AsyncSession
) -> None:
    await add_rows(db, bot("bot-7"), bot("bot-9"))
    await add_rows(
        db,
        assignment("u3", "bot-7", AssignmentRole.admin),
        assignment("u3", "bot-9", AssignmentRole.member, is_active=False),
    )
    access = await db.resolver(session).resolve(Principal(id="u3", email="u3@example.com"))
    assert access.role is Role.admin
    assert access.accessible_resource_ids == frozenset({"bot-7"})
