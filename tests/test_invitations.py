"""
tests.test_invitations

Invitation lifecycle: invite, accept (atomic reconciliation), cancel, listing.
"""

from __future__ import annotations

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.auth.models import Principal, Role
from bot_access.db.elevated import ElevatedQueryGateway
from bot_access.db.models import AssignmentRole, BotUser
from bot_access.db.repositories.assignments import AssignmentRepo
from bot_access.db.repositories.invitations import InvitationRepo
from bot_access.db.repositories.profiles import ProfileRepo
from bot_access.errors import (
    ConfigurationError,
    Conflict,
    DataUnavailable,
    Forbidden,
    NotFound,
    PartialReconciliation,
)
from bot_access.identity_clients.admin_http import IdentityAccount
from bot_access.services.access_resolver import AccessResolver
from bot_access.services.invitation_service import InvitationService

from conftest import (
    ADMIN,
    MEMBER,
    SUPERADMIN,
    Db,
    FakeIdentity,
    add_rows,
    assignment,
    invitation,
    seed_tenants,
)

INVITEE = Principal(id="user-invitee", email="New.Person@Example.com")


def _service(
    db: Db, session: AsyncSession, identity: FakeIdentity | None
) -> InvitationService:
    return InvitationService(
        session=session, resolver=db.resolver(session), gateway=db.gateway, identity=identity
    )


async def _invite(svc: InvitationService, caller: Principal = ADMIN, **overrides):
    kwargs = dict(
        email=INVITEE.email,
        first_name="New",
        surname="Person",
        role=AssignmentRole.member,
        bot_share_name="alpha",
    )
    kwargs.update(overrides)
    return await svc.invite(caller, **kwargs)


@pytest.mark.asyncio
async def test_admin_invites_to_own_bot(db: Db, session: AsyncSession, identity: FakeIdentity) -> None:
    await seed_tenants(db)
    record = await _invite(_service(db, session, identity))

    assert record.email == "new.person@example.com"
    assert record.invited_by == ADMIN.id
    assert record.bot_share_name == "alpha"
    (email, metadata), = identity.invited
    assert email == "new.person@example.com"
    assert metadata["bot_share_name"] == "alpha"
    assert metadata["role"] == "member"


@pytest.mark.asyncio
async def test_superadmin_may_invite_to_any_bot(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    record = await _invite(_service(db, session, identity), SUPERADMIN, bot_share_name="beta")
    assert record.bot_share_name == "beta"


@pytest.mark.asyncio
async def test_member_or_foreign_admin_cannot_invite(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    svc = _service(db, session, identity)
    with pytest.raises(Forbidden):
        await _invite(svc, MEMBER)
    with pytest.raises(Forbidden):
        await _invite(svc, ADMIN, bot_share_name="beta")
    assert identity.invited == []


@pytest.mark.asyncio
async def test_second_live_invitation_for_email_conflicts(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    svc = _service(db, session, identity)
    await _invite(svc)
    with pytest.raises(Conflict):
        await _invite(svc, email="  NEW.PERSON@example.com ")


@pytest.mark.asyncio
async def test_existing_completed_account_conflicts(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    identity.accounts["new.person@example.com"] = IdentityAccount(
        id="acct-1", email="new.person@example.com", setup_completed=True
    )
    with pytest.raises(Conflict):
        await _invite(_service(db, session, identity))


@pytest.mark.asyncio
async def test_identity_failure_leaves_no_invitation(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    identity.fail = True
    with pytest.raises(DataUnavailable):
        await _invite(_service(db, session, identity))

    async with db.sessionmaker() as s:
        assert await InvitationRepo(s).get_by_email(INVITEE.email) is None


@pytest.mark.asyncio
async def test_missing_collaborators_are_configuration_errors(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    with pytest.raises(ConfigurationError):
        await _invite(_service(db, session, None))

    no_elevated = InvitationService(
        session=session,
        resolver=AccessResolver(session=session, gateway=db.gateway),
        gateway=ElevatedQueryGateway(None),
        identity=identity,
    )
    with pytest.raises(ConfigurationError):
        await _invite(no_elevated)


@pytest.mark.asyncio
async def test_accept_reconciles_once(db: Db, session: AsyncSession, identity: FakeIdentity) -> None:
    await seed_tenants(db)
    svc = _service(db, session, identity)
    await _invite(svc)

    created = await svc.accept(INVITEE, first_name="Newly")
    assert created.user_id == INVITEE.id
    assert created.bot_share_name == "alpha"
    assert created.role is AssignmentRole.member

    async with db.sessionmaker() as s:
        assert await InvitationRepo(s).get_by_email(INVITEE.email) is None
        profile = await ProfileRepo(s).get(INVITEE.id)
        assert profile is not None
        assert (profile.first_name, profile.surname) == ("Newly", "Person")

    # The new member is a member of exactly the invited bot.
    access = await db.resolver(session).resolve(INVITEE)
    assert access.role is Role.member
    assert access.accessible_resource_ids == frozenset({"alpha"})

    with pytest.raises(NotFound):
        await svc.accept(INVITEE)


@pytest.mark.asyncio
async def test_failed_reconciliation_rolls_back_everything(
    db: Db, session: AsyncSession, identity: FakeIdentity, monkeypatch: pytest.MonkeyPatch
) -> None:
    await seed_tenants(db)
    svc = _service(db, session, identity)
    await _invite(svc)

    async def broken_create(self, **kwargs):
        raise OperationalError("INSERT INTO bot_users", {}, Exception("disk I/O error"))

    monkeypatch.setattr(AssignmentRepo, "create", broken_create)
    with pytest.raises(PartialReconciliation) as exc:
        await svc.accept(INVITEE)
    assert exc.value.retryable is True
    assert exc.value.details["principal_id"] == INVITEE.id
    monkeypatch.undo()

    async with db.sessionmaker() as s:
        assert await InvitationRepo(s).get_by_email(INVITEE.email) is not None
        assert await ProfileRepo(s).get(INVITEE.id) is None

    # Retrying after the fault clears completes the reconciliation.
    assert (await svc.accept(INVITEE)).user_id == INVITEE.id


@pytest.mark.asyncio
async def test_accept_with_existing_assignment_conflicts(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    await add_rows(db, assignment(INVITEE.id, "alpha", AssignmentRole.member))
    await add_rows(db, invitation(INVITEE.email_canonical, "alpha"))
    with pytest.raises(Conflict):
        await _service(db, session, identity).accept(INVITEE)


@pytest.mark.asyncio
async def test_cancel_removes_shell_and_invitation(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    svc = _service(db, session, identity)
    record = await _invite(svc)

    await svc.cancel(ADMIN, record.id)
    assert identity.deleted == ["acct-new.person@example.com"]
    with pytest.raises(NotFound):
        await svc.cancel(ADMIN, record.id)


@pytest.mark.asyncio
async def test_cancel_keeps_completed_accounts(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    row = invitation("done@example.com", "alpha")
    await add_rows(db, row)
    identity.accounts["done@example.com"] = IdentityAccount(
        id="acct-done", email="done@example.com", setup_completed=True
    )
    await _service(db, session, identity).cancel(SUPERADMIN, row.id)
    assert identity.deleted == []


@pytest.mark.asyncio
async def test_cancel_failure_keeps_invitation(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    svc = _service(db, session, identity)
    record = await _invite(svc)
    identity.fail = True
    with pytest.raises(DataUnavailable):
        await svc.cancel(ADMIN, record.id)

    async with db.sessionmaker() as s:
        assert await InvitationRepo(s).get(record.id) is not None


@pytest.mark.asyncio
async def test_member_cannot_cancel(db: Db, session: AsyncSession, identity: FakeIdentity) -> None:
    await seed_tenants(db)
    row = invitation("someone@example.com", "alpha")
    await add_rows(db, row)
    with pytest.raises(Forbidden):
        await _service(db, session, identity).cancel(MEMBER, row.id)


@pytest.mark.asyncio
async def test_listing_is_scoped(db: Db, session: AsyncSession, identity: FakeIdentity) -> None:
    await seed_tenants(db)
    await add_rows(
        db,
        invitation("a@example.com", "alpha"),
        invitation("b@example.com", "beta", invited_by=SUPERADMIN.id),
    )
    svc = _service(db, session, identity)

    assert {r.email for r in await svc.list_visible(SUPERADMIN)} == {
        "a@example.com",
        "b@example.com",
    }
    assert {r.email for r in await svc.list_visible(ADMIN)} == {"a@example.com"}
    assert {r.email for r in await svc.list_visible(INVITEE)} == set()


@pytest.mark.asyncio
async def test_inviter_who_lost_access_cannot_cancel(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    row = invitation("victim@example.com", "alpha", invited_by=ADMIN.id)
    await add_rows(db, row)
    identity.accounts["victim@example.com"] = IdentityAccount(
        id="acct-victim", email="victim@example.com", setup_completed=False
    )
    async with db.sessionmaker() as s:
        await s.execute(update(BotUser).where(BotUser.user_id == ADMIN.id).values(is_active=False))
        await s.commit()

    with pytest.raises(Forbidden):
        await _service(db, session, identity).cancel(ADMIN, row.id)

    assert identity.deleted == []
    async with db.sessionmaker() as s:
        assert await InvitationRepo(s).get(row.id) is not None


@pytest.mark.asyncio
async def test_inviter_with_member_access_may_cancel_own_invitation(
    db: Db, session: AsyncSession, identity: FakeIdentity
) -> None:
    await seed_tenants(db)
    row = invitation("pending@example.com", "alpha", invited_by=MEMBER.id)
    await add_rows(db, row)
    await _service(db, session, identity).cancel(MEMBER, row.id)

    async with db.sessionmaker() as s:
        assert await InvitationRepo(s).get(row.id) is None
