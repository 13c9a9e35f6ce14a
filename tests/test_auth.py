"""
tests.test_auth

Token validation and elevation grant minting.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from bot_access.auth.deps import PrincipalResolver
from bot_access.auth.guards import (
    ElevationBasis,
    ElevationGrant,
    grant_invitee,
    grant_resource_admin,
    grant_superadmin,
)
from bot_access.auth.jwt import JwtConfig, issue_token
from bot_access.auth.models import Principal, ResolvedAccess, Role
from bot_access.errors import ClassificationUnavailable, Forbidden, NotAuthenticated

CFG = JwtConfig(alg="HS256", issuer="bot-access", audience="bot-access-api", secret="s3cret")


def _access(role: Role | None, bots: dict[str, str] | None = None, **kw: object) -> ResolvedAccess:
    bots = bots or {}
    return ResolvedAccess(
        principal_id="user-1",
        role=role,
        accessible_resource_ids=frozenset(bots),
        is_superadmin=role is Role.superadmin,
        assignment_roles=bots,
        **kw,  # type: ignore[arg-type]
    )


def test_valid_token_yields_principal() -> None:
    token = issue_token(cfg=CFG, subject="user-1", email="One@Example.com")
    principal = PrincipalResolver(CFG).resolve(token)
    assert principal == Principal(id="user-1", email="One@Example.com")
    assert principal.email_canonical == "one@example.com"


@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
def test_missing_or_garbage_token_is_rejected(token: str | None) -> None:
    with pytest.raises(NotAuthenticated):
        PrincipalResolver(CFG).resolve(token)


def test_expired_and_foreign_tokens_are_rejected() -> None:
    expired = issue_token(cfg=CFG, subject="user-1", email="a@b.c", ttl=timedelta(seconds=-5))
    with pytest.raises(NotAuthenticated):
        PrincipalResolver(CFG).resolve(expired)

    other = JwtConfig(alg="HS256", issuer="bot-access", audience="bot-access-api", secret="other")
    with pytest.raises(NotAuthenticated):
        PrincipalResolver(CFG).resolve(issue_token(cfg=other, subject="user-1", email="a@b.c"))


def test_superadmin_grant() -> None:
    grant = grant_superadmin(_access(Role.superadmin), operation="assignments.list")
    assert grant.is_minted
    assert grant.basis is ElevationBasis.superadmin

    with pytest.raises(Forbidden):
        grant_superadmin(_access(Role.admin, {"alpha": "admin"}), operation="assignments.list")
    with pytest.raises(ClassificationUnavailable):
        grant_superadmin(_access(None, unavailable=True), operation="assignments.list")


def test_resource_admin_grant_is_per_bot() -> None:
    admin = _access(Role.admin, {"alpha": "admin", "beta": "member"})
    grant = grant_resource_admin(admin, resource_id="alpha", operation="invitations.create")
    assert grant.basis is ElevationBasis.resource_admin
    assert grant.resource_id == "alpha"

    # Admin elsewhere is not admin here.
    with pytest.raises(Forbidden):
        grant_resource_admin(admin, resource_id="beta", operation="invitations.create")
    with pytest.raises(Forbidden):
        grant_resource_admin(admin, resource_id="gamma", operation="invitations.create")

    sa = grant_resource_admin(
        _access(Role.superadmin), resource_id="gamma", operation="invitations.create"
    )
    assert sa.basis is ElevationBasis.superadmin


def test_invitee_grant_requires_email() -> None:
    assert grant_invitee(Principal(id="u", email="a@b.c"), operation="accept").is_minted
    with pytest.raises(NotAuthenticated):
        grant_invitee(Principal(id="u", email=""), operation="accept")


def test_hand_built_grant_is_not_minted() -> None:
    forged = ElevationGrant(principal_id="u", operation="x", basis=ElevationBasis.superadmin)
    assert not forged.is_minted


def test_inviter_may_act_on_own_rows_only() -> None:
    member = _access(Role.member, {"alpha": "member"})
    grant = grant_resource_admin(
        member, resource_id="alpha", operation="invitations.cancel", owner_id="user-1"
    )
    assert grant.basis is ElevationBasis.inviter
    with pytest.raises(Forbidden):
        grant_resource_admin(
            member, resource_id="alpha", operation="invitations.cancel", owner_id="user-2"
        )


def test_inviter_without_access_to_the_bot_is_refused() -> None:
    revoked = _access(None)
    with pytest.raises(Forbidden):
        grant_resource_admin(
            revoked, resource_id="alpha", operation="invitations.cancel", owner_id="user-1"
        )
    elsewhere = _access(Role.member, {"beta": "member"})
    with pytest.raises(Forbidden):
        grant_resource_admin(
            elsewhere, resource_id="alpha", operation="invitations.cancel", owner_id="user-1"
        )
