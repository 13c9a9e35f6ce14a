"""
bot_access.services.invitation_service

Invitation lifecycle and reconciliation with real accounts.

Responsibilities:
- Invite: record one live invitation per email and create the account shell.
- Accept: profile + assignment + invitation delete, as one transaction.
- Cancel: remove the unfinished account shell, then the invitation.
- List invitations visible to the caller.

State: invited -> (accepted -> consumed) | (cancelled -> absent).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bot_access.auth.guards import grant_invitee, grant_resource_admin, grant_superadmin
from bot_access.auth.models import Principal
from bot_access.db.elevated import ElevatedQueryGateway
from bot_access.db.models import AssignmentRole, UserInvitation
from bot_access.db.repositories.assignments import AssignmentRepo
from bot_access.db.repositories.bots import BotRepo
from bot_access.db.repositories.invitations import InvitationRepo, canonical_email
from bot_access.db.repositories.profiles import ProfileRepo
from bot_access.errors import (
    ClassificationUnavailable,
    ConfigurationError,
    Conflict,
    DataUnavailable,
    NotFound,
    PartialReconciliation,
)
from bot_access.identity_clients.admin_http import IdentityAdmin, IdentityProviderError
from bot_access.observability.logging import get_logger
from bot_access.services.access_resolver import AccessResolver
from bot_access.services.assignment_service import AssignmentRecord

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class InvitationRecord:
    id: uuid.UUID
    email: str
    first_name: str
    surname: str
    role: AssignmentRole
    bot_share_name: str
    invited_by: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: UserInvitation) -> InvitationRecord:
        return cls(
            id=row.id,
            email=row.email,
            first_name=row.first_name,
            surname=row.surname,
            role=AssignmentRole(row.role),
            bot_share_name=row.bot_share_name,
            invited_by=row.invited_by,
            created_at=row.created_at,
        )


class InvitationService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        resolver: AccessResolver,
        gateway: ElevatedQueryGateway,
        identity: IdentityAdmin | None,
    ) -> None:
        # `session` is the caller's policy-filtered session.
        self._session = session
        self._resolver = resolver
        self._gateway = gateway
        self._identity = identity

    def _require_identity(self) -> IdentityAdmin:
        if self._identity is None:
            raise ConfigurationError("Identity provider admin API is not configured")
        return self._identity

    async def invite(
        self,
        principal: Principal,
        *,
        email: str,
        first_name: str,
        surname: str,
        role: AssignmentRole,
        bot_share_name: str,
    ) -> InvitationRecord:
        access = await self._resolver.resolve(principal)
        grant = grant_resource_admin(
            access, resource_id=bot_share_name, operation="invitations.create"
        )
        identity = self._require_identity()
        email = canonical_email(email)

        async with self._gateway.session(grant) as session:
            repo = InvitationRepo(session)
            if await repo.get_by_email(email) is not None:
                raise Conflict(
                    "An invitation has already been sent to this email address", email=email
                )
            if not await BotRepo(session).exists(bot_share_name):
                raise NotFound("Bot not found", bot_share_name=bot_share_name)

            try:
                account = await identity.find_user_by_email(email)
            except IdentityProviderError as e:
                raise DataUnavailable("Identity provider unavailable", email=email) from e
            if account is not None and account.setup_completed:
                raise Conflict("A user with this email already exists", email=email)

            try:
                row = await repo.create(
                    email=email,
                    first_name=first_name,
                    surname=surname,
                    role=role,
                    bot_share_name=bot_share_name,
                    invited_by=principal.id,
                )
            except IntegrityError as e:
                await session.rollback()
                raise Conflict(
                    "An invitation has already been sent to this email address", email=email
                ) from e

            # The record is flushed but uncommitted: a provider failure discards it.
            try:
                await identity.invite_user_by_email(
                    email,
                    metadata={
                        "first_name": first_name,
                        "surname": surname,
                        "bot_share_name": bot_share_name,
                        "role": role.value,
                        "invited_by": principal.id,
                    },
                )
            except IdentityProviderError as e:
                await session.rollback()
                log.error("invitation_email_failed", email=email, error=str(e))
                raise DataUnavailable("Failed to send invitation email", email=email) from e

            await session.commit()

        log.info(
            "invitation_created",
            actor=principal.id,
            invitation_id=str(row.id),
            email=email,
            bot_share_name=bot_share_name,
            role=role.value,
        )
        return InvitationRecord.from_row(row)

    async def accept(
        self,
        principal: Principal,
        *,
        first_name: str | None = None,
        surname: str | None = None,
    ) -> AssignmentRecord:
        """
        Consume the pending invitation for the principal's email exactly once.

        Profile, assignment and invitation delete commit together or not at all.
        A replay after success finds no invitation and is rejected with NotFound.
        """

        grant = grant_invitee(principal, operation="invitations.accept")
        email = principal.email_canonical

        async with self._gateway.session(grant) as session:
            invitations = InvitationRepo(session)
            invitation = await invitations.get_by_email(email)
            if invitation is None:
                raise NotFound("No pending invitation for this account", email=email)
            # Captured up front: a rollback expires every loaded row.
            invitation_id = invitation.id
            bot_share_name = invitation.bot_share_name

            existing = await AssignmentRepo(session).get_for_pair(
                user_id=principal.id, bot_share_name=bot_share_name
            )
            if existing is not None:
                raise Conflict(
                    "Account already has an assignment for this bot",
                    bot_share_name=bot_share_name,
                    assignment_id=str(existing.id),
                )

            try:
                await ProfileRepo(session).upsert(
                    user_id=principal.id,
                    first_name=first_name or invitation.first_name,
                    surname=surname or invitation.surname,
                )
                row = await AssignmentRepo(session).create(
                    user_id=principal.id,
                    bot_share_name=bot_share_name,
                    role=AssignmentRole(invitation.role),
                    is_active=True,
                )
                await invitations.delete(invitation_id)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                log.error(
                    "invitation_reconciliation_failed",
                    email=email,
                    principal_id=principal.id,
                    invitation_id=str(invitation_id),
                    bot_share_name=bot_share_name,
                    error=str(e),
                )
                raise PartialReconciliation(
                    "Account setup could not be completed; retry",
                    email=email,
                    principal_id=principal.id,
                    invitation_id=str(invitation_id),
                ) from e

        log.info(
            "invitation_accepted",
            principal_id=principal.id,
            email=email,
            assignment_id=str(row.id),
            bot_share_name=row.bot_share_name,
        )
        return AssignmentRecord.from_row(row)

    async def cancel(self, principal: Principal, invitation_id: uuid.UUID) -> None:
        access = await self._resolver.resolve(principal)
        if access.unavailable:
            raise ClassificationUnavailable(
                "Role classification unavailable", principal_id=principal.id
            )

        # Visibility check on the caller's own (policy-filtered) session.
        invitation = await InvitationRepo(self._session).get(invitation_id)
        if invitation is None:
            raise NotFound("Invitation not found", invitation_id=str(invitation_id))
        grant = grant_resource_admin(
            access,
            resource_id=invitation.bot_share_name,
            operation="invitations.cancel",
            owner_id=invitation.invited_by,
        )
        identity = self._require_identity()

        async with self._gateway.session(grant) as session:
            repo = InvitationRepo(session)
            current = await repo.get(invitation_id)
            if current is None:
                raise NotFound("Invitation not found", invitation_id=str(invitation_id))

            try:
                account = await identity.find_user_by_email(current.email)
                if account is not None and not account.setup_completed:
                    await identity.delete_user(account.id)
                    log.info(
                        "invitation_account_shell_deleted",
                        email=current.email,
                        account_id=account.id,
                    )
            except IdentityProviderError as e:
                # Keep the invitation so the cancellation can be retried.
                raise DataUnavailable(
                    "Could not remove pending account", email=current.email
                ) from e

            await repo.delete(invitation_id)
            await session.commit()

        log.info(
            "invitation_cancelled",
            actor=principal.id,
            invitation_id=str(invitation_id),
            email=invitation.email,
        )

    async def list_visible(self, principal: Principal) -> list[InvitationRecord]:
        access = await self._resolver.resolve(principal)
        if access.unavailable:
            raise ClassificationUnavailable(
                "Role classification unavailable", principal_id=principal.id
            )

        if access.is_superadmin:
            grant = grant_superadmin(access, operation="invitations.list")
            async with self._gateway.session(grant) as session:
                rows = await InvitationRepo(session).list_all()
        else:
            rows = await InvitationRepo(self._session).list_visible_to(
                user_id=principal.id, bot_share_names=access.accessible_resource_ids
            )
        return [InvitationRecord.from_row(r) for r in rows]


# --- Module Notes -----------------------------------------------------------
# Reconciliation relies on a single database transaction; the identity
# provider's account is never touched by `accept`.
