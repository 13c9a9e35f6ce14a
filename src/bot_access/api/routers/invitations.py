"""
bot_access.api.routers.invitations

Invitation endpoints.

Responsibilities:
- Create, list and cancel invitations (bot admins and superadmins).
- Accept the pending invitation for the calling account after setup.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.status import HTTP_201_CREATED

from bot_access.api.deps import invitation_service
from bot_access.api.routers.assignments import AssignmentItem, DeletedResponse
from bot_access.auth.deps import get_principal
from bot_access.auth.models import Principal
from bot_access.db.models import AssignmentRole
from bot_access.services.invitation_service import InvitationRecord, InvitationService

router = APIRouter(prefix="/v1/invitations", tags=["invitations"])


class InvitationCreateRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str = Field(default="", max_length=128)
    surname: str = Field(default="", max_length=128)
    role: AssignmentRole = AssignmentRole.member
    bot_share_name: str = Field(min_length=1, max_length=128)


class InvitationAcceptRequest(BaseModel):
    first_name: str | None = Field(default=None, max_length=128)
    surname: str | None = Field(default=None, max_length=128)


class InvitationItem(BaseModel):
    id: uuid.UUID
    email: str
    first_name: str
    surname: str
    role: AssignmentRole
    bot_share_name: str
    invited_by: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: InvitationRecord) -> InvitationItem:
        return cls(
            id=record.id,
            email=record.email,
            first_name=record.first_name,
            surname=record.surname,
            role=record.role,
            bot_share_name=record.bot_share_name,
            invited_by=record.invited_by,
            created_at=record.created_at,
        )


class InvitationResponse(BaseModel):
    success: bool = True
    invitation: InvitationItem


class InvitationListResponse(BaseModel):
    success: bool = True
    invitations: list[InvitationItem]


class AcceptResponse(BaseModel):
    success: bool = True
    assignment: AssignmentItem


@router.get("", response_model=InvitationListResponse)
async def list_invitations(
    principal: Principal = Depends(get_principal),
    svc: InvitationService = Depends(invitation_service),
) -> InvitationListResponse:
    records = await svc.list_visible(principal)
    return InvitationListResponse(invitations=[InvitationItem.from_record(r) for r in records])


@router.post("", response_model=InvitationResponse, status_code=HTTP_201_CREATED)
async def create_invitation(
    body: InvitationCreateRequest,
    principal: Principal = Depends(get_principal),
    svc: InvitationService = Depends(invitation_service),
) -> InvitationResponse:
    record = await svc.invite(
        principal,
        email=body.email,
        first_name=body.first_name,
        surname=body.surname,
        role=body.role,
        bot_share_name=body.bot_share_name,
    )
    return InvitationResponse(invitation=InvitationItem.from_record(record))


@router.post("/accept", response_model=AcceptResponse)
async def accept_invitation(
    body: InvitationAcceptRequest,
    principal: Principal = Depends(get_principal),
    svc: InvitationService = Depends(invitation_service),
) -> AcceptResponse:
    record = await svc.accept(principal, first_name=body.first_name, surname=body.surname)
    return AcceptResponse(assignment=AssignmentItem.from_record(record))


@router.delete("/{invitation_id}", response_model=DeletedResponse)
async def cancel_invitation(
    invitation_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    svc: InvitationService = Depends(invitation_service),
) -> DeletedResponse:
    await svc.cancel(principal, invitation_id)
    return DeletedResponse()


# --- Module Notes -----------------------------------------------------------
# `/accept` needs no role: the caller is matched to the invitation by the email
# claim of their own token.
