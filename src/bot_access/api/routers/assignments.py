"""
bot_access.api.routers.assignments

Superadmin administration of user-to-bot assignments.

Responsibilities:
- List/create/update/delete `bot_users` rows through AssignmentService.
- Validate request bodies; the service re-checks the caller's role per call.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.status import HTTP_201_CREATED

from bot_access.api.deps import assignment_service
from bot_access.auth.deps import get_principal
from bot_access.auth.models import Principal
from bot_access.db.models import AssignmentRole
from bot_access.services.assignment_service import AssignmentRecord, AssignmentService

router = APIRouter(prefix="/v1/admin/assignments", tags=["assignments"])


class AssignmentCreateRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    bot_share_name: str = Field(min_length=1, max_length=128)
    role: AssignmentRole
    is_active: bool = True


class AssignmentUpdateRequest(BaseModel):
    # Omitted fields stay untouched; explicit nulls are treated as omitted.
    role: AssignmentRole | None = None
    is_active: bool | None = None


class AssignmentItem(BaseModel):
    id: uuid.UUID
    user_id: str
    bot_share_name: str
    role: AssignmentRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: AssignmentRecord) -> AssignmentItem:
        return cls(
            id=record.id,
            user_id=record.user_id,
            bot_share_name=record.bot_share_name,
            role=record.role,
            is_active=record.is_active,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class AssignmentResponse(BaseModel):
    success: bool = True
    assignment: AssignmentItem


class AssignmentListResponse(BaseModel):
    success: bool = True
    assignments: list[AssignmentItem]


class DeletedResponse(BaseModel):
    success: bool = True


@router.get("", response_model=AssignmentListResponse)
async def list_assignments(
    principal: Principal = Depends(get_principal),
    svc: AssignmentService = Depends(assignment_service),
) -> AssignmentListResponse:
    records = await svc.list_all(principal)
    return AssignmentListResponse(assignments=[AssignmentItem.from_record(r) for r in records])


@router.post("", response_model=AssignmentResponse, status_code=HTTP_201_CREATED)
async def create_assignment(
    body: AssignmentCreateRequest,
    principal: Principal = Depends(get_principal),
    svc: AssignmentService = Depends(assignment_service),
) -> AssignmentResponse:
    record = await svc.create(
        principal,
        user_id=body.user_id,
        bot_share_name=body.bot_share_name,
        role=body.role,
        is_active=body.is_active,
    )
    return AssignmentResponse(assignment=AssignmentItem.from_record(record))


@router.patch("/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment(
    assignment_id: uuid.UUID,
    body: AssignmentUpdateRequest,
    principal: Principal = Depends(get_principal),
    svc: AssignmentService = Depends(assignment_service),
) -> AssignmentResponse:
    record = await svc.update(
        principal, assignment_id, role=body.role, is_active=body.is_active
    )
    return AssignmentResponse(assignment=AssignmentItem.from_record(record))


@router.delete("/{assignment_id}", response_model=DeletedResponse)
async def delete_assignment(
    assignment_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    svc: AssignmentService = Depends(assignment_service),
) -> DeletedResponse:
    await svc.delete(principal, assignment_id)
    return DeletedResponse()
