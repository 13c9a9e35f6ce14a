"""
bot_access.api.routers.users

Superadmin user directory.

Responsibilities:
- List accounts with profile names so assignments can target real user ids.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from bot_access.api.deps import user_directory
from bot_access.auth.deps import get_principal
from bot_access.auth.models import Principal
from bot_access.services.user_directory import UserDirectoryService

router = APIRouter(prefix="/v1/admin/users", tags=["users"])


class UserItem(BaseModel):
    id: str
    email: str
    setup_completed: bool
    first_name: str | None
    surname: str | None


class UserListResponse(BaseModel):
    success: bool = True
    users: list[UserItem]


@router.get("", response_model=UserListResponse)
async def list_users(
    principal: Principal = Depends(get_principal),
    svc: UserDirectoryService = Depends(user_directory),
) -> UserListResponse:
    entries = await svc.list_users(principal)
    return UserListResponse(
        users=[
            UserItem(
                id=e.id,
                email=e.email,
                setup_completed=e.setup_completed,
                first_name=e.first_name,
                surname=e.surname,
            )
            for e in entries
        ]
    )
