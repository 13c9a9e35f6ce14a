"""
bot_access.db.models

Core persistence schema for the access core.

Responsibilities:
- Define ORM models for the tables the access core reads and writes:
  - Bot: tenant resource, identified by `bot_share_name`
  - SuperUser: superadmin marker rows
  - BotUser: one (user, bot, role, active) assignment
  - UserInvitation: pending invitation, one per email
  - UserProfile: profile created on account setup
  - Thread: conversation thread, the canonical bot-scoped listing
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid as SAUuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from bot_access.db.base import Base


def _utcnow() -> datetime:
    # Persist naive UTC timestamps for simplicity; production systems may use tz-aware types.
    return datetime.utcnow()


class AssignmentRole(enum.StrEnum):
    # Enum values are stored in DB; treat as stable API contract.
    admin = "admin"
    member = "member"


class Bot(Base):
    __tablename__ = "bots"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # Resource identifier. NULL means "not provisioned yet".
    bot_share_name: Mapped[str | None] = mapped_column(String(128), nullable=True, unique=True)
    client_name: Mapped[str] = mapped_column(String(256), nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)


class SuperUser(Base):
    __tablename__ = "bot_super_users"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)


class BotUser(Base):
    __tablename__ = "bot_users"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    bot_share_name: Mapped[str] = mapped_column(
        String(128), ForeignKey("bots.bot_share_name"), nullable=False, index=True
    )
    role: Mapped[AssignmentRole] = mapped_column(
        Enum(AssignmentRole, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    # Authoritative guard against concurrent duplicate creates.
    __table_args__ = (
        UniqueConstraint("user_id", "bot_share_name", name="uq_bot_users_user_bot"),
        Index("ix_bot_users_user_active", "user_id", "is_active"),
    )


class UserInvitation(Base):
    __tablename__ = "user_invitations"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # Stored canonical (trimmed, lower-case); one live invitation per email.
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    surname: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    role: Mapped[AssignmentRole] = mapped_column(
        Enum(AssignmentRole, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    bot_share_name: Mapped[str] = mapped_column(
        String(128), ForeignKey("bots.bot_share_name"), nullable=False, index=True
    )
    invited_by: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)


class UserProfile(Base):
    __tablename__ = "user_profiles"

    # Same identifier as the identity provider account.
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    surname: Mapped[str] = mapped_column(String(128), nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class Thread(Base):
    __tablename__ = "threads"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    bot_share_name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    thread_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    message_preview: Mapped[str | None] = mapped_column(Text, nullable=True)
    message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (Index("ix_threads_bot_created", "bot_share_name", "created_at"),)


# --- Module Notes -----------------------------------------------------------
# `bot_users.user_id` is the only column that links an assignment to a principal.
# The assignment's own `id` is never compared against a principal id.
