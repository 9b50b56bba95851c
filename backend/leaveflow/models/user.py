# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import RecordBase, utc_now
from leaveflow.models.enums import Role


class UserAccount(RecordBase, table=True):
    """A registered user with an embedded per-category leave balance."""

    __tablename__ = "user_account"

    name: str = Field(max_length=255)
    email: str = Field(max_length=320, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    role: str = Field(default=Role.EMPLOYEE, max_length=50, index=True)
    manager_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("user_account.id", ondelete="SET NULL"), nullable=True, index=True),
    )
    leave_balance: dict[str, float] = Field(default_factory=dict, sa_type=sa.JSON)
    balance_updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )
