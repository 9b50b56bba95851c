# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import RecordBase
from leaveflow.models.enums import LeaveStatus


class LeaveRequest(RecordBase, table=True):
    """A user's leave request with its outstanding approver roles."""

    __tablename__ = "leave_request"
    __table_args__ = (sa.Index("ix_leave_request_user_status", "user_id", "status"),)

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    leave_type: str = Field(max_length=50)
    start_date: date
    end_date: date
    reason: str | None = None
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    required_approvals: list[str] = Field(default_factory=list, sa_type=sa.JSON)
