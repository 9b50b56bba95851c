# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from leaveflow.models.enums import LeaveStatus
from leaveflow.services.duration import inclusive_day_count
from leaveflow.services.store import LeaveRecord

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateLeavePayload(BaseModel):
    """Request body for applying for leave.

    ``user_id`` defaults to the caller; only admins may file for someone else.
    Datetimes are accepted and truncated to their calendar date.
    """

    user_id: uuid.UUID | None = None
    leave_type: str = Field(min_length=1, max_length=50)
    start_date: date | datetime
    end_date: date | datetime
    reason: str | None = Field(default=None, max_length=2000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    user_id: uuid.UUID
    leave_type: str
    start_date: date
    end_date: date
    days: int
    reason: str | None
    status: LeaveStatus
    required_approvals: list[str]
    created_at: datetime


class LeaveWithOwnerResponse(LeaveResponse):
    """Leave request annotated with its owner's name."""

    user_name: str


class LeaveListResponse(BaseModel):
    """List of leave requests."""

    items: list[LeaveResponse]
    total: int


class OwnedLeaveListResponse(BaseModel):
    """List of leave requests annotated with owner names."""

    items: list[LeaveWithOwnerResponse]
    total: int


def build_leave_response(leave: LeaveRecord) -> LeaveResponse:
    """Map a leave record to its response schema."""
    return LeaveResponse(
        id=leave.id,  # type: ignore[arg-type]
        user_id=leave.user_id,
        leave_type=leave.leave_type,
        start_date=leave.start_date,
        end_date=leave.end_date,
        days=inclusive_day_count(leave.start_date, leave.end_date),
        reason=leave.reason,
        status=leave.status,
        required_approvals=list(leave.required_approvals),
        created_at=leave.created_at,
    )


def build_owned_leave_response(leave: LeaveRecord, user_name: str) -> LeaveWithOwnerResponse:
    """Map a leave record plus its owner's name to the annotated schema."""
    return LeaveWithOwnerResponse(**build_leave_response(leave).model_dump(), user_name=user_name)
