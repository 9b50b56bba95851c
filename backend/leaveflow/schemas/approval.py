# ruff: noqa: TC001
from __future__ import annotations

from pydantic import BaseModel

from leaveflow.schemas.leave import LeaveResponse
from leaveflow.schemas.user import UserResponse


class ApprovalResponse(BaseModel):
    """Result of an approval; ``user`` is set when the approval debited a balance."""

    message: str
    leave: LeaveResponse
    user: UserResponse | None = None
