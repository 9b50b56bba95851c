# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from leaveflow.models.enums import Role
from leaveflow.schemas.leave import LeaveResponse, LeaveWithOwnerResponse
from leaveflow.services.store import BalanceDays, UserInfo

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class RegisterPayload(BaseModel):
    """Request body for registering a new user."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=1024)
    role: Role = Role.EMPLOYEE
    manager_id: uuid.UUID | None = None
    leave_balance: dict[str, BalanceDays] | None = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            msg = "email must contain '@'"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _employee_needs_manager(self) -> Self:
        if self.role == Role.EMPLOYEE and self.manager_id is None:
            msg = "Manager assignment is required for employees"
            raise ValueError(msg)
        return self


class AuthContext(BaseModel):
    """Caller identity taken from the ``X-User-Id`` / ``X-Role`` headers."""

    user_id: uuid.UUID
    role: Role = Role.EMPLOYEE


class LoginPayload(BaseModel):
    """Request body for logging in."""

    email: str
    password: str


class AssignManagerPayload(BaseModel):
    """Request body for assigning (or clearing, with null) an employee's manager."""

    manager_id: uuid.UUID | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveBalanceResponse(BaseModel):
    """Per-category remaining days."""

    counters: dict[str, float]
    updated_at: datetime


class UserResponse(BaseModel):
    """Public view of a user; the password hash is never included."""

    id: uuid.UUID
    name: str
    email: str
    role: Role
    manager_id: uuid.UUID | None
    leave_balance: LeaveBalanceResponse
    created_at: datetime


class UserListResponse(BaseModel):
    """List of users."""

    items: list[UserResponse]
    total: int


class LoginResponse(BaseModel):
    """Placeholder token plus the logged-in user's profile."""

    token: str
    user: UserResponse


class UserDetailResponse(BaseModel):
    """A user together with their leave requests."""

    user: UserResponse
    leaves: list[LeaveResponse]


class TeamResponse(BaseModel):
    """A manager and the employees reporting to them."""

    manager: UserResponse
    members: list[UserResponse]
    member_count: int


class TeamsResponse(BaseModel):
    """Every manager's team plus employees with no manager."""

    teams: list[TeamResponse]
    unassigned_employees: list[UserResponse]


class ManagerTeamResponse(BaseModel):
    """One manager's team and the team's leave requests."""

    manager: UserResponse
    members: list[UserResponse]
    team_leaves: list[LeaveWithOwnerResponse]


def build_user_response(user: UserInfo) -> UserResponse:
    """Map a user record to its response schema."""
    return UserResponse(
        id=user.id,  # type: ignore[arg-type]
        name=user.name,
        email=user.email,
        role=user.role,
        manager_id=user.manager_id,
        leave_balance=LeaveBalanceResponse(
            counters=dict(user.leave_balance.counters),
            updated_at=user.leave_balance.updated_at,
        ),
        created_at=user.created_at,
    )
