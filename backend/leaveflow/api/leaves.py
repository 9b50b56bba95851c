# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from leaveflow.api.deps import AuthDep, WorkflowDep
from leaveflow.exceptions import UnauthorizedError
from leaveflow.models.enums import Role
from leaveflow.schemas.approval import ApprovalResponse
from leaveflow.schemas.leave import (
    CreateLeavePayload,
    LeaveListResponse,
    LeaveResponse,
    build_leave_response,
)
from leaveflow.schemas.user import build_user_response

leaves_router = APIRouter(prefix="/leaves", tags=["leaves"])


@leaves_router.post("", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
async def create_leave(
    payload: CreateLeavePayload,
    workflow: WorkflowDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Apply for leave; admins may file on behalf of another user."""
    owner_id = payload.user_id or auth.user_id
    if owner_id != auth.user_id and auth.role != Role.ADMIN:
        raise UnauthorizedError("Not authorized to apply for leave on behalf of another user")
    leave = await workflow.create(owner_id, payload.leave_type, payload.start_date, payload.end_date, payload.reason)
    return build_leave_response(leave)


@leaves_router.get("", response_model=LeaveListResponse)
async def list_leaves(
    workflow: WorkflowDep,
    auth: AuthDep,
    user_id: uuid.UUID | None = Query(default=None),
) -> LeaveListResponse:
    """List a user's leave requests (the caller's own by default)."""
    leaves = await workflow.list_for_user(user_id or auth.user_id)
    return LeaveListResponse(items=[build_leave_response(leave) for leave in leaves], total=len(leaves))


@leaves_router.get("/{leave_id}", response_model=LeaveResponse)
async def get_leave(
    leave_id: uuid.UUID,
    workflow: WorkflowDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Get a single leave request."""
    return build_leave_response(await workflow.get(leave_id))


@leaves_router.post("/{leave_id}/approve", response_model=ApprovalResponse)
async def approve_leave(
    leave_id: uuid.UUID,
    workflow: WorkflowDep,
    auth: AuthDep,
) -> ApprovalResponse:
    """Record the caller's role as having approved the leave."""
    result = await workflow.approve(leave_id, auth.role)
    return ApprovalResponse(
        message="Leave action recorded",
        leave=build_leave_response(result.leave),
        user=build_user_response(result.user) if result.user is not None else None,
    )


@leaves_router.post("/{leave_id}/reject", response_model=LeaveResponse)
async def reject_leave(
    leave_id: uuid.UUID,
    workflow: WorkflowDep,
    auth: AuthDep,
) -> LeaveResponse:
    """Reject the leave with the caller's role."""
    return build_leave_response(await workflow.reject(leave_id, auth.role))


@leaves_router.delete("/{leave_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_leave(
    leave_id: uuid.UUID,
    workflow: WorkflowDep,
    auth: AuthDep,
) -> None:
    """Cancel a pending leave request (its owner or an admin)."""
    leave = await workflow.get(leave_id)
    if leave.user_id != auth.user_id and auth.role != Role.ADMIN:
        raise UnauthorizedError("Not authorized to cancel this leave")
    await workflow.cancel(leave_id)
