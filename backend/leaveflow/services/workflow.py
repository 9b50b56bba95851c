# ruff: noqa: TC003
"""Leave approval workflow.

A leave request starts ``pending`` with the approver roles computed by
``compute_required_approvals``. Each approval removes the acting role from
that list; the approval that empties it debits the owner's balance and moves
the request to ``approved``. A single rejection from any required role ends
the request as ``rejected``. Only pending requests can be cancelled, which
deletes them.

Every operation runs inside its own unit of work, so the approval, the
balance debit and the status change are committed together or not at all.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from pydantic import BaseModel

from leaveflow.exceptions import InvalidStateError, NotFoundError, UnauthorizedError
from leaveflow.models.enums import LeaveStatus, Role
from leaveflow.services import balance as balance_ledger
from leaveflow.services.duration import inclusive_day_count, parse_leave_range
from leaveflow.services.policy import compute_required_approvals
from leaveflow.services.store import LeaveRecord, UserInfo

if TYPE_CHECKING:
    from leaveflow.services.duration import DateInput
    from leaveflow.services.store import LeaveStore, UnitOfWork, UnitOfWorkFactory, UserStore

logger = logging.getLogger(__name__)


class ApprovalResult(BaseModel):
    """Outcome of an approval: the leave, plus the owner when the balance changed."""

    leave: LeaveRecord
    user: UserInfo | None = None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _get_leave_or_404(leaves: LeaveStore, leave_id: uuid.UUID, *, for_update: bool = False) -> LeaveRecord:
    leave = await leaves.find_by_id(leave_id, for_update=for_update)
    if leave is None:
        raise NotFoundError("Leave not found")
    return leave


async def _get_user_or_404(users: UserStore, user_id: uuid.UUID, *, for_update: bool = False) -> UserInfo:
    user = await users.find_by_id(user_id, for_update=for_update)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _require_pending_approver(leave: LeaveRecord, acting_role: Role | str) -> str:
    """Return the role name if it is still among the leave's required approvals."""
    role = str(acting_role)
    if role not in leave.required_approvals:
        logger.warning(
            "Role %s is not a required approver of leave %s (status=%s, required=%s)",
            role,
            leave.id,
            leave.status,
            leave.required_approvals,
        )
        raise UnauthorizedError("You are not authorized to perform this action on this leave")
    return role


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


class LeaveWorkflow:
    """Drives leave requests through create, approve, reject and cancel."""

    def __init__(self, unit_of_work: UnitOfWorkFactory) -> None:
        self._unit_of_work = unit_of_work

    def _begin(self) -> UnitOfWork:
        return self._unit_of_work()

    async def create(
        self,
        user_id: uuid.UUID,
        leave_type: str,
        start: DateInput,
        end: DateInput,
        reason: str | None = None,
    ) -> LeaveRecord:
        """Record a new pending leave request.

        Flow:
        1. Parse dates (reversed or malformed ranges are rejected).
        2. Validate the leave type against the configured categories.
        3. Verify the owner exists.
        4. Stamp the required approvers from the request's duration.
        5. Persist and commit.
        """
        start_date, end_date = parse_leave_range(start, end)
        category = balance_ledger.normalize_leave_type(leave_type)
        required = compute_required_approvals(start_date, end_date)

        async with self._begin() as uow:
            await _get_user_or_404(uow.users, user_id)
            leave = await uow.leaves.save(
                LeaveRecord(
                    user_id=user_id,
                    leave_type=category,
                    start_date=start_date,
                    end_date=end_date,
                    reason=reason,
                    status=LeaveStatus.PENDING,
                    required_approvals=required,
                )
            )
            await uow.commit()

        logger.info(
            "Leave %s created for user %s: %s %s..%s, awaiting %s",
            leave.id,
            user_id,
            category,
            start_date,
            end_date,
            required,
        )
        return leave

    async def approve(self, leave_id: uuid.UUID, acting_role: Role | str) -> ApprovalResult:
        """Record one role's approval; the last one debits the balance and approves.

        Flow:
        1. Load and lock the leave and its owner.
        2. Reject roles that are not (or no longer) required.
        3. Remove the acting role from the required approvals.
        4. If none remain, debit the inclusive day count from the owner's
           balance and mark the leave approved. An insufficient balance aborts
           the unit of work, so the stored leave still requires the role.
        5. Persist and commit.
        """
        async with self._begin() as uow:
            leave = await _get_leave_or_404(uow.leaves, leave_id, for_update=True)
            user = await _get_user_or_404(uow.users, leave.user_id, for_update=True)
            role = _require_pending_approver(leave, acting_role)

            remaining = [r for r in leave.required_approvals if r != role]
            updated_user: UserInfo | None = None
            if remaining:
                status = LeaveStatus.PENDING
            else:
                days = inclusive_day_count(leave.start_date, leave.end_date)
                updated_user = await balance_ledger.debit(uow.users, user, leave.leave_type, days)
                status = LeaveStatus.APPROVED

            saved = await uow.leaves.save(
                leave.model_copy(update={"required_approvals": remaining, "status": status})
            )
            await uow.commit()

        logger.info("Leave %s approved by %s, status=%s remaining=%s", leave_id, role, saved.status, remaining)
        return ApprovalResult(leave=saved, user=updated_user)

    async def reject(self, leave_id: uuid.UUID, acting_role: Role | str) -> LeaveRecord:
        """Reject the leave outright if the acting role is a required approver."""
        async with self._begin() as uow:
            leave = await _get_leave_or_404(uow.leaves, leave_id, for_update=True)
            role = _require_pending_approver(leave, acting_role)
            saved = await uow.leaves.save(
                leave.model_copy(update={"required_approvals": [], "status": LeaveStatus.REJECTED})
            )
            await uow.commit()

        logger.info("Leave %s rejected by %s", leave_id, role)
        return saved

    async def cancel(self, leave_id: uuid.UUID) -> None:
        """Delete a pending leave. Approved and rejected leaves are kept as history."""
        async with self._begin() as uow:
            leave = await _get_leave_or_404(uow.leaves, leave_id, for_update=True)
            if leave.status.is_terminal:
                raise InvalidStateError("Cannot cancel after processing")
            await uow.leaves.delete(leave_id, expected_version=leave.version)
            await uow.commit()

        logger.info("Leave %s cancelled", leave_id)

    async def get(self, leave_id: uuid.UUID) -> LeaveRecord:
        """Fetch a single leave request."""
        async with self._begin() as uow:
            return await _get_leave_or_404(uow.leaves, leave_id)

    async def list_for_user(self, user_id: uuid.UUID) -> list[LeaveRecord]:
        """List a user's leave requests, oldest first."""
        async with self._begin() as uow:
            return await uow.leaves.find_by_user_id(user_id)

    async def list_all(self) -> list[LeaveRecord]:
        """List every leave request, oldest first."""
        async with self._begin() as uow:
            return await uow.leaves.find_all()
