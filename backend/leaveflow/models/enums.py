from __future__ import annotations

import enum


class Role(enum.StrEnum):
    """Role a user holds; approvers are matched against these names."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    HR = "hr"
    ADMIN = "admin"


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests. Cancellation deletes, so it has no state."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not LeaveStatus.PENDING


# Roles allowed to be referenced as someone's manager.
MANAGER_ROLES = frozenset({Role.MANAGER, Role.ADMIN})
