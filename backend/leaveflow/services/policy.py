from __future__ import annotations

from typing import TYPE_CHECKING

from leaveflow.models.enums import Role
from leaveflow.services.duration import inclusive_day_count

if TYPE_CHECKING:
    from leaveflow.services.duration import DateInput

# Requests up to this many days need sign-off from both HR and the manager.
SHORT_LEAVE_MAX_DAYS = 2

_SHORT_LEAVE_APPROVERS: tuple[Role, ...] = (Role.HR, Role.MANAGER)
_LONG_LEAVE_APPROVERS: tuple[Role, ...] = (Role.MANAGER,)


def compute_required_approvals(start: DateInput, end: DateInput) -> list[str]:
    """Return the roles that must each approve a leave over start..end.

    Short leave (at most ``SHORT_LEAVE_MAX_DAYS`` inclusive days) needs both
    HR and the manager, in any order; anything longer needs the manager only.
    Raises ``InvalidDateRangeError`` if either date does not parse.
    """
    days = inclusive_day_count(start, end)
    approvers = _SHORT_LEAVE_APPROVERS if days <= SHORT_LEAVE_MAX_DAYS else _LONG_LEAVE_APPROVERS
    return [role.value for role in approvers]
