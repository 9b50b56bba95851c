from sqlmodel import SQLModel

from leaveflow.models.base import RecordBase
from leaveflow.models.enums import MANAGER_ROLES, LeaveStatus, Role
from leaveflow.models.leave import LeaveRequest
from leaveflow.models.user import UserAccount

__all__ = [
    "MANAGER_ROLES",
    "LeaveRequest",
    "LeaveStatus",
    "RecordBase",
    "Role",
    "SQLModel",
    "UserAccount",
]
