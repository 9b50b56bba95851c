# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header

from leaveflow.db import SessionDep
from leaveflow.exceptions import UnauthorizedError
from leaveflow.models.enums import Role
from leaveflow.schemas.user import AuthContext
from leaveflow.services.sql_store import SqlUnitOfWork
from leaveflow.services.store import UnitOfWorkFactory
from leaveflow.services.workflow import LeaveWorkflow


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: Role = Header(default=Role.EMPLOYEE),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if auth.role != Role.ADMIN:
        raise UnauthorizedError("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def get_unit_of_work_factory(session: SessionDep) -> UnitOfWorkFactory:
    """Units of work for this request, all sharing the request's session."""
    return lambda: SqlUnitOfWork(session)


UnitOfWorkFactoryDep = Annotated[UnitOfWorkFactory, Depends(get_unit_of_work_factory)]


async def get_workflow(unit_of_work: UnitOfWorkFactoryDep) -> LeaveWorkflow:
    """FastAPI dependency for the leave workflow."""
    return LeaveWorkflow(unit_of_work)


WorkflowDep = Annotated[LeaveWorkflow, Depends(get_workflow)]
