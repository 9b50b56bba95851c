# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from leaveflow.config import get_settings
from leaveflow.exceptions import AppError, AuthenticationError, ConflictError, NotFoundError
from leaveflow.models.enums import MANAGER_ROLES, Role
from leaveflow.schemas.leave import OwnedLeaveListResponse, build_leave_response, build_owned_leave_response
from leaveflow.schemas.user import (
    LoginResponse,
    ManagerTeamResponse,
    TeamResponse,
    TeamsResponse,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
    build_user_response,
)
from leaveflow.services.balance import initial_balance
from leaveflow.services.security import hash_password, verify_password
from leaveflow.services.store import UserInfo

if TYPE_CHECKING:
    from leaveflow.schemas.user import AssignManagerPayload, LoginPayload, RegisterPayload
    from leaveflow.services.store import UnitOfWork, UserStore

logger = logging.getLogger(__name__)

_UNKNOWN_USER = "Unknown User"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _get_user_or_404(users: UserStore, user_id: uuid.UUID) -> UserInfo:
    user = await users.find_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def _get_manager(users: UserStore, manager_id: uuid.UUID, allowed: frozenset[Role]) -> UserInfo:
    """Fetch a user who is about to become someone's manager."""
    manager = await users.find_by_id(manager_id)
    if manager is None:
        raise NotFoundError("Manager not found")
    if manager.role not in allowed:
        raise AppError("Assigned user is not a manager", status_code=400)
    return manager


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def register_user(uow: UnitOfWork, payload: RegisterPayload) -> UserResponse:
    """Create a user with a hashed password and the default leave balance.

    Employees must name a manager; any manager reference must point at an
    existing manager or admin.
    """
    if await uow.users.find_by_email(payload.email) is not None:
        raise ConflictError("User already exists")

    if payload.manager_id is not None:
        await _get_manager(uow.users, payload.manager_id, MANAGER_ROLES)

    user = await uow.users.save(
        UserInfo(
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password),
            role=payload.role,
            manager_id=payload.manager_id,
            leave_balance=initial_balance(payload.leave_balance),
        )
    )
    await uow.commit()
    logger.info("Registered %s %s (%s)", user.role, user.id, user.email)
    return build_user_response(user)


async def login(uow: UnitOfWork, payload: LoginPayload) -> LoginResponse:
    """Verify credentials and hand back the placeholder token."""
    user = await uow.users.find_by_email(payload.email.strip().lower())
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.warning("Failed login for %s", payload.email)
        raise AuthenticationError
    return LoginResponse(token=get_settings().login_token, user=build_user_response(user))


async def get_user_detail(uow: UnitOfWork, user_id: uuid.UUID) -> UserDetailResponse:
    """A user's profile and all of their leave requests."""
    user = await _get_user_or_404(uow.users, user_id)
    leaves = await uow.leaves.find_by_user_id(user_id)
    return UserDetailResponse(
        user=build_user_response(user),
        leaves=[build_leave_response(leave) for leave in leaves],
    )


async def list_users(uow: UnitOfWork) -> UserListResponse:
    """List every user."""
    users = await uow.users.find_all()
    return UserListResponse(items=[build_user_response(u) for u in users], total=len(users))


async def list_leaves_with_owners(uow: UnitOfWork) -> OwnedLeaveListResponse:
    """List every leave request with its owner's name resolved."""
    leaves = await uow.leaves.find_all()
    owners = await uow.users.find_many_by_ids({leave.user_id for leave in leaves})
    names = {owner.id: owner.name for owner in owners}
    items = [build_owned_leave_response(leave, names.get(leave.user_id, _UNKNOWN_USER)) for leave in leaves]
    return OwnedLeaveListResponse(items=items, total=len(items))


async def list_teams(uow: UnitOfWork) -> TeamsResponse:
    """Group employees under their managers; employees without one are listed separately."""
    managers = await uow.users.find_all(Role.MANAGER)
    employees = await uow.users.find_all(Role.EMPLOYEE)

    teams = []
    for manager in managers:
        members = [e for e in employees if e.manager_id == manager.id]
        teams.append(
            TeamResponse(
                manager=build_user_response(manager),
                members=[build_user_response(m) for m in members],
                member_count=len(members),
            )
        )

    unassigned = [e for e in employees if e.manager_id is None]
    return TeamsResponse(teams=teams, unassigned_employees=[build_user_response(e) for e in unassigned])


async def get_manager_team(uow: UnitOfWork, manager_id: uuid.UUID) -> ManagerTeamResponse:
    """A manager's direct reports and every leave request they have filed."""
    manager = await uow.users.find_by_id(manager_id)
    if manager is None:
        raise NotFoundError("Manager not found")
    if manager.role != Role.MANAGER:
        raise AppError("User is not a manager", status_code=403)

    members = [m for m in await uow.users.find_by_manager(manager_id) if m.role == Role.EMPLOYEE]
    names = {m.id: m.name for m in members}
    leaves = await uow.leaves.find_by_user_ids(names)
    return ManagerTeamResponse(
        manager=build_user_response(manager),
        members=[build_user_response(m) for m in members],
        team_leaves=[build_owned_leave_response(leave, names.get(leave.user_id, _UNKNOWN_USER)) for leave in leaves],
    )


async def assign_manager(uow: UnitOfWork, user_id: uuid.UUID, payload: AssignManagerPayload) -> UserResponse:
    """Point an employee at a new manager, or clear the assignment with ``None``.

    Only employees can be reassigned and only to users holding the manager
    role, so no one who has a manager can themselves be a manager and the
    reporting graph cannot form a cycle.
    """
    user = await _get_user_or_404(uow.users, user_id)
    if user.role != Role.EMPLOYEE:
        raise AppError("Only employees can be assigned to managers", status_code=400)

    if payload.manager_id is not None:
        await _get_manager(uow.users, payload.manager_id, frozenset({Role.MANAGER}))

    saved = await uow.users.save(user.model_copy(update={"manager_id": payload.manager_id}))
    await uow.commit()
    logger.info("User %s manager set to %s", user_id, payload.manager_id)
    return build_user_response(saved)
