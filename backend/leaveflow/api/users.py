# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from leaveflow.api.deps import AdminDep, AuthDep, UnitOfWorkFactoryDep, require_admin
from leaveflow.schemas.leave import OwnedLeaveListResponse
from leaveflow.schemas.user import (
    AssignManagerPayload,
    LoginPayload,
    LoginResponse,
    ManagerTeamResponse,
    RegisterPayload,
    TeamsResponse,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
)
from leaveflow.services import user as user_service

auth_router = APIRouter(prefix="/auth", tags=["auth"])
users_router = APIRouter(prefix="/users", tags=["users"])
managers_router = APIRouter(prefix="/managers", tags=["managers"])
admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@auth_router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterPayload, unit_of_work: UnitOfWorkFactoryDep) -> UserResponse:
    """Register a new user."""
    async with unit_of_work() as uow:
        return await user_service.register_user(uow, payload)


@auth_router.post("/login", response_model=LoginResponse)
async def login(payload: LoginPayload, unit_of_work: UnitOfWorkFactoryDep) -> LoginResponse:
    """Check credentials and return the session token."""
    async with unit_of_work() as uow:
        return await user_service.login(uow, payload)


@users_router.get("/{user_id}", response_model=UserDetailResponse)
async def get_user(user_id: uuid.UUID, unit_of_work: UnitOfWorkFactoryDep, auth: AuthDep) -> UserDetailResponse:
    """Get a user's profile and leave requests."""
    async with unit_of_work() as uow:
        return await user_service.get_user_detail(uow, user_id)


@managers_router.get("/{manager_id}/team", response_model=ManagerTeamResponse)
async def get_manager_team(
    manager_id: uuid.UUID, unit_of_work: UnitOfWorkFactoryDep, auth: AuthDep
) -> ManagerTeamResponse:
    """Get a manager's team and the team's leave requests."""
    async with unit_of_work() as uow:
        return await user_service.get_manager_team(uow, manager_id)


@admin_router.get("/users", response_model=UserListResponse)
async def list_users(unit_of_work: UnitOfWorkFactoryDep) -> UserListResponse:
    """List all users (admin only)."""
    async with unit_of_work() as uow:
        return await user_service.list_users(uow)


@admin_router.get("/leaves", response_model=OwnedLeaveListResponse)
async def list_leaves(unit_of_work: UnitOfWorkFactoryDep) -> OwnedLeaveListResponse:
    """List all leave requests with owner names (admin only)."""
    async with unit_of_work() as uow:
        return await user_service.list_leaves_with_owners(uow)


@admin_router.get("/teams", response_model=TeamsResponse)
async def list_teams(unit_of_work: UnitOfWorkFactoryDep) -> TeamsResponse:
    """List managers with their teams and any unassigned employees (admin only)."""
    async with unit_of_work() as uow:
        return await user_service.list_teams(uow)


@admin_router.put("/users/{user_id}/manager", response_model=UserResponse)
async def assign_manager(
    user_id: uuid.UUID,
    payload: AssignManagerPayload,
    unit_of_work: UnitOfWorkFactoryDep,
    auth: AdminDep,
) -> UserResponse:
    """Assign or clear an employee's manager (admin only)."""
    async with unit_of_work() as uow:
        return await user_service.assign_manager(uow, user_id, payload)
