# ruff: noqa: TC003
from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Self

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leaveflow.exceptions import ConcurrentUpdateError, ConflictError
from leaveflow.models.enums import LeaveStatus, Role
from leaveflow.models.leave import LeaveRequest
from leaveflow.models.user import UserAccount
from leaveflow.services.store import LeaveBalance, LeaveRecord, UserInfo

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from leaveflow.services.store import UnitOfWorkFactory


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


def _user_from_row(row: UserAccount) -> UserInfo:
    return UserInfo(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        role=Role(row.role),
        manager_id=row.manager_id,
        leave_balance=LeaveBalance(counters=dict(row.leave_balance or {}), updated_at=row.balance_updated_at),
        created_at=row.created_at,
        version=row.version,
    )


def _user_values(user: UserInfo) -> dict[str, Any]:
    return {
        "name": user.name,
        "email": user.email,
        "password_hash": user.password_hash,
        "role": user.role.value,
        "manager_id": user.manager_id,
        "leave_balance": dict(user.leave_balance.counters),
        "balance_updated_at": user.leave_balance.updated_at,
    }


def _leave_from_row(row: LeaveRequest) -> LeaveRecord:
    return LeaveRecord(
        id=row.id,
        user_id=row.user_id,
        leave_type=row.leave_type,
        start_date=row.start_date,
        end_date=row.end_date,
        reason=row.reason,
        status=LeaveStatus(row.status),
        required_approvals=list(row.required_approvals or []),
        created_at=row.created_at,
        version=row.version,
    )


def _leave_values(leave: LeaveRecord) -> dict[str, Any]:
    return {
        "user_id": leave.user_id,
        "leave_type": leave.leave_type,
        "start_date": leave.start_date,
        "end_date": leave.end_date,
        "reason": leave.reason,
        "status": leave.status.value,
        "required_approvals": list(leave.required_approvals),
    }


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class SqlUserStore:
    """``UserStore`` backed by the ``user_account`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _fetch(self, *criteria: Any, for_update: bool = False) -> list[UserInfo]:
        query = (
            select(UserAccount)
            .where(*criteria)
            .order_by(col(UserAccount.created_at))
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self._session.execute(query)
        return [_user_from_row(row) for row in result.scalars().all()]

    async def find_by_id(self, user_id: uuid.UUID, *, for_update: bool = False) -> UserInfo | None:
        rows = await self._fetch(col(UserAccount.id) == user_id, for_update=for_update)
        return rows[0] if rows else None

    async def find_by_email(self, email: str) -> UserInfo | None:
        rows = await self._fetch(col(UserAccount.email) == email.lower())
        return rows[0] if rows else None

    async def find_many_by_ids(self, user_ids: Iterable[uuid.UUID]) -> list[UserInfo]:
        ids = list(user_ids)
        if not ids:
            return []
        return await self._fetch(col(UserAccount.id).in_(ids))

    async def find_all(self, role: Role | None = None) -> list[UserInfo]:
        if role is None:
            return await self._fetch()
        return await self._fetch(col(UserAccount.role) == role.value)

    async def find_by_manager(self, manager_id: uuid.UUID) -> list[UserInfo]:
        return await self._fetch(col(UserAccount.manager_id) == manager_id)

    async def save(self, user: UserInfo) -> UserInfo:
        if user.version == 0:
            row = UserAccount(**_user_values(user), created_at=user.created_at)
            if user.id is not None:
                row.id = user.id
            self._session.add(row)
            try:
                await self._session.flush()
            except IntegrityError:
                raise ConflictError(f"User with email {user.email} already exists") from None
            return _user_from_row(row)

        try:
            result = await self._session.execute(
                update(UserAccount)
                .where(col(UserAccount.id) == user.id, col(UserAccount.version) == user.version)
                .values(**_user_values(user), version=user.version + 1)
            )
        except IntegrityError:
            raise ConflictError(f"User with email {user.email} already exists") from None
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise ConcurrentUpdateError("User", user.id)
        return user.model_copy(update={"version": user.version + 1}, deep=True)


class SqlLeaveStore:
    """``LeaveStore`` backed by the ``leave_request`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _fetch(self, *criteria: Any, for_update: bool = False) -> list[LeaveRecord]:
        query = (
            select(LeaveRequest)
            .where(*criteria)
            .order_by(col(LeaveRequest.created_at))
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self._session.execute(query)
        return [_leave_from_row(row) for row in result.scalars().all()]

    async def find_by_id(self, leave_id: uuid.UUID, *, for_update: bool = False) -> LeaveRecord | None:
        rows = await self._fetch(col(LeaveRequest.id) == leave_id, for_update=for_update)
        return rows[0] if rows else None

    async def find_all(self) -> list[LeaveRecord]:
        return await self._fetch()

    async def find_by_user_id(self, user_id: uuid.UUID) -> list[LeaveRecord]:
        return await self._fetch(col(LeaveRequest.user_id) == user_id)

    async def find_by_user_ids(self, user_ids: Iterable[uuid.UUID]) -> list[LeaveRecord]:
        ids = list(user_ids)
        if not ids:
            return []
        return await self._fetch(col(LeaveRequest.user_id).in_(ids))

    async def save(self, leave: LeaveRecord) -> LeaveRecord:
        if leave.version == 0:
            row = LeaveRequest(**_leave_values(leave), created_at=leave.created_at)
            if leave.id is not None:
                row.id = leave.id
            self._session.add(row)
            await self._session.flush()
            return _leave_from_row(row)

        result = await self._session.execute(
            update(LeaveRequest)
            .where(col(LeaveRequest.id) == leave.id, col(LeaveRequest.version) == leave.version)
            .values(**_leave_values(leave), version=leave.version + 1)
        )
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise ConcurrentUpdateError("Leave", leave.id)
        return leave.model_copy(update={"version": leave.version + 1}, deep=True)

    async def delete(self, leave_id: uuid.UUID, *, expected_version: int | None = None) -> bool:
        statement = delete(LeaveRequest).where(col(LeaveRequest.id) == leave_id)
        if expected_version is not None:
            statement = statement.where(col(LeaveRequest.version) == expected_version)
        result = await self._session.execute(statement)
        if result.rowcount == 1:  # type: ignore[attr-defined]
            return True
        if expected_version is not None and await self.find_by_id(leave_id) is not None:
            raise ConcurrentUpdateError("Leave", leave_id)
        return False


class SqlUnitOfWork:
    """Unit of work sharing one ``AsyncSession`` (and so one transaction) across both stores.

    With ``close_session`` the session is closed on exit; use it when the
    unit of work owns a session opened just for it.
    """

    def __init__(self, session: AsyncSession, *, close_session: bool = False) -> None:
        self._session = session
        self._close_session = close_session
        self.users = SqlUserStore(session)
        self.leaves = SqlLeaveStore(session)
        self._committed = False

    async def commit(self) -> None:
        await self._session.commit()
        self._committed = True

    async def rollback(self) -> None:
        await self._session.rollback()

    async def __aenter__(self) -> Self:
        self._committed = False
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self._committed:
            await self.rollback()
        if self._close_session:
            await self._session.close()


def sql_unit_of_work_factory(session_factory: async_sessionmaker[AsyncSession]) -> UnitOfWorkFactory:
    """Units of work that each open, and close, a session of their own."""
    return lambda: SqlUnitOfWork(session_factory(), close_session=True)
