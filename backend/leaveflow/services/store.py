# ruff: noqa: TC003
"""Record types and storage interfaces consumed by the leave workflow.

The workflow never talks to a database directly. It opens a unit of work,
reads and writes ``UserInfo`` / ``LeaveRecord`` values through the two
stores it exposes, and commits. Every saved record carries a ``version``;
writes of an existing record only succeed if the stored version still
matches, otherwise ``ConcurrentUpdateError`` is raised and nothing from the
unit of work is applied.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Annotated, Generic, Protocol, Self, TypeVar, runtime_checkable

from pydantic import BaseModel, Field

from leaveflow.exceptions import ConcurrentUpdateError, ConflictError
from leaveflow.models.enums import LeaveStatus, Role

if TYPE_CHECKING:
    from types import TracebackType


def _now_utc() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


# A balance counter: finite and never below zero.
BalanceDays = Annotated[float, Field(ge=0, allow_inf_nan=False)]


class LeaveBalance(BaseModel):
    """Per-category leave allotment owned by a single user."""

    counters: dict[str, BalanceDays] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=_now_utc)

    def available(self, category: str) -> float:
        """Remaining days for the category; a missing counter counts as zero."""
        return self.counters.get(category, 0)


class UserInfo(BaseModel):
    """A user as seen by the workflow and the directory service."""

    id: uuid.UUID | None = None
    name: str
    email: str
    password_hash: str
    role: Role = Role.EMPLOYEE
    manager_id: uuid.UUID | None = None
    leave_balance: LeaveBalance = Field(default_factory=LeaveBalance)
    created_at: datetime = Field(default_factory=_now_utc)
    version: int = 0  # 0 until the store has saved it once


class LeaveRecord(BaseModel):
    """A leave request and the approver roles it is still waiting on."""

    id: uuid.UUID | None = None
    user_id: uuid.UUID
    leave_type: str
    start_date: date
    end_date: date
    reason: str | None = None
    status: LeaveStatus = LeaveStatus.PENDING
    required_approvals: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now_utc)
    version: int = 0


# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------


@runtime_checkable
class UserStore(Protocol):
    """User persistence. ``save`` is an upsert keyed by id."""

    async def find_by_id(self, user_id: uuid.UUID, *, for_update: bool = False) -> UserInfo | None: ...

    async def find_by_email(self, email: str) -> UserInfo | None: ...

    async def find_many_by_ids(self, user_ids: Iterable[uuid.UUID]) -> list[UserInfo]: ...

    async def find_all(self, role: Role | None = None) -> list[UserInfo]: ...

    async def find_by_manager(self, manager_id: uuid.UUID) -> list[UserInfo]: ...

    async def save(self, user: UserInfo) -> UserInfo: ...


@runtime_checkable
class LeaveStore(Protocol):
    """Leave request persistence."""

    async def find_by_id(self, leave_id: uuid.UUID, *, for_update: bool = False) -> LeaveRecord | None: ...

    async def find_all(self) -> list[LeaveRecord]: ...

    async def find_by_user_id(self, user_id: uuid.UUID) -> list[LeaveRecord]: ...

    async def find_by_user_ids(self, user_ids: Iterable[uuid.UUID]) -> list[LeaveRecord]: ...

    async def save(self, leave: LeaveRecord) -> LeaveRecord: ...

    async def delete(self, leave_id: uuid.UUID, *, expected_version: int | None = None) -> bool: ...


@runtime_checkable
class UnitOfWork(Protocol):
    """Transaction boundary around one workflow operation."""

    users: UserStore
    leaves: LeaveStore

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...

    async def __aenter__(self) -> Self: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...


UnitOfWorkFactory = Callable[[], UnitOfWork]


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

RecordT = TypeVar("RecordT", UserInfo, LeaveRecord)


class _StagedTable(Generic[RecordT]):
    """Writes buffered on top of committed rows until the unit of work commits."""

    def __init__(self, entity: str, committed: dict[uuid.UUID, RecordT], unique: str | None = None) -> None:
        self._entity = entity
        self._committed = committed
        self._unique = unique
        self._writes: dict[uuid.UUID, RecordT] = {}
        self._deletes: set[uuid.UUID] = set()
        # Version each touched row had when this unit of work first wrote it.
        self._base_versions: dict[uuid.UUID, int] = {}

    def _current(self, record_id: uuid.UUID) -> RecordT | None:
        if record_id in self._deletes:
            return None
        if record_id in self._writes:
            return self._writes[record_id]
        return self._committed.get(record_id)

    def get(self, record_id: uuid.UUID) -> RecordT | None:
        row = self._current(record_id)
        return None if row is None else row.model_copy(deep=True)

    def rows(self) -> list[RecordT]:
        merged = {key: row for key, row in self._committed.items() if key not in self._deletes}
        merged.update(self._writes)
        ordered = sorted(merged.values(), key=lambda row: row.created_at)
        return [row.model_copy(deep=True) for row in ordered]

    def save(self, record: RecordT) -> RecordT:
        current = None if record.id is None else self._current(record.id)
        if current is None:
            if record.version != 0:
                raise ConcurrentUpdateError(self._entity, record.id)
            record_id = record.id or uuid.uuid4()
        else:
            if current.version != record.version:
                raise ConcurrentUpdateError(self._entity, record.id)
            record_id = current.id  # type: ignore[assignment]
        self._check_unique(record_id, record, self.rows())

        self._deletes.discard(record_id)
        self._base_versions.setdefault(record_id, 0 if current is None else current.version)
        saved = record.model_copy(update={"id": record_id, "version": record.version + 1}, deep=True)
        self._writes[record_id] = saved
        return saved.model_copy(deep=True)

    def delete(self, record_id: uuid.UUID, expected_version: int | None) -> bool:
        current = self._current(record_id)
        if current is None:
            return False
        if expected_version is not None and current.version != expected_version:
            raise ConcurrentUpdateError(self._entity, record_id)
        self._base_versions.setdefault(record_id, current.version)
        self._writes.pop(record_id, None)
        self._deletes.add(record_id)
        return True

    def _check_unique(self, record_id: uuid.UUID, record: RecordT, rows: Iterable[RecordT]) -> None:
        """Raise ``ConflictError`` if another row already holds the record's unique value."""
        if self._unique is None:
            return
        value = getattr(record, self._unique)
        if any(row.id != record_id and getattr(row, self._unique) == value for row in rows):
            raise ConflictError(f"{self._entity} with {self._unique} {value} already exists")

    def verify(self) -> None:
        for record_id, base_version in self._base_versions.items():
            committed = self._committed.get(record_id)
            committed_version = 0 if committed is None else committed.version
            if committed_version != base_version:
                raise ConcurrentUpdateError(self._entity, record_id)
        # Another unit of work may have committed the same unique value since our save.
        for record_id, record in self._writes.items():
            self._check_unique(record_id, record, self._committed.values())

    def apply(self) -> None:
        for record_id in self._deletes:
            self._committed.pop(record_id, None)
        self._committed.update(self._writes)
        self.clear()

    def clear(self) -> None:
        self._writes.clear()
        self._deletes.clear()
        self._base_versions.clear()


class InMemoryUserStore:
    """In-memory ``UserStore`` bound to one unit of work."""

    def __init__(self, table: _StagedTable[UserInfo]) -> None:
        self._table = table

    async def find_by_id(self, user_id: uuid.UUID, *, for_update: bool = False) -> UserInfo | None:
        return self._table.get(user_id)

    async def find_by_email(self, email: str) -> UserInfo | None:
        wanted = email.lower()
        return next((u for u in self._table.rows() if u.email.lower() == wanted), None)

    async def find_many_by_ids(self, user_ids: Iterable[uuid.UUID]) -> list[UserInfo]:
        wanted = set(user_ids)
        return [u for u in self._table.rows() if u.id in wanted]

    async def find_all(self, role: Role | None = None) -> list[UserInfo]:
        return [u for u in self._table.rows() if role is None or u.role == role]

    async def find_by_manager(self, manager_id: uuid.UUID) -> list[UserInfo]:
        return [u for u in self._table.rows() if u.manager_id == manager_id]

    async def save(self, user: UserInfo) -> UserInfo:
        return self._table.save(user)


class InMemoryLeaveStore:
    """In-memory ``LeaveStore`` bound to one unit of work."""

    def __init__(self, table: _StagedTable[LeaveRecord]) -> None:
        self._table = table

    async def find_by_id(self, leave_id: uuid.UUID, *, for_update: bool = False) -> LeaveRecord | None:
        return self._table.get(leave_id)

    async def find_all(self) -> list[LeaveRecord]:
        return self._table.rows()

    async def find_by_user_id(self, user_id: uuid.UUID) -> list[LeaveRecord]:
        return [leave for leave in self._table.rows() if leave.user_id == user_id]

    async def find_by_user_ids(self, user_ids: Iterable[uuid.UUID]) -> list[LeaveRecord]:
        wanted = set(user_ids)
        return [leave for leave in self._table.rows() if leave.user_id in wanted]

    async def save(self, leave: LeaveRecord) -> LeaveRecord:
        return self._table.save(leave)

    async def delete(self, leave_id: uuid.UUID, *, expected_version: int | None = None) -> bool:
        return self._table.delete(leave_id, expected_version)


class InMemoryUnitOfWork:
    """Unit of work over ``InMemoryStorage``; commit re-checks versions, then applies."""

    def __init__(self, storage: InMemoryStorage) -> None:
        self._user_table: _StagedTable[UserInfo] = _StagedTable("User", storage.users, unique="email")
        self._leave_table: _StagedTable[LeaveRecord] = _StagedTable("Leave", storage.leaves)
        self.users = InMemoryUserStore(self._user_table)
        self.leaves = InMemoryLeaveStore(self._leave_table)

    async def commit(self) -> None:
        # No await between verify and apply, so the commit is atomic for the event loop.
        self._user_table.verify()
        self._leave_table.verify()
        self._user_table.apply()
        self._leave_table.apply()

    async def rollback(self) -> None:
        self._user_table.clear()
        self._leave_table.clear()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.rollback()


class InMemoryStorage:
    """Committed state shared by every in-memory unit of work."""

    def __init__(self) -> None:
        self.users: dict[uuid.UUID, UserInfo] = {}
        self.leaves: dict[uuid.UUID, LeaveRecord] = {}

    def unit_of_work(self) -> InMemoryUnitOfWork:
        """Open a fresh unit of work; usable as a ``UnitOfWorkFactory``."""
        return InMemoryUnitOfWork(self)

    def seed_user(self, user: UserInfo) -> UserInfo:
        """Store a user directly, bypassing the unit of work (for tests and dev)."""
        saved = user.model_copy(update={"id": user.id or uuid.uuid4(), "version": user.version + 1}, deep=True)
        self.users[saved.id] = saved  # type: ignore[index]
        return saved.model_copy(deep=True)
