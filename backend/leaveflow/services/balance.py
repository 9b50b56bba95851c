from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from leaveflow.config import get_settings
from leaveflow.exceptions import InsufficientBalanceError, UnknownLeaveTypeError
from leaveflow.services.store import LeaveBalance

if TYPE_CHECKING:
    from collections.abc import Mapping

    from leaveflow.services.store import UserInfo, UserStore

logger = logging.getLogger(__name__)


def normalize_leave_type(leave_type: str, categories: frozenset[str] | None = None) -> str:
    """Match a leave type case-insensitively against the configured categories.

    Raises ``UnknownLeaveTypeError`` rather than falling back to a zero balance.
    """
    known = categories if categories is not None else get_settings().leave_categories
    normalized = leave_type.strip().lower()
    if normalized not in known:
        raise UnknownLeaveTypeError(leave_type, known)
    return normalized


def initial_balance(overrides: Mapping[str, float] | None = None) -> LeaveBalance:
    """Build a new user's balance from the configured defaults plus any overrides."""
    defaults = get_settings().default_leave_balance
    counters = {name.lower(): float(value) for name, value in defaults.items()}
    for name, value in (overrides or {}).items():
        counters[normalize_leave_type(name)] = float(value)
    return LeaveBalance(counters=counters)


async def debit(users: UserStore, user: UserInfo, leave_type: str, days: float) -> UserInfo:
    """Deduct ``days`` from the user's ``leave_type`` counter and save the user.

    This is the only operation that lowers a balance counter. The save is
    version-checked, so a concurrent change to the same user fails the
    enclosing unit of work instead of being overwritten.
    """
    category = normalize_leave_type(leave_type)
    available = user.leave_balance.available(category)
    if available < days:
        logger.warning(
            "Insufficient %s balance for user %s: required=%s available=%s",
            category,
            user.id,
            days,
            available,
        )
        raise InsufficientBalanceError(category, required=days, available=available)

    counters = dict(user.leave_balance.counters)
    counters[category] = available - days
    updated = user.model_copy(
        update={"leave_balance": LeaveBalance(counters=counters, updated_at=datetime.now(UTC))},
    )
    saved = await users.save(updated)
    logger.info("Debited %s %s day(s) from user %s, %s remaining", days, category, user.id, counters[category])
    return saved
