"""HTTP tests for the leave endpoints: apply, list, approve, reject and cancel."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import pytest

if TYPE_CHECKING:
    from httpx import AsyncClient

LEAVES_URL = "/leaves"


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


def _headers(user_id: uuid.UUID | str, role: str = "employee") -> dict[str, str]:
    return {"X-User-Id": str(user_id), "X-Role": role}


def _approver(role: str) -> dict[str, str]:
    return _headers(uuid.uuid4(), role)


async def _register(client: AsyncClient, email: str, role: str = "employee", **extra: Any) -> dict[str, Any]:
    payload = {"name": email.split("@")[0].title(), "email": email, "password": "secret", "role": role, **extra}
    response = await client.post("/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def _register_employee(client: AsyncClient, **extra: Any) -> dict[str, Any]:
    manager = await _register(client, f"manager-{uuid.uuid4().hex[:8]}@example.com", role="manager")
    return await _register(
        client, f"emp-{uuid.uuid4().hex[:8]}@example.com", manager_id=manager["id"], **extra
    )


async def _apply(
    client: AsyncClient,
    user: dict[str, Any],
    leave_type: str = "casual",
    start: str = "2024-01-01",
    end: str = "2024-01-02",
    **extra: Any,
) -> dict[str, Any]:
    response = await client.post(
        LEAVES_URL,
        json={"leave_type": leave_type, "start_date": start, "end_date": end, **extra},
        headers=_headers(user["id"]),
    )
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


async def test_apply_for_short_leave(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user, reason="Wedding")

    assert leave["user_id"] == user["id"]
    assert leave["leave_type"] == "casual"
    assert leave["status"] == "pending"
    assert sorted(leave["required_approvals"]) == ["hr", "manager"]
    assert leave["days"] == 2
    assert leave["reason"] == "Wedding"


async def test_apply_for_long_leave_needs_only_manager(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user, leave_type="Earned", end="2024-01-10")

    assert leave["leave_type"] == "earned"
    assert leave["required_approvals"] == ["manager"]
    assert leave["days"] == 10


async def test_apply_accepts_datetimes(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user, start="2024-03-04T17:30:00", end="2024-03-05T09:00:00")

    assert leave["start_date"] == "2024-03-04"
    assert leave["end_date"] == "2024-03-05"


async def test_apply_unknown_leave_type(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    response = await async_client.post(
        LEAVES_URL,
        json={"leave_type": "annual", "start_date": "2024-01-01", "end_date": "2024-01-02"},
        headers=_headers(user["id"]),
    )
    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "UnknownLeaveTypeError"
    assert "casual" in body["extra"]["known"]


async def test_apply_reversed_range(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    response = await async_client.post(
        LEAVES_URL,
        json={"leave_type": "casual", "start_date": "2024-01-05", "end_date": "2024-01-01"},
        headers=_headers(user["id"]),
    )
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidDateRangeError"


async def test_apply_for_unknown_user(async_client: AsyncClient) -> None:
    response = await async_client.post(
        LEAVES_URL,
        json={"leave_type": "casual", "start_date": "2024-01-01", "end_date": "2024-01-02"},
        headers=_headers(uuid.uuid4()),
    )
    assert response.status_code == 404


async def test_apply_without_user_header(async_client: AsyncClient) -> None:
    response = await async_client.post(
        LEAVES_URL,
        json={"leave_type": "casual", "start_date": "2024-01-01", "end_date": "2024-01-02"},
    )
    assert response.status_code == 422


async def test_employee_cannot_apply_for_someone_else(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    response = await async_client.post(
        LEAVES_URL,
        json={"user_id": user["id"], "leave_type": "casual", "start_date": "2024-01-01", "end_date": "2024-01-02"},
        headers=_headers(uuid.uuid4()),
    )
    assert response.status_code == 403


async def test_admin_can_apply_on_behalf(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    response = await async_client.post(
        LEAVES_URL,
        json={"user_id": user["id"], "leave_type": "sick", "start_date": "2024-01-01", "end_date": "2024-01-01"},
        headers=_headers(uuid.uuid4(), "admin"),
    )
    assert response.status_code == 201
    assert response.json()["user_id"] == user["id"]


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


async def test_list_own_leaves(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    other = await _register_employee(async_client)
    first = await _apply(async_client, user)
    await _apply(async_client, other)

    response = await async_client.get(LEAVES_URL, headers=_headers(user["id"]))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["id"] == first["id"]

    response = await async_client.get(LEAVES_URL, params={"user_id": other["id"]}, headers=_headers(user["id"]))
    assert response.json()["total"] == 1
    assert response.json()["items"][0]["user_id"] == other["id"]


async def test_get_leave(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user)

    response = await async_client.get(f"{LEAVES_URL}/{leave['id']}", headers=_headers(user["id"]))
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == leave["id"]
    assert data["required_approvals"] == leave["required_approvals"]
    assert data["days"] == 2


async def test_get_missing_leave(async_client: AsyncClient) -> None:
    response = await async_client.get(f"{LEAVES_URL}/{uuid.uuid4()}", headers=_approver("employee"))
    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


# ---------------------------------------------------------------------------
# Approve / reject
# ---------------------------------------------------------------------------


async def test_two_step_approval_debits_balance(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user)
    url = f"{LEAVES_URL}/{leave['id']}/approve"

    response = await async_client.post(url, headers=_approver("hr"))
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Leave action recorded"
    assert data["leave"]["status"] == "pending"
    assert data["leave"]["required_approvals"] == ["manager"]
    assert data["user"] is None

    response = await async_client.post(url, headers=_approver("manager"))
    data = response.json()
    assert data["leave"]["status"] == "approved"
    assert data["leave"]["required_approvals"] == []
    assert data["user"]["id"] == user["id"]
    assert data["user"]["leave_balance"]["counters"]["casual"] == 8

    profile = await async_client.get(f"/users/{user['id']}", headers=_headers(user["id"]))
    assert profile.json()["user"]["leave_balance"]["counters"]["casual"] == 8


async def test_approve_with_insufficient_balance(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user, leave_type="sick", end="2024-01-10")

    response = await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=_approver("manager"))

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "InsufficientBalanceError"
    assert body["extra"] == {"leave_type": "sick", "required": 10, "available": 5}

    stored = await async_client.get(f"{LEAVES_URL}/{leave['id']}", headers=_headers(user["id"]))
    assert stored.json()["status"] == "pending"
    assert stored.json()["required_approvals"] == ["manager"]


async def test_registered_balance_override_is_used(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client, leave_balance={"sick": 12})
    leave = await _apply(async_client, user, leave_type="sick", end="2024-01-10")

    response = await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=_approver("manager"))

    assert response.status_code == 200
    assert response.json()["user"]["leave_balance"]["counters"]["sick"] == 2


@pytest.mark.parametrize("role", ["employee", "admin", "hr"])
async def test_approve_by_unrequired_role(async_client: AsyncClient, role: str) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user, end="2024-01-05")

    response = await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=_approver(role))

    assert response.status_code == 403
    assert response.json()["error"] == "UnauthorizedError"


async def test_reject_then_approve_is_forbidden(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user, end="2024-01-01")

    response = await async_client.post(f"{LEAVES_URL}/{leave['id']}/reject", headers=_approver("manager"))
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["required_approvals"] == []

    response = await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=_approver("hr"))
    assert response.status_code == 403

    profile = await async_client.get(f"/users/{user['id']}", headers=_headers(user["id"]))
    assert profile.json()["user"]["leave_balance"]["counters"]["casual"] == 10


async def test_approve_missing_leave(async_client: AsyncClient) -> None:
    response = await async_client.post(f"{LEAVES_URL}/{uuid.uuid4()}/approve", headers=_approver("manager"))
    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------


async def test_owner_cancels_pending_leave(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user)
    url = f"{LEAVES_URL}/{leave['id']}"

    response = await async_client.delete(url, headers=_headers(user["id"]))
    assert response.status_code == 204

    response = await async_client.get(url, headers=_headers(user["id"]))
    assert response.status_code == 404


async def test_admin_cancels_pending_leave(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user)

    response = await async_client.delete(f"{LEAVES_URL}/{leave['id']}", headers=_approver("admin"))
    assert response.status_code == 204


async def test_other_user_cannot_cancel(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user)

    response = await async_client.delete(f"{LEAVES_URL}/{leave['id']}", headers=_approver("manager"))
    assert response.status_code == 403


async def test_cancel_after_approval_conflicts(async_client: AsyncClient) -> None:
    user = await _register_employee(async_client)
    leave = await _apply(async_client, user, end="2024-01-05")
    await async_client.post(f"{LEAVES_URL}/{leave['id']}/approve", headers=_approver("manager"))

    response = await async_client.delete(f"{LEAVES_URL}/{leave['id']}", headers=_headers(user["id"]))
    assert response.status_code == 409
    assert response.json()["error"] == "InvalidStateError"
