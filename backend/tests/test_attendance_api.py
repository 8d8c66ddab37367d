"""
Tests for /api/v1/attendance – recording days, derived hours, approval and summaries.
"""
import uuid
from datetime import date
from decimal import Decimal

import pytest

from tests.conftest import add_attendance, create_employee

ATTENDANCE_URL = "/api/v1/attendance"


@pytest.mark.asyncio
async def test_create_attendance_from_clock_times(client, db):
    emp = await create_employee(db)

    resp = await client.post(ATTENDANCE_URL, json={
        "employee_id": str(emp.id),
        "work_date": "2025-03-03",
        "status": "present",
        "check_in": "08:00:00",
        "check_out": "18:30:00",
    })
    assert resp.status_code == 201
    data = resp.json()
    assert Decimal(data["hours_worked"]) == Decimal("10.5")
    assert Decimal(data["overtime_hours"]) == Decimal("2.5")
    assert data["is_approved"] is False


@pytest.mark.asyncio
async def test_create_attendance_absent_has_no_hours(client, db):
    emp = await create_employee(db)

    resp = await client.post(ATTENDANCE_URL, json={
        "employee_id": str(emp.id),
        "work_date": "2025-03-03",
        "status": "absent",
        "hours_worked": "8",
    })
    assert resp.status_code == 201
    assert Decimal(resp.json()["hours_worked"]) == 0


@pytest.mark.asyncio
async def test_create_attendance_duplicate_date(client, db):
    emp = await create_employee(db)
    payload = {"employee_id": str(emp.id), "work_date": "2025-03-03", "hours_worked": "8"}

    assert (await client.post(ATTENDANCE_URL, json=payload)).status_code == 201
    assert (await client.post(ATTENDANCE_URL, json=payload)).status_code == 409


@pytest.mark.asyncio
async def test_create_attendance_unknown_employee(client):
    resp = await client.post(ATTENDANCE_URL, json={
        "employee_id": str(uuid.uuid4()), "work_date": "2025-03-03",
    })
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_attendance_unknown_status(client, db):
    emp = await create_employee(db)
    resp = await client.post(ATTENDANCE_URL, json={
        "employee_id": str(emp.id), "work_date": "2025-03-03", "status": "holiday",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_update_attendance_recomputes_hours(client, db):
    emp = await create_employee(db)
    created = (await client.post(ATTENDANCE_URL, json={
        "employee_id": str(emp.id), "work_date": "2025-03-03", "hours_worked": "8",
    })).json()

    resp = await client.put(f"{ATTENDANCE_URL}/{created['id']}", json={
        "check_in": "22:00:00", "check_out": "07:00:00",
    })
    assert resp.status_code == 200
    assert Decimal(resp.json()["hours_worked"]) == Decimal("9")
    assert Decimal(resp.json()["overtime_hours"]) == Decimal("1")


@pytest.mark.asyncio
async def test_approve_attendance(client, db):
    emp = await create_employee(db)
    created = (await client.post(ATTENDANCE_URL, json={
        "employee_id": str(emp.id), "work_date": "2025-03-03", "status": "leave",
    })).json()

    resp = await client.post(f"{ATTENDANCE_URL}/{created['id']}/approve", json={"approved_by": "manager"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["is_approved"] is True
    assert data["approved_by"] == "manager"
    assert data["approved_at"] is not None


@pytest.mark.asyncio
async def test_delete_attendance(client, db):
    emp = await create_employee(db)
    created = (await client.post(ATTENDANCE_URL, json={
        "employee_id": str(emp.id), "work_date": "2025-03-03",
    })).json()

    assert (await client.delete(f"{ATTENDANCE_URL}/{created['id']}")).status_code == 204
    assert (await client.get(f"{ATTENDANCE_URL}/{created['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_attendance_summary(client, db):
    emp = await create_employee(db)
    for d in range(3, 8):
        await add_attendance(db, emp, date(2025, 3, d), hours="9", overtime="1")
    await add_attendance(db, emp, date(2025, 3, 10), status="absent", hours="0")
    await add_attendance(db, emp, date(2025, 3, 11), status="leave", hours="0", is_approved=True)

    resp = await client.get(f"{ATTENDANCE_URL}/summary", params={
        "employee_id": str(emp.id), "start_date": "2025-03-01", "end_date": "2025-03-31",
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["days_worked"] == 5
    assert data["absent_days"] == 1
    assert data["paid_leave_days"] == 1
    assert Decimal(data["total_hours"]) == Decimal("45")
    assert Decimal(data["total_overtime_hours"]) == Decimal("5")


@pytest.mark.asyncio
async def test_attendance_summary_reversed_period(client, db):
    emp = await create_employee(db)
    resp = await client.get(f"{ATTENDANCE_URL}/summary", params={
        "employee_id": str(emp.id), "start_date": "2025-03-31", "end_date": "2025-03-01",
    })
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_attendance_summary_unknown_employee(client):
    resp = await client.get(f"{ATTENDANCE_URL}/summary", params={
        "employee_id": str(uuid.uuid4()), "start_date": "2025-03-01", "end_date": "2025-03-31",
    })
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_attendance_null_status_keeps_stored_status(client, db):
    emp = await create_employee(db)
    created = (await client.post(ATTENDANCE_URL, json={
        "employee_id": str(emp.id), "work_date": "2025-03-03", "status": "late", "hours_worked": "7",
    })).json()

    resp = await client.put(f"{ATTENDANCE_URL}/{created['id']}", json={"status": None, "notes": "traffic"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "late"
    assert data["notes"] == "traffic"
    assert Decimal(data["hours_worked"]) == Decimal("7")


# ── Summary percentage / stats ────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_attendance_summary_percentage(client, db):
    """March 2025 has 21 weekdays; 17 worked days → 80.95 %."""
    emp = await create_employee(db)
    worked = [d for d in range(1, 32) if date(2025, 3, d).weekday() < 5][:17]
    for d in worked:
        await add_attendance(db, emp, date(2025, 3, d))

    resp = await client.get(f"{ATTENDANCE_URL}/summary", params={
        "employee_id": str(emp.id), "start_date": "2025-03-01", "end_date": "2025-03-31",
    })
    data = resp.json()
    assert data["working_days"] == 21
    assert Decimal(data["attendance_percentage"]) == Decimal("80.95")


@pytest.mark.asyncio
async def test_attendance_stats(client, db):
    emp = await create_employee(db)
    other = await create_employee(db, code="EMP002")
    await add_attendance(db, emp, date(2025, 3, 3), hours="8", is_approved=True)
    await add_attendance(db, emp, date(2025, 3, 4), status="late", hours="6")
    await add_attendance(db, emp, date(2025, 3, 5), status="absent", hours="0")
    await add_attendance(db, other, date(2025, 3, 3), hours="10", is_approved=True)

    resp = await client.get(f"{ATTENDANCE_URL}/stats")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_records"] == 4
    assert data["approved_records"] == 2
    assert data["pending_records"] == 2
    assert data["by_status"] == {"present": 2, "absent": 1, "late": 1, "half_day": 0, "leave": 0}
    assert Decimal(data["average_hours"]) == Decimal("8.00")

    resp = await client.get(f"{ATTENDANCE_URL}/stats", params={"employee_id": str(emp.id)})
    data = resp.json()
    assert data["total_records"] == 3
    assert Decimal(data["average_hours"]) == Decimal("7.00")


@pytest.mark.asyncio
async def test_attendance_stats_empty(client):
    data = (await client.get(f"{ATTENDANCE_URL}/stats")).json()
    assert data["total_records"] == 0
    assert Decimal(data["average_hours"]) == 0
