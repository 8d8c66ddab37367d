"""
Tests for PayrollService – single-employee entries, duplicate periods and
bulk runs against an SQLite database.
"""
import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.core.exceptions import DuplicatePeriodError, EmployeeNotFoundError, InvalidInputError
from app.models.payroll import PayrollEntry
from app.services.payroll_calculator import PaidLeavePolicy, PayPolicy
from app.services.payroll_service import PayrollService

from tests.conftest import add_attendance, create_employee

START = date(2025, 3, 1)
END = date(2025, 3, 31)


async def _entries(db):
    result = await db.execute(select(PayrollEntry))
    return result.scalars().all()


# ── Single employee ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_entry_stores_line_and_attendance(db):
    emp = await create_employee(db, base_salary="320000")
    await add_attendance(db, emp, date(2025, 3, 3), hours="12", overtime="4")
    await add_attendance(db, emp, date(2025, 3, 4), hours="14", overtime="6")
    await add_attendance(db, emp, date(2025, 3, 5), status="absent", hours="0")
    await add_attendance(db, emp, date(2025, 4, 1), hours="8", overtime="8")  # outside period

    entry = await PayrollService(db).create_entry(emp.id, START, END, processed_by="hr")

    assert entry.status == "pending"
    assert entry.processed_by == "hr"
    assert entry.days_worked == 2
    assert entry.absent_days == 1
    assert entry.overtime_hours == Decimal("10")
    assert entry.gross_pay == Decimal("340000.00")
    assert entry.tax_deduction == Decimal("29500.08")
    assert entry.net_pay == Decimal("283299.92")
    assert entry.notes == "Hours: 26.00, Days: 2"


@pytest.mark.asyncio
async def test_create_entry_twice_is_duplicate(db):
    emp = await create_employee(db)
    svc = PayrollService(db)
    await svc.create_entry(emp.id, START, END)

    with pytest.raises(DuplicatePeriodError):
        await svc.create_entry(emp.id, START, END)
    assert len(await _entries(db)) == 1


@pytest.mark.asyncio
async def test_different_period_is_not_duplicate(db):
    emp = await create_employee(db)
    svc = PayrollService(db)
    await svc.create_entry(emp.id, START, END)
    await svc.create_entry(emp.id, date(2025, 4, 1), date(2025, 4, 30))
    assert len(await _entries(db)) == 2


@pytest.mark.asyncio
async def test_create_entry_unknown_employee(db):
    with pytest.raises(EmployeeNotFoundError):
        await PayrollService(db).create_entry(uuid.uuid4(), START, END)


@pytest.mark.asyncio
async def test_get_employee_by_code(db):
    emp = await create_employee(db, code="EMP777")
    svc = PayrollService(db)
    assert (await svc.get_employee_by_code("EMP777")).id == emp.id
    with pytest.raises(EmployeeNotFoundError):
        await svc.get_employee_by_code("NOPE")


@pytest.mark.asyncio
async def test_negative_salary_is_invalid_input(db):
    emp = await create_employee(db, base_salary="-100")
    with pytest.raises(InvalidInputError):
        await PayrollService(db).create_entry(emp.id, START, END)
    assert await _entries(db) == []


@pytest.mark.asyncio
async def test_negative_net_pay_is_rejected(db):
    emp = await create_employee(db, base_salary="100000")
    await add_attendance(db, emp, date(2025, 3, 3), status="leave", hours="0")
    await add_attendance(db, emp, date(2025, 3, 4), status="leave", hours="0")
    policy = PayPolicy(paid_leave_policy=PaidLeavePolicy.DEDUCT_UNPAID, standard_working_days=1)

    with pytest.raises(InvalidInputError):
        await PayrollService(db, policy).create_entry(emp.id, START, END)


@pytest.mark.asyncio
async def test_approved_leave_is_paid_under_deduct_unpaid(db):
    emp = await create_employee(db, base_salary="100000")
    await add_attendance(db, emp, date(2025, 3, 3), status="leave", hours="0", is_approved=True)
    await add_attendance(db, emp, date(2025, 3, 4), status="leave", hours="0")
    policy = PayPolicy(paid_leave_policy=PaidLeavePolicy.DEDUCT_UNPAID)

    item = await PayrollService(db, policy).calculate(emp, START, END)
    assert item.totals.paid_leave_days == 1
    assert item.totals.unpaid_leave_days == 1
    assert item.line.other_deduction == Decimal("5000.00")


# ── Batch ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_batch_reports_failures_and_keeps_going(db):
    ok_1 = await create_employee(db, code="EMP001", base_salary="100000")
    bad = await create_employee(db, code="EMP002", base_salary="-5")
    ok_2 = await create_employee(db, code="EMP003", base_salary="160000", employment_type="intern")

    result = await PayrollService(db).run_batch(START, END, processed_by="system")

    assert result.committed is True
    assert {e.employee_id for e in result.entries} == {ok_1.id, ok_2.id}
    assert len(result.errors) == 1
    assert result.errors[0].employee_id == bad.id
    assert result.errors[0].error == "InvalidInputError"
    assert result.totals["total_employees"] == 2
    assert result.totals["total_gross"] == Decimal("260000.00")
    assert result.totals["total_net"] == Decimal("252000.00")

    entries = await _entries(db)
    assert len(entries) == 2
    assert all(e.notes.startswith("Auto-generated bulk payroll. ") for e in entries)


@pytest.mark.asyncio
async def test_batch_skips_already_processed(db):
    first = await create_employee(db, code="EMP001")
    await create_employee(db, code="EMP002")
    svc = PayrollService(db)
    await svc.create_entry(first.id, START, END)

    result = await svc.run_batch(START, END)

    assert len(result.entries) == 1
    assert [e.error for e in result.errors] == ["DuplicatePeriodError"]
    assert len(await _entries(db)) == 2


@pytest.mark.asyncio
async def test_batch_without_partial_commit_stores_nothing(db):
    await create_employee(db, code="EMP001")
    await create_employee(db, code="EMP002", base_salary="-1")

    result = await PayrollService(db).run_batch(START, END, commit_partial=False)

    assert result.committed is False
    assert result.entries == []
    assert len(result.items) == 1
    assert await _entries(db) == []


@pytest.mark.asyncio
async def test_batch_ignores_inactive_employees(db):
    await create_employee(db, code="EMP001")
    await create_employee(db, code="EMP002", status="inactive")

    result = await PayrollService(db).compute_batch(START, END)

    assert [i.employee.employee_code for i in result.items] == ["EMP001"]
    assert result.errors == []


@pytest.mark.asyncio
async def test_batch_results_follow_employee_code_order(db):
    for code in ("EMP003", "EMP001", "EMP002"):
        await create_employee(db, code=code)

    result = await PayrollService(db).compute_batch(START, END)
    assert [i.employee.employee_code for i in result.items] == ["EMP001", "EMP002", "EMP003"]


@pytest.mark.asyncio
async def test_empty_batch(db):
    result = await PayrollService(db).run_batch(START, END)
    assert result.entries == []
    assert result.errors == []
    assert result.totals["total_net"] == Decimal("0.00")
