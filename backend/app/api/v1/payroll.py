"""
Payroll API – preview, single and bulk calculation, status workflow, stats, payslips.
"""
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select, func, update

from app.api.deps import DB, Payroll
from app.models.employee import Employee
from app.models.payroll import PayrollEntry
from app.schemas.payroll import (
    PayrollEntryOut, PayrollCalculateRequest, PayrollBulkRequest, PayrollBulkOut, PayrollPreviewOut,
    PayrollUpdate, PayrollBulkApprove, PayrollStatsOut, PayslipOut,
    PayrollPreviewItem, BatchErrorOut, BatchTotalsOut, PayrollLineOut, AttendanceTotalsOut,
    PayslipEmployee, PayslipEarnings, PayslipDeductions,
)
from app.services.payroll_calculator import EmploymentClassification, to_money
from app.services.payroll_service import BatchResult, EmployeePayroll

router = APIRouter(prefix="/payroll", tags=["payroll"])

VALID_TRANSITIONS = {
    "pending":   ["approved", "cancelled"],
    "approved":  ["paid", "pending"],  # allow reverting
    "paid":      [],
    "cancelled": [],
}


def _preview_item(item: EmployeePayroll) -> PayrollPreviewItem:
    emp = item.employee
    return PayrollPreviewItem(
        employee_id=emp.id,
        employee_code=emp.employee_code,
        employee_name=emp.full_name,
        employment_type=emp.employment_type,
        department=emp.department,
        position=emp.position,
        is_statutory_exempt=EmploymentClassification(emp.employment_type).is_statutory_exempt,
        attendance=AttendanceTotalsOut.model_validate(item.totals),
        line=PayrollLineOut.model_validate(item.line),
    )


def _errors_out(result: BatchResult) -> list[BatchErrorOut]:
    return [BatchErrorOut(**vars(e)) for e in result.errors]


@router.get("", response_model=list[PayrollEntryOut])
async def list_payroll_entries(
    db: DB,
    employee_id: uuid.UUID | None = None,
    status: str | None = None,
    pay_period_start: date | None = None,
    pay_period_end: date | None = None,
):
    """List payroll entries; the period filter matches entries starting inside it."""
    query = select(PayrollEntry)
    if employee_id:
        query = query.where(PayrollEntry.employee_id == employee_id)
    if status:
        query = query.where(PayrollEntry.status == status)
    if pay_period_start and pay_period_end:
        query = query.where(PayrollEntry.pay_period_start.between(pay_period_start, pay_period_end))

    result = await db.execute(
        query.order_by(PayrollEntry.pay_period_start.desc(), PayrollEntry.employee_id)
    )
    return result.scalars().all()


@router.get("/preview", response_model=PayrollPreviewOut)
async def preview_payroll(pay_period_start: date, pay_period_end: date, service: Payroll):
    """Computes payroll for all active employees without storing anything."""
    if pay_period_end < pay_period_start:
        raise HTTPException(status_code=400, detail="pay_period_end must not be before pay_period_start")
    result = await service.compute_batch(pay_period_start, pay_period_end)
    return PayrollPreviewOut(
        pay_period_start=result.period_start,
        pay_period_end=result.period_end,
        items=[_preview_item(i) for i in result.items],
        totals=BatchTotalsOut(**result.totals),
        errors=_errors_out(result),
    )


@router.post("/calculate", response_model=PayrollEntryOut, status_code=status.HTTP_201_CREATED)
async def calculate_payroll(payload: PayrollCalculateRequest, service: Payroll):
    """Calculates and stores the payroll of one employee. 409 if the period already exists."""
    return await service.create_entry(
        payload.employee_id,
        payload.pay_period_start,
        payload.pay_period_end,
        processed_by=payload.processed_by,
    )


@router.post("/bulk", response_model=PayrollBulkOut, status_code=status.HTTP_201_CREATED)
async def generate_bulk_payroll(payload: PayrollBulkRequest, service: Payroll):
    """
    Calculates payroll for ALL active employees.
    Employees that already have an entry for the period, or whose data is
    invalid, are reported in `errors` and do not stop the run.
    """
    result = await service.run_batch(
        payload.pay_period_start,
        payload.pay_period_end,
        processed_by=payload.processed_by,
        commit_partial=payload.commit_partial,
    )
    return PayrollBulkOut(
        pay_period_start=result.period_start,
        pay_period_end=result.period_end,
        entries=[PayrollEntryOut.model_validate(e) for e in result.entries],
        total_created=len(result.entries),
        committed=result.committed,
        errors=_errors_out(result),
    )


@router.post("/bulk/approve", response_model=list[PayrollEntryOut])
async def approve_bulk_payroll(payload: PayrollBulkApprove, db: DB):
    """Approves all given pending entries; other statuses are left untouched."""
    await db.execute(
        update(PayrollEntry)
        .where(PayrollEntry.id.in_(payload.payroll_ids), PayrollEntry.status == "pending")
        .values(
            status="approved",
            processed_by=payload.approved_by,
            processed_at=datetime.now(timezone.utc),
        )
    )
    await db.commit()

    result = await db.execute(
        select(PayrollEntry)
        .where(PayrollEntry.id.in_(payload.payroll_ids))
        .execution_options(populate_existing=True)
    )
    return result.scalars().all()


@router.get("/stats", response_model=PayrollStatsOut)
async def payroll_stats(
    db: DB,
    employee_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
):
    filters = []
    if employee_id:
        filters.append(PayrollEntry.employee_id == employee_id)
    if start_date and end_date:
        filters.append(PayrollEntry.pay_period_start.between(start_date, end_date))

    status_result = await db.execute(
        select(PayrollEntry.status, func.count(PayrollEntry.id))
        .where(*filters)
        .group_by(PayrollEntry.status)
    )
    by_status = {s: 0 for s in VALID_TRANSITIONS}
    by_status.update({s: n for s, n in status_result.all()})

    sums_result = await db.execute(
        select(
            func.coalesce(func.sum(PayrollEntry.gross_pay), 0),
            func.coalesce(func.sum(PayrollEntry.total_deductions), 0),
            func.coalesce(func.sum(PayrollEntry.net_pay), 0),
        ).where(*filters)
    )
    gross, deductions, net = sums_result.one()

    return PayrollStatsOut(
        total_payrolls=sum(by_status.values()),
        by_status=by_status,
        total_gross_pay=to_money(Decimal(str(gross))),
        total_deductions=to_money(Decimal(str(deductions))),
        total_net_pay=to_money(Decimal(str(net))),
    )


async def _get_entry(db, entry_id: uuid.UUID) -> PayrollEntry:
    result = await db.execute(select(PayrollEntry).where(PayrollEntry.id == entry_id))
    entry = result.scalar_one_or_none()
    if not entry:
        raise HTTPException(status_code=404, detail="Payroll record not found")
    return entry


@router.get("/{entry_id}", response_model=PayrollEntryOut)
async def get_payroll_entry(entry_id: uuid.UUID, db: DB):
    return await _get_entry(db, entry_id)


@router.put("/{entry_id}", response_model=PayrollEntryOut)
async def update_payroll_entry(entry_id: uuid.UUID, payload: PayrollUpdate, db: DB):
    """Status workflow pending → approved → paid (or pending → cancelled) plus notes."""
    entry = await _get_entry(db, entry_id)

    if payload.status and payload.status != entry.status:
        if payload.status not in VALID_TRANSITIONS.get(entry.status, []):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status change: {entry.status} → {payload.status}",
            )
        if payload.status == "approved":
            entry.processed_by = payload.processed_by or entry.processed_by
            entry.processed_at = datetime.now(timezone.utc)
        elif payload.status == "paid":
            entry.pay_date = payload.pay_date or date.today()
            entry.payment_method = payload.payment_method or "bank_transfer"
        entry.status = payload.status

    if payload.notes is not None:
        entry.notes = payload.notes

    await db.commit()
    await db.refresh(entry)
    return entry


@router.get("/{entry_id}/payslip", response_model=PayslipOut)
async def get_payslip(entry_id: uuid.UUID, db: DB):
    """Payslip data as JSON; attendance is the snapshot stored with the entry."""
    entry = await _get_entry(db, entry_id)

    emp_result = await db.execute(select(Employee).where(Employee.id == entry.employee_id))
    employee = emp_result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")

    return PayslipOut(
        payroll_id=entry.id,
        pay_period_start=entry.pay_period_start,
        pay_period_end=entry.pay_period_end,
        status=entry.status,
        pay_date=entry.pay_date,
        employee=PayslipEmployee.model_validate(employee),
        attendance=AttendanceTotalsOut(
            days_worked=entry.days_worked,
            absent_days=entry.absent_days,
            paid_leave_days=entry.paid_leave_days,
            unpaid_leave_days=entry.unpaid_leave_days,
            total_hours=entry.hours_worked,
            total_overtime_hours=entry.overtime_hours,
        ),
        earnings=PayslipEarnings(
            basic_salary=entry.basic_salary,
            overtime_pay=entry.overtime_pay,
            gross_pay=entry.gross_pay,
        ),
        deductions=PayslipDeductions(
            tax=entry.tax_deduction,
            provident_fund=entry.provident_fund_deduction,
            etf=entry.etf_deduction,
            other=entry.other_deduction,
            total=entry.total_deductions,
        ),
        net_pay=entry.net_pay,
    )
