"""
Attendance API – daily records (one per employee and date) and period summaries.
"""
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select, func

from app.api.deps import DB, Payroll
from app.core.config import settings
from app.models.attendance import AttendanceRecord
from app.models.employee import Employee
from app.schemas.attendance import (
    AttendanceCreate, AttendanceUpdate, AttendanceApprove, AttendanceOut, AttendanceSummaryOut,
    AttendanceStatsOut,
)
from app.services.attendance_service import attendance_percentage, count_working_days, derive_hours
from app.services.payroll_calculator import AttendanceStatus, to_money

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get("", response_model=list[AttendanceOut])
async def list_attendance(
    db: DB,
    employee_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    status: str | None = None,
):
    query = select(AttendanceRecord)
    if employee_id:
        query = query.where(AttendanceRecord.employee_id == employee_id)
    if start_date:
        query = query.where(AttendanceRecord.work_date >= start_date)
    if end_date:
        query = query.where(AttendanceRecord.work_date <= end_date)
    if status:
        query = query.where(AttendanceRecord.status == status)
    result = await db.execute(query.order_by(AttendanceRecord.work_date.desc()))
    return result.scalars().all()


@router.post("", response_model=AttendanceOut, status_code=status.HTTP_201_CREATED)
async def create_attendance(payload: AttendanceCreate, db: DB):
    emp_check = await db.execute(select(Employee.id).where(Employee.id == payload.employee_id))
    if emp_check.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="Employee not found")

    existing = await db.execute(
        select(AttendanceRecord.id).where(
            AttendanceRecord.employee_id == payload.employee_id,
            AttendanceRecord.work_date == payload.work_date,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Attendance already recorded for {payload.work_date.isoformat()}",
        )

    hours_worked, overtime_hours = derive_hours(
        payload.work_date,
        payload.status,
        payload.check_in,
        payload.check_out,
        payload.hours_worked,
        payload.overtime_hours,
        settings.PAYROLL_STANDARD_DAILY_HOURS,
    )
    record = AttendanceRecord(
        employee_id=payload.employee_id,
        work_date=payload.work_date,
        status=payload.status.value,
        check_in=payload.check_in,
        check_out=payload.check_out,
        hours_worked=hours_worked,
        overtime_hours=overtime_hours,
        is_approved=payload.is_approved,
        notes=payload.notes,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


@router.get("/summary", response_model=AttendanceSummaryOut)
async def attendance_summary(
    employee_id: uuid.UUID,
    start_date: date,
    end_date: date,
    service: Payroll,
):
    """Period totals exactly as payroll sees them."""
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    await service.get_employee(employee_id)
    totals = await service.summarize_attendance(employee_id, start_date, end_date)
    working_days = count_working_days(start_date, end_date)
    return AttendanceSummaryOut(
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        days_worked=totals.days_worked,
        absent_days=totals.absent_days,
        paid_leave_days=totals.paid_leave_days,
        unpaid_leave_days=totals.unpaid_leave_days,
        total_hours=totals.total_hours,
        total_overtime_hours=totals.total_overtime_hours,
        working_days=working_days,
        attendance_percentage=attendance_percentage(totals.days_worked, working_days),
    )


@router.get("/stats", response_model=AttendanceStatsOut)
async def attendance_stats(
    db: DB,
    employee_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
):
    filters = []
    if employee_id:
        filters.append(AttendanceRecord.employee_id == employee_id)
    if start_date and end_date:
        filters.append(AttendanceRecord.work_date.between(start_date, end_date))

    approval_result = await db.execute(
        select(AttendanceRecord.is_approved, func.count(AttendanceRecord.id))
        .where(*filters)
        .group_by(AttendanceRecord.is_approved)
    )
    by_approval = {bool(approved): n for approved, n in approval_result.all()}

    status_result = await db.execute(
        select(AttendanceRecord.status, func.count(AttendanceRecord.id))
        .where(*filters)
        .group_by(AttendanceRecord.status)
    )
    by_status = {s.value: 0 for s in AttendanceStatus}
    by_status.update({s: n for s, n in status_result.all()})

    avg_result = await db.execute(
        select(func.avg(AttendanceRecord.hours_worked))
        .where(*filters, AttendanceRecord.hours_worked > 0)
    )
    average = avg_result.scalar_one_or_none()

    return AttendanceStatsOut(
        total_records=sum(by_approval.values()),
        approved_records=by_approval.get(True, 0),
        pending_records=by_approval.get(False, 0),
        by_status=by_status,
        average_hours=to_money(Decimal(str(average))) if average is not None else Decimal("0.00"),
    )


async def _get_record(db, record_id: uuid.UUID) -> AttendanceRecord:
    result = await db.execute(select(AttendanceRecord).where(AttendanceRecord.id == record_id))
    record = result.scalar_one_or_none()
    if not record:
        raise HTTPException(status_code=404, detail="Attendance record not found")
    return record


@router.get("/{record_id}", response_model=AttendanceOut)
async def get_attendance(record_id: uuid.UUID, db: DB):
    return await _get_record(db, record_id)


@router.put("/{record_id}", response_model=AttendanceOut)
async def update_attendance(record_id: uuid.UUID, payload: AttendanceUpdate, db: DB):
    """Changing times or status recomputes the stored hours."""
    record = await _get_record(db, record_id)

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if field == "status":
            if value is None:  # NOT NULL column
                continue
            value = value.value
        setattr(record, field, value)

    hours_worked, overtime_hours = derive_hours(
        record.work_date,
        record.status,
        record.check_in,
        record.check_out,
        changes.get("hours_worked", record.hours_worked),
        changes.get("overtime_hours", record.overtime_hours),
        settings.PAYROLL_STANDARD_DAILY_HOURS,
    )
    record.hours_worked = hours_worked
    record.overtime_hours = overtime_hours

    await db.commit()
    await db.refresh(record)
    return record


@router.post("/{record_id}/approve", response_model=AttendanceOut)
async def approve_attendance(record_id: uuid.UUID, payload: AttendanceApprove, db: DB):
    record = await _get_record(db, record_id)
    record.is_approved = True
    record.approved_by = payload.approved_by
    record.approved_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(record)
    return record


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attendance(record_id: uuid.UUID, db: DB):
    record = await _get_record(db, record_id)
    await db.delete(record)
    await db.commit()
