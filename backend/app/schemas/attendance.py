from pydantic import BaseModel, Field
import uuid
from datetime import date, datetime, time
from decimal import Decimal

from app.services.payroll_calculator import AttendanceStatus


class AttendanceCreate(BaseModel):
    employee_id: uuid.UUID
    work_date: date
    status: AttendanceStatus = AttendanceStatus.PRESENT
    check_in: time | None = None
    check_out: time | None = None
    # Used only when check_in/check_out are not both given
    hours_worked: Decimal | None = Field(default=None, ge=0, le=24)
    overtime_hours: Decimal | None = Field(default=None, ge=0, le=24)
    is_approved: bool = False
    notes: str | None = None


class AttendanceUpdate(BaseModel):
    status: AttendanceStatus | None = None
    check_in: time | None = None
    check_out: time | None = None
    hours_worked: Decimal | None = Field(default=None, ge=0, le=24)
    overtime_hours: Decimal | None = Field(default=None, ge=0, le=24)
    notes: str | None = None


class AttendanceApprove(BaseModel):
    approved_by: str


class AttendanceOut(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    work_date: date
    check_in: time | None
    check_out: time | None
    hours_worked: Decimal
    overtime_hours: Decimal
    status: str
    notes: str | None
    is_approved: bool
    approved_by: str | None
    approved_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AttendanceSummaryOut(BaseModel):
    employee_id: uuid.UUID
    start_date: date
    end_date: date
    days_worked: int
    absent_days: int
    paid_leave_days: int
    unpaid_leave_days: int
    total_hours: Decimal
    total_overtime_hours: Decimal
    # Monday-Friday days in the period; days_worked relative to them
    working_days: int
    attendance_percentage: Decimal


class AttendanceStatsOut(BaseModel):
    total_records: int
    approved_records: int
    pending_records: int
    by_status: dict[str, int]
    average_hours: Decimal  # over records with hours_worked > 0
