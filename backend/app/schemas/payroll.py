from pydantic import BaseModel, Field, model_validator
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

PayrollStatus = Literal["pending", "approved", "paid", "cancelled"]


class PayrollPeriod(BaseModel):
    pay_period_start: date
    pay_period_end: date

    @model_validator(mode="after")
    def check_period(self):
        if self.pay_period_end < self.pay_period_start:
            raise ValueError("pay_period_end must not be before pay_period_start")
        return self


class PayrollCalculateRequest(PayrollPeriod):
    employee_id: uuid.UUID
    processed_by: str | None = None


class PayrollBulkRequest(PayrollPeriod):
    processed_by: str | None = None
    # False: nothing is stored when any employee fails
    commit_partial: bool = True


# ── Computation results ───────────────────────────────────────────────────────

class PayrollLineOut(BaseModel):
    hourly_rate: Decimal
    basic_salary: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    tax_deduction: Decimal
    provident_fund_deduction: Decimal
    etf_deduction: Decimal
    other_deduction: Decimal
    total_deductions: Decimal
    net_pay: Decimal

    model_config = {"from_attributes": True}


class AttendanceTotalsOut(BaseModel):
    days_worked: int
    absent_days: int
    paid_leave_days: int
    unpaid_leave_days: int
    total_hours: Decimal
    total_overtime_hours: Decimal

    model_config = {"from_attributes": True}


class PayrollPreviewItem(BaseModel):
    employee_id: uuid.UUID
    employee_code: str
    employee_name: str
    employment_type: str
    department: str | None
    position: str | None
    is_statutory_exempt: bool
    attendance: AttendanceTotalsOut
    line: PayrollLineOut


class BatchErrorOut(BaseModel):
    employee_id: uuid.UUID
    employee_code: str
    employee_name: str
    error: str  # InvalidInputError | DuplicatePeriodError
    message: str


class BatchTotalsOut(BaseModel):
    total_employees: int
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal


class PayrollPreviewOut(PayrollPeriod):
    items: list[PayrollPreviewItem]
    totals: BatchTotalsOut
    errors: list[BatchErrorOut]


# ── Stored entries ────────────────────────────────────────────────────────────

class PayrollEntryOut(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    pay_period_start: date
    pay_period_end: date
    hours_worked: Decimal
    overtime_hours: Decimal
    days_worked: int
    absent_days: int
    paid_leave_days: int
    unpaid_leave_days: int
    basic_salary: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    tax_deduction: Decimal
    provident_fund_deduction: Decimal
    etf_deduction: Decimal
    other_deduction: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    status: str
    pay_date: date | None
    payment_method: str | None
    processed_by: str | None
    processed_at: datetime | None
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PayrollBulkOut(PayrollPeriod):
    entries: list[PayrollEntryOut]
    total_created: int
    committed: bool
    errors: list[BatchErrorOut]


class PayrollUpdate(BaseModel):
    status: PayrollStatus | None = None
    notes: str | None = None
    processed_by: str | None = None
    pay_date: date | None = None
    payment_method: str | None = None  # bank_transfer | cash | cheque


class PayrollBulkApprove(BaseModel):
    payroll_ids: list[uuid.UUID] = Field(min_length=1)
    approved_by: str


class PayrollStatsOut(BaseModel):
    total_payrolls: int
    by_status: dict[str, int]
    total_gross_pay: Decimal
    total_deductions: Decimal
    total_net_pay: Decimal


# ── Payslip (JSON only) ───────────────────────────────────────────────────────

class PayslipEmployee(BaseModel):
    employee_code: str
    first_name: str
    last_name: str
    email: str | None
    department: str | None
    position: str | None
    hire_date: date | None

    model_config = {"from_attributes": True}


class PayslipEarnings(BaseModel):
    basic_salary: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal


class PayslipDeductions(BaseModel):
    tax: Decimal
    provident_fund: Decimal
    etf: Decimal
    other: Decimal
    total: Decimal


class PayslipOut(PayrollPeriod):
    payroll_id: uuid.UUID
    status: str
    pay_date: date | None
    employee: PayslipEmployee
    attendance: AttendanceTotalsOut
    earnings: PayslipEarnings
    deductions: PayslipDeductions
    net_pay: Decimal
