"""
Payroll calculation core: attendance aggregation, overtime, progressive tax,
provident fund and net pay.

Pure functions only – no database, no logging. Every amount is a Decimal and
every money field of a PayrollLine is rounded to cents (ROUND_HALF_UP), so the
identities gross = basic + overtime, total = sum(deductions) and
net = gross - total hold exactly on the returned values.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Iterable, NamedTuple

from app.core.exceptions import InvalidInputError

CENT = Decimal("0.01")
ZERO = Decimal("0")


# ── Enums ─────────────────────────────────────────────────────────────────────

class EmploymentClassification(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    INTERN = "intern"

    @property
    def is_statutory_exempt(self) -> bool:
        """Exempt from tax and provident fund."""
        return self in STATUTORY_EXEMPT_CLASSIFICATIONS


STATUTORY_EXEMPT_CLASSIFICATIONS = frozenset({EmploymentClassification.INTERN})


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half_day"
    LEAVE = "leave"


class PaidLeavePolicy(str, Enum):
    # Leave never changes pay; base salary is paid in full
    FULL_BASE = "full_base"
    # Unapproved (unpaid) leave days are deducted at base_salary / working_days
    DEDUCT_UNPAID = "deduct_unpaid"


# ── Tax table ─────────────────────────────────────────────────────────────────

class TaxBracket(NamedTuple):
    upper_bound: Decimal | None  # None = open-ended top bracket
    rate: Decimal


# Monthly thresholds, marginal rate on the slice of gross pay inside each bracket
DEFAULT_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(Decimal("150000"), Decimal("0")),
    TaxBracket(Decimal("233333"), Decimal("0.06")),
    TaxBracket(Decimal("275000"), Decimal("0.18")),
    TaxBracket(Decimal("316666"), Decimal("0.24")),
    TaxBracket(Decimal("358333"), Decimal("0.30")),
    TaxBracket(None, Decimal("0.30")),
)

STANDARD_MONTHLY_HOURS = Decimal("160")
STANDARD_WORKING_DAYS = 20
PROVIDENT_FUND_RATE = Decimal("0.08")
ETF_RATE = Decimal("0")


# ── Value types ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PayPolicy:
    standard_monthly_hours: Decimal = STANDARD_MONTHLY_HOURS
    standard_working_days: int = STANDARD_WORKING_DAYS
    provident_fund_rate: Decimal = PROVIDENT_FUND_RATE
    etf_rate: Decimal = ETF_RATE
    paid_leave_policy: PaidLeavePolicy = PaidLeavePolicy.FULL_BASE
    tax_brackets: tuple[TaxBracket, ...] = DEFAULT_TAX_BRACKETS

    def __post_init__(self):
        if Decimal(self.standard_monthly_hours) <= 0:
            raise InvalidInputError("standard_monthly_hours must be positive")
        if self.standard_working_days <= 0:
            raise InvalidInputError("standard_working_days must be positive")
        _check_brackets(self.tax_brackets)

    @classmethod
    def from_settings(cls, settings) -> "PayPolicy":
        try:
            leave_policy = PaidLeavePolicy(settings.PAYROLL_PAID_LEAVE_POLICY)
        except ValueError:
            raise InvalidInputError(
                f"Unknown paid leave policy: {settings.PAYROLL_PAID_LEAVE_POLICY!r}"
            )
        return cls(
            standard_monthly_hours=Decimal(settings.PAYROLL_STANDARD_MONTHLY_HOURS),
            standard_working_days=int(settings.PAYROLL_STANDARD_WORKING_DAYS),
            provident_fund_rate=Decimal(settings.PAYROLL_PROVIDENT_FUND_RATE),
            etf_rate=Decimal(settings.PAYROLL_ETF_RATE),
            paid_leave_policy=leave_policy,
        )


@dataclass(frozen=True)
class EmployeeFinancialProfile:
    base_salary: Decimal
    employment_classification: EmploymentClassification | str
    # Attribution only, never used in the computation
    employee_id: Any = None
    employee_code: str | None = None

    @classmethod
    def from_employee(cls, employee) -> "EmployeeFinancialProfile":
        return cls(
            base_salary=employee.base_salary,
            employment_classification=employee.employment_type,
            employee_id=employee.id,
            employee_code=employee.employee_code,
        )


@dataclass(frozen=True, slots=True)
class AttendanceDay:
    """Minimal attendance record; ORM rows with the same attributes work too."""
    status: AttendanceStatus | str
    hours_worked: Decimal | None = None
    overtime_hours: Decimal | None = None
    is_approved: bool = False


@dataclass(frozen=True, slots=True)
class PeriodAttendanceTotals:
    days_worked: int = 0
    absent_days: int = 0
    total_hours: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    # Leave bookkeeping; never part of days_worked / absent_days
    paid_leave_days: int = 0
    unpaid_leave_days: int = 0


@dataclass(frozen=True)
class PayrollLine:
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

    @property
    def has_negative_net_pay(self) -> bool:
        return self.net_pay < 0


# ── Helpers ───────────────────────────────────────────────────────────────────

def to_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _to_decimal(value, name: str) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # via str(): 0.1 → Decimal("0.1")
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise InvalidInputError(f"{name} is not a number: {value!r}")
    if not result.is_finite():
        raise InvalidInputError(f"{name} is not a finite number: {value!r}")
    return result


def _check_brackets(brackets: tuple[TaxBracket, ...]) -> None:
    if not brackets:
        raise InvalidInputError("Tax bracket table is empty")
    previous = ZERO
    for i, bracket in enumerate(brackets):
        if bracket.rate < 0:
            raise InvalidInputError("Tax rates must not be negative")
        if bracket.upper_bound is None:
            if i != len(brackets) - 1:
                raise InvalidInputError("Only the last tax bracket may be open-ended")
            continue
        if bracket.upper_bound <= previous:
            raise InvalidInputError("Tax bracket bounds must be strictly increasing")
        previous = bracket.upper_bound


def _parse_classification(value) -> EmploymentClassification:
    try:
        return EmploymentClassification(value)
    except ValueError:
        raise InvalidInputError(f"Unknown employment classification: {value!r}")


def _parse_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise InvalidInputError(f"Unknown attendance status: {value!r}")


# ── Attendance aggregation ────────────────────────────────────────────────────

def aggregate_attendance(records: Iterable[Any]) -> PeriodAttendanceTotals:
    """
    Reduces the attendance records of one employee and one pay period.

    absent        → absent_days += 1, no hours
    leave         → no hours, no day counters (paid/unpaid leave counted apart)
    present / late / half_day → hours + overtime added, days_worked += 1

    No deduplication: the caller guarantees one record per date.
    """
    days_worked = 0
    absent_days = 0
    paid_leave_days = 0
    unpaid_leave_days = 0
    total_hours = ZERO
    total_overtime = ZERO

    for record in records:
        status = _parse_status(record.status)
        if status is AttendanceStatus.ABSENT:
            absent_days += 1
        elif status is AttendanceStatus.LEAVE:
            if getattr(record, "is_approved", False):
                paid_leave_days += 1
            else:
                unpaid_leave_days += 1
        else:
            hours = _to_decimal(record.hours_worked, "hours_worked")
            overtime = _to_decimal(record.overtime_hours, "overtime_hours")
            if hours < 0 or overtime < 0:
                raise InvalidInputError(
                    f"Attendance hours must not be negative: {hours} / {overtime} overtime"
                )
            total_hours += hours
            total_overtime += overtime
            days_worked += 1

    return PeriodAttendanceTotals(
        days_worked=days_worked,
        absent_days=absent_days,
        total_hours=total_hours,
        total_overtime_hours=total_overtime,
        paid_leave_days=paid_leave_days,
        unpaid_leave_days=unpaid_leave_days,
    )


# ── Tax ───────────────────────────────────────────────────────────────────────

def progressive_tax(
    gross_pay: Decimal, brackets: tuple[TaxBracket, ...] = DEFAULT_TAX_BRACKETS
) -> Decimal:
    """Sum of each bracket's rate applied to the slice of gross_pay inside it (unrounded)."""
    gross_pay = _to_decimal(gross_pay, "gross_pay")
    tax = ZERO
    lower = ZERO
    for bracket in brackets:
        if gross_pay <= lower:
            break
        upper = gross_pay if bracket.upper_bound is None else min(gross_pay, bracket.upper_bound)
        taxable_slice = max(upper - lower, ZERO)
        tax += taxable_slice * bracket.rate
        if bracket.upper_bound is None:
            break
        lower = bracket.upper_bound
    return tax


# ── Payroll line ──────────────────────────────────────────────────────────────

def compute_payroll(
    profile: EmployeeFinancialProfile,
    totals: PeriodAttendanceTotals,
    policy: PayPolicy | None = None,
) -> PayrollLine:
    policy = policy or PayPolicy()

    base_salary = _to_decimal(profile.base_salary, "base_salary")
    if base_salary < 0:
        raise InvalidInputError(f"base_salary must not be negative: {base_salary}")
    classification = _parse_classification(profile.employment_classification)

    total_hours = _to_decimal(totals.total_hours, "total_hours")
    overtime_hours = _to_decimal(totals.total_overtime_hours, "total_overtime_hours")
    if total_hours < 0 or overtime_hours < 0:
        raise InvalidInputError("Hour totals must not be negative")
    if totals.days_worked < 0 or totals.absent_days < 0 or totals.unpaid_leave_days < 0:
        raise InvalidInputError("Day counters must not be negative")

    # 1. Overtime + gross
    hourly_rate = base_salary / Decimal(policy.standard_monthly_hours)
    basic_salary = to_money(base_salary)
    overtime_pay = to_money(overtime_hours * hourly_rate)
    gross_pay = basic_salary + overtime_pay

    # 2. Statutory deductions
    if classification.is_statutory_exempt:
        tax = provident_fund = etf = ZERO.quantize(CENT)
    else:
        tax = to_money(progressive_tax(gross_pay, policy.tax_brackets))
        provident_fund = to_money(gross_pay * Decimal(policy.provident_fund_rate))
        etf = to_money(gross_pay * Decimal(policy.etf_rate))

    other = ZERO.quantize(CENT)
    if policy.paid_leave_policy is PaidLeavePolicy.DEDUCT_UNPAID and totals.unpaid_leave_days:
        daily_rate = base_salary / Decimal(policy.standard_working_days)
        other = to_money(daily_rate * totals.unpaid_leave_days)

    # 3. Totals
    total_deductions = tax + provident_fund + etf + other
    return PayrollLine(
        hourly_rate=to_money(hourly_rate),
        basic_salary=basic_salary,
        overtime_pay=overtime_pay,
        gross_pay=gross_pay,
        tax_deduction=tax,
        provident_fund_deduction=provident_fund,
        etf_deduction=etf,
        other_deduction=other,
        total_deductions=total_deductions,
        net_pay=gross_pay - total_deductions,
    )
