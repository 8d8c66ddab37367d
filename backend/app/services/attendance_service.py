"""
Attendance helpers: worked hours and overtime for a single day, working days
and attendance percentage for a period.
"""
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from app.services.payroll_calculator import AttendanceStatus, ZERO, to_money

HOURS_QUANTUM = Decimal("0.01")


def calc_worked_hours(work_date: date, check_in: time, check_out: time) -> Decimal:
    """check_out before check_in is read as an overnight shift ending the next day."""
    start = datetime.combine(work_date, check_in)
    end = datetime.combine(work_date, check_out)
    if end < start:
        end += timedelta(days=1)
    minutes = Decimal(int((end - start).total_seconds() // 60))
    return to_money(max(minutes / Decimal(60), ZERO))


def calc_overtime_hours(hours_worked: Decimal, standard_daily_hours: Decimal) -> Decimal:
    return max(Decimal(hours_worked) - Decimal(standard_daily_hours), ZERO).quantize(HOURS_QUANTUM)


def derive_hours(
    work_date: date,
    status: str,
    check_in: time | None,
    check_out: time | None,
    hours_worked: Decimal | None,
    overtime_hours: Decimal | None,
    standard_daily_hours: Decimal,
) -> tuple[Decimal, Decimal]:
    """
    Returns (hours_worked, overtime_hours) to store for one attendance record.

    absent / leave  → (0, 0)
    check-in + out  → computed from the clock times, overtime beyond the standard day
    otherwise       → the explicitly given values (missing = 0)
    """
    if AttendanceStatus(status) in (AttendanceStatus.ABSENT, AttendanceStatus.LEAVE):
        return ZERO, ZERO

    if check_in is not None and check_out is not None:
        worked = calc_worked_hours(work_date, check_in, check_out)
        return worked, calc_overtime_hours(worked, standard_daily_hours)

    return Decimal(hours_worked or 0), Decimal(overtime_hours or 0)


def count_working_days(start: date, end: date) -> int:
    """Monday to Friday within [start, end]."""
    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    working = full_weeks * 5
    for offset in range(remainder):
        if (start + timedelta(days=full_weeks * 7 + offset)).weekday() < 5:
            working += 1
    return working


def attendance_percentage(days_worked: int, working_days: int) -> Decimal:
    if working_days <= 0:
        return Decimal("0.00")
    return to_money(Decimal(days_worked) * 100 / Decimal(working_days))
