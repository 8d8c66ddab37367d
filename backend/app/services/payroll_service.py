"""
PayrollService: payroll for one employee or a whole workforce and pay period.

Reads employees and attendance, runs the pure calculator
(app.services.payroll_calculator) and turns the resulting lines into
PayrollEntry rows. Bulk runs never abort on a single employee: invalid input
and already-existing entries are collected as BatchError items.
"""
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    DuplicatePeriodError,
    EmployeeNotFoundError,
    InvalidInputError,
    PayrollError,
)
from app.services.payroll_calculator import (
    EmployeeFinancialProfile,
    PayPolicy,
    PayrollLine,
    PeriodAttendanceTotals,
    aggregate_attendance,
    compute_payroll,
)

if TYPE_CHECKING:
    from app.models.employee import Employee
    from app.models.payroll import PayrollEntry

logger = logging.getLogger(__name__)

MONEY_ZERO = Decimal("0.00")


@dataclass
class EmployeePayroll:
    employee: "Employee"
    totals: PeriodAttendanceTotals
    line: PayrollLine


@dataclass
class BatchError:
    employee_id: uuid.UUID
    employee_code: str
    employee_name: str
    error: str
    message: str

    @classmethod
    def from_exception(cls, employee: "Employee", exc: PayrollError) -> "BatchError":
        return cls(
            employee_id=employee.id,
            employee_code=employee.employee_code,
            employee_name=employee.full_name,
            error=type(exc).__name__,
            message=str(exc),
        )


@dataclass
class BatchResult:
    period_start: date
    period_end: date
    items: list[EmployeePayroll] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)
    entries: list["PayrollEntry"] = field(default_factory=list)
    committed: bool = False

    @property
    def totals(self) -> dict:
        return {
            "total_employees": len(self.items),
            "total_gross": sum((i.line.gross_pay for i in self.items), MONEY_ZERO),
            "total_deductions": sum((i.line.total_deductions for i in self.items), MONEY_ZERO),
            "total_net": sum((i.line.net_pay for i in self.items), MONEY_ZERO),
        }


class PayrollService:

    def __init__(self, db: AsyncSession, policy: PayPolicy | None = None):
        self.db = db
        self.policy = policy or PayPolicy.from_settings(settings)

    # ── Collaborator lookups ──────────────────────────────────────────────────

    async def get_employee(self, employee_id: uuid.UUID) -> "Employee":
        from app.models.employee import Employee
        result = await self.db.execute(select(Employee).where(Employee.id == employee_id))
        employee = result.scalar_one_or_none()
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        return employee

    async def get_employee_by_code(self, employee_code: str) -> "Employee":
        from app.models.employee import Employee
        result = await self.db.execute(select(Employee).where(Employee.employee_code == employee_code))
        employee = result.scalar_one_or_none()
        if employee is None:
            raise EmployeeNotFoundError(employee_code)
        return employee

    async def get_attendance(self, employee_id: uuid.UUID, start: date, end: date):
        from app.models.attendance import AttendanceRecord
        result = await self.db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.work_date >= start,
                AttendanceRecord.work_date <= end,
            )
        )
        return result.scalars().all()

    async def find_entry(self, employee_id: uuid.UUID, start: date, end: date) -> "PayrollEntry | None":
        from app.models.payroll import PayrollEntry
        result = await self.db.execute(
            select(PayrollEntry).where(
                PayrollEntry.employee_id == employee_id,
                PayrollEntry.pay_period_start == start,
                PayrollEntry.pay_period_end == end,
            )
        )
        return result.scalar_one_or_none()

    # ── Single employee ───────────────────────────────────────────────────────

    async def summarize_attendance(self, employee_id: uuid.UUID, start: date, end: date) -> PeriodAttendanceTotals:
        return aggregate_attendance(await self.get_attendance(employee_id, start, end))

    def compute(self, employee: "Employee", records) -> EmployeePayroll:
        totals = aggregate_attendance(records)
        line = compute_payroll(EmployeeFinancialProfile.from_employee(employee), totals, self.policy)
        if line.has_negative_net_pay:
            raise InvalidInputError(
                f"Net pay is negative ({line.net_pay}) – check the deduction configuration"
            )
        return EmployeePayroll(employee=employee, totals=totals, line=line)

    async def calculate(self, employee: "Employee", start: date, end: date) -> EmployeePayroll:
        """Computes one employee's payroll without storing anything."""
        return self.compute(employee, await self.get_attendance(employee.id, start, end))

    async def create_entry(
        self,
        employee_id: uuid.UUID,
        start: date,
        end: date,
        processed_by: str | None = None,
    ) -> "PayrollEntry":
        employee = await self.get_employee(employee_id)
        if await self.find_entry(employee_id, start, end) is not None:
            raise DuplicatePeriodError(employee_id, start, end)

        item = await self.calculate(employee, start, end)
        entry = self.build_entry(item, start, end, processed_by)
        self.db.add(entry)
        await self.db.commit()
        await self.db.refresh(entry)
        logger.info("Payroll created for %s (%s – %s)", employee.employee_code, start, end)
        return entry

    def build_entry(
        self,
        item: EmployeePayroll,
        start: date,
        end: date,
        processed_by: str | None = None,
        note: str | None = None,
    ) -> "PayrollEntry":
        from app.models.payroll import PayrollEntry
        line, totals = item.line, item.totals
        hours_note = f"Hours: {totals.total_hours:.2f}, Days: {totals.days_worked}"
        return PayrollEntry(
            employee_id=item.employee.id,
            pay_period_start=start,
            pay_period_end=end,
            hours_worked=totals.total_hours,
            overtime_hours=totals.total_overtime_hours,
            days_worked=totals.days_worked,
            absent_days=totals.absent_days,
            paid_leave_days=totals.paid_leave_days,
            unpaid_leave_days=totals.unpaid_leave_days,
            basic_salary=line.basic_salary,
            overtime_pay=line.overtime_pay,
            gross_pay=line.gross_pay,
            tax_deduction=line.tax_deduction,
            provident_fund_deduction=line.provident_fund_deduction,
            etf_deduction=line.etf_deduction,
            other_deduction=line.other_deduction,
            total_deductions=line.total_deductions,
            net_pay=line.net_pay,
            status="pending",
            processed_by=processed_by,
            processed_at=datetime.now(timezone.utc),
            notes=f"{note}. {hours_note}" if note else hours_note,
        )

    # ── Batch ─────────────────────────────────────────────────────────────────

    async def _active_employees(self) -> list["Employee"]:
        from app.models.employee import Employee
        result = await self.db.execute(
            select(Employee).where(Employee.status == "active").order_by(Employee.employee_code)
        )
        return list(result.scalars().all())

    async def compute_batch(self, start: date, end: date) -> BatchResult:
        """Payroll lines for every active employee; duplicates and invalid input become errors."""
        from app.models.attendance import AttendanceRecord
        from app.models.payroll import PayrollEntry

        result = BatchResult(period_start=start, period_end=end)
        employees = await self._active_employees()
        if not employees:
            return result
        employee_ids = [e.id for e in employees]

        existing_result = await self.db.execute(
            select(PayrollEntry.employee_id).where(
                PayrollEntry.employee_id.in_(employee_ids),
                PayrollEntry.pay_period_start == start,
                PayrollEntry.pay_period_end == end,
            )
        )
        already_processed = set(existing_result.scalars().all())

        attendance_result = await self.db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id.in_(employee_ids),
                AttendanceRecord.work_date >= start,
                AttendanceRecord.work_date <= end,
            )
        )
        records_by_employee = defaultdict(list)
        for record in attendance_result.scalars().all():
            records_by_employee[record.employee_id].append(record)

        for employee in employees:
            try:
                if employee.id in already_processed:
                    raise DuplicatePeriodError(employee.id, start, end)
                result.items.append(self.compute(employee, records_by_employee[employee.id]))
            except PayrollError as exc:
                logger.warning("Payroll skipped for %s: %s", employee.employee_code, exc)
                result.errors.append(BatchError.from_exception(employee, exc))

        return result

    async def run_batch(
        self,
        start: date,
        end: date,
        processed_by: str | None = None,
        commit_partial: bool = True,
    ) -> BatchResult:
        """
        Computes and stores payroll for all active employees.
        With commit_partial=False nothing is stored as soon as one employee fails.
        """
        result = await self.compute_batch(start, end)

        if result.errors and not commit_partial:
            logger.info(
                "Bulk payroll %s – %s not committed: %d errors", start, end, len(result.errors)
            )
            return result

        for item in result.items:
            entry = self.build_entry(item, start, end, processed_by, note="Auto-generated bulk payroll")
            self.db.add(entry)
            result.entries.append(entry)

        await self.db.commit()
        for entry in result.entries:
            await self.db.refresh(entry)
        result.committed = True

        logger.info(
            "Bulk payroll %s – %s: %d created, %d errors",
            start, end, len(result.entries), len(result.errors),
        )
        return result
