import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Integer, Numeric, Text, Date, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class PayrollEntry(Base):
    __tablename__ = "payroll_entries"
    __table_args__ = (
        UniqueConstraint("employee_id", "pay_period_start", "pay_period_end", name="uq_payroll_employee_period"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("employees.id"), nullable=False)
    pay_period_start: Mapped[date] = mapped_column(Date, nullable=False)
    pay_period_end: Mapped[date] = mapped_column(Date, nullable=False)

    # Attendance totals of the period
    hours_worked: Mapped[Decimal] = mapped_column(Numeric(7, 2), default=0)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(7, 2), default=0)
    days_worked: Mapped[int] = mapped_column(Integer, default=0)
    absent_days: Mapped[int] = mapped_column(Integer, default=0)
    paid_leave_days: Mapped[int] = mapped_column(Integer, default=0)
    unpaid_leave_days: Mapped[int] = mapped_column(Integer, default=0)

    # Earnings
    basic_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Deductions
    tax_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    provident_fund_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    etf_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    other_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Status
    status: Mapped[str] = mapped_column(String(50), default="pending")  # pending | approved | paid | cancelled
    pay_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    processed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    employee: Mapped["Employee"] = relationship(back_populates="payroll_entries")
