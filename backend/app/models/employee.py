import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, Date, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    employee_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)  # e.g. EMP007

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    base_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    employment_type: Mapped[str] = mapped_column(
        String(50), default="full_time"
    )  # full_time | part_time | contract | intern
    status: Mapped[str] = mapped_column(
        String(50), default="active"
    )  # active | inactive | terminated | on_leave

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    attendance_records: Mapped[list["AttendanceRecord"]] = relationship(back_populates="employee")
    payroll_entries: Mapped[list["PayrollEntry"]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
