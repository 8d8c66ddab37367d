from pydantic import BaseModel, EmailStr, Field
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from app.services.payroll_calculator import EmploymentClassification

EmployeeStatus = Literal["active", "inactive", "terminated", "on_leave"]

# by_department key for employees without a department
UNASSIGNED_DEPARTMENT = "unassigned"


class EmployeeOut(BaseModel):
    id: uuid.UUID
    employee_code: str
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    department: str | None
    position: str | None
    hire_date: date | None
    base_salary: Decimal
    employment_type: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class EmployeeCreate(BaseModel):
    employee_code: str = Field(min_length=1, max_length=20)
    first_name: str
    last_name: str
    email: EmailStr | None = None
    phone: str | None = None
    department: str | None = None
    position: str | None = None
    hire_date: date | None = None
    base_salary: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    employment_type: EmploymentClassification = EmploymentClassification.FULL_TIME
    status: EmployeeStatus = "active"


class EmployeeUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    department: str | None = None
    position: str | None = None
    hire_date: date | None = None
    base_salary: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    employment_type: EmploymentClassification | None = None
    status: EmployeeStatus | None = None


class EmployeeStatsOut(BaseModel):
    total_employees: int
    by_status: dict[str, int]
    by_department: dict[str, int]
    by_employment_type: dict[str, int]
