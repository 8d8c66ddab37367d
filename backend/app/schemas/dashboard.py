from pydantic import BaseModel
import uuid
from datetime import datetime
from decimal import Decimal


class RecentPayrollOut(BaseModel):
    id: uuid.UUID
    employee_name: str
    status: str
    gross_pay: Decimal
    net_pay: Decimal
    created_at: datetime


class DepartmentSalaryOut(BaseModel):
    department: str
    total_net_pay: Decimal
    payroll_count: int


class MonthlyTrendOut(BaseModel):
    month: str  # YYYY-MM of pay_period_start
    total_net_pay: Decimal


class DashboardOut(BaseModel):
    total_employees: int
    active_employees: int
    total_payrolls: int
    payrolls_by_status: dict[str, int]
    total_gross_pay: Decimal
    total_net_pay: Decimal
    recent_payrolls: list[RecentPayrollOut]
    department_salary: list[DepartmentSalaryOut]
    monthly_trend: list[MonthlyTrendOut]
