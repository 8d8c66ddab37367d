"""
Dashboard API – headcount, payroll status counts and salary totals in one call.
"""
from collections import defaultdict
from decimal import Decimal
from typing import get_args

from fastapi import APIRouter
from sqlalchemy import select, func

from app.api.deps import DB
from app.models.employee import Employee
from app.models.payroll import PayrollEntry
from app.schemas.dashboard import DashboardOut, DepartmentSalaryOut, MonthlyTrendOut, RecentPayrollOut
from app.schemas.employee import UNASSIGNED_DEPARTMENT
from app.schemas.payroll import PayrollStatus
from app.services.payroll_calculator import to_money

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

RECENT_PAYROLLS = 5
TREND_MONTHS = 6


def _money(value) -> Decimal:
    return to_money(Decimal(str(value or 0)))


@router.get("", response_model=DashboardOut)
async def dashboard_overview(db: DB):
    emp_result = await db.execute(
        select(Employee.status, func.count(Employee.id)).group_by(Employee.status)
    )
    employees_by_status = {s: n for s, n in emp_result.all()}

    status_result = await db.execute(
        select(PayrollEntry.status, func.count(PayrollEntry.id)).group_by(PayrollEntry.status)
    )
    payrolls_by_status = {s: 0 for s in get_args(PayrollStatus)}
    payrolls_by_status.update({s: n for s, n in status_result.all()})

    sums_result = await db.execute(
        select(
            func.coalesce(func.sum(PayrollEntry.gross_pay), 0),
            func.coalesce(func.sum(PayrollEntry.net_pay), 0),
        )
    )
    gross, net = sums_result.one()

    recent_result = await db.execute(
        select(PayrollEntry, Employee)
        .join(Employee, PayrollEntry.employee_id == Employee.id)
        .order_by(PayrollEntry.created_at.desc())
        .limit(RECENT_PAYROLLS)
    )
    recent_payrolls = [
        RecentPayrollOut(
            id=entry.id,
            employee_name=emp.full_name,
            status=entry.status,
            gross_pay=entry.gross_pay,
            net_pay=entry.net_pay,
            created_at=entry.created_at,
        )
        for entry, emp in recent_result.all()
    ]

    dept_result = await db.execute(
        select(Employee.department, func.sum(PayrollEntry.net_pay), func.count(PayrollEntry.id))
        .select_from(PayrollEntry)
        .join(Employee, PayrollEntry.employee_id == Employee.id)
        .group_by(Employee.department)
    )
    department_salary = sorted(
        (
            DepartmentSalaryOut(
                department=department or UNASSIGNED_DEPARTMENT,
                total_net_pay=_money(total),
                payroll_count=count,
            )
            for department, total, count in dept_result.all()
        ),
        key=lambda d: d.total_net_pay,
        reverse=True,
    )

    # YYYY-MM buckets, newest TREND_MONTHS kept
    trend_result = await db.execute(select(PayrollEntry.pay_period_start, PayrollEntry.net_pay))
    net_by_month = defaultdict(Decimal)
    for period_start, net_pay in trend_result.all():
        net_by_month[period_start.strftime("%Y-%m")] += Decimal(str(net_pay))
    monthly_trend = [
        MonthlyTrendOut(month=month, total_net_pay=_money(net_by_month[month]))
        for month in sorted(net_by_month)[-TREND_MONTHS:]
    ]

    return DashboardOut(
        total_employees=sum(employees_by_status.values()),
        active_employees=employees_by_status.get("active", 0),
        total_payrolls=sum(payrolls_by_status.values()),
        payrolls_by_status=payrolls_by_status,
        total_gross_pay=_money(gross),
        total_net_pay=_money(net),
        recent_payrolls=recent_payrolls,
        department_salary=department_salary,
        monthly_trend=monthly_trend,
    )
