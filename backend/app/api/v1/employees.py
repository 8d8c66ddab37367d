"""
Employees API – directory used by attendance and payroll.
"""
import uuid
from typing import get_args

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select, func

from app.api.deps import DB, Payroll
from app.models.employee import Employee
from app.schemas.employee import (
    EmployeeCreate, EmployeeUpdate, EmployeeOut, EmployeeStatsOut, EmployeeStatus, UNASSIGNED_DEPARTMENT,
)
from app.services.payroll_calculator import EmploymentClassification

router = APIRouter(prefix="/employees", tags=["employees"])

# NOT NULL columns: an explicit null in an update leaves the stored value
REQUIRED_FIELDS = {"first_name", "last_name", "base_salary", "employment_type", "status"}


@router.get("", response_model=list[EmployeeOut])
async def list_employees(
    db: DB,
    status: str | None = None,
    department: str | None = None,
    employment_type: str | None = None,
):
    query = select(Employee)
    if status:
        query = query.where(Employee.status == status)
    if department:
        query = query.where(Employee.department == department)
    if employment_type:
        query = query.where(Employee.employment_type == employment_type)
    result = await db.execute(query.order_by(Employee.employee_code))
    return result.scalars().all()


@router.post("", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
async def create_employee(payload: EmployeeCreate, db: DB):
    existing = await db.execute(select(Employee.id).where(Employee.employee_code == payload.employee_code))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Employee code already in use: {payload.employee_code}",
        )

    employee = Employee(**payload.model_dump(mode="python"))
    employee.employment_type = payload.employment_type.value
    db.add(employee)
    await db.commit()
    await db.refresh(employee)
    return employee


@router.get("/stats", response_model=EmployeeStatsOut)
async def employee_stats(db: DB):
    async def _counts(column) -> dict:
        result = await db.execute(select(column, func.count(Employee.id)).group_by(column))
        return {row[0]: row[1] for row in result.all()}

    by_status = {s: 0 for s in get_args(EmployeeStatus)}
    by_status.update(await _counts(Employee.status))

    by_employment_type = {c.value: 0 for c in EmploymentClassification}
    by_employment_type.update(await _counts(Employee.employment_type))

    by_department = {
        (department or UNASSIGNED_DEPARTMENT): n
        for department, n in (await _counts(Employee.department)).items()
    }

    return EmployeeStatsOut(
        total_employees=sum(by_status.values()),
        by_status=by_status,
        by_department=by_department,
        by_employment_type=by_employment_type,
    )


@router.get("/by-code/{employee_code}", response_model=EmployeeOut)
async def get_employee_by_code(employee_code: str, service: Payroll):
    return await service.get_employee_by_code(employee_code)


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(employee_id: uuid.UUID, db: DB):
    result = await db.execute(select(Employee).where(Employee.id == employee_id))
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


@router.put("/{employee_id}", response_model=EmployeeOut)
async def update_employee(employee_id: uuid.UUID, payload: EmployeeUpdate, db: DB):
    result = await db.execute(select(Employee).where(Employee.id == employee_id))
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        if field == "employment_type" and value is not None:
            value = value.value
        setattr(employee, field, value)

    await db.commit()
    await db.refresh(employee)
    return employee


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_employee(employee_id: uuid.UUID, db: DB):
    """Soft delete – payroll history stays attached to the employee."""
    result = await db.execute(select(Employee).where(Employee.id == employee_id))
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    employee.status = "inactive"
    await db.commit()
