from app.models.employee import Employee
from app.models.attendance import AttendanceRecord
from app.models.payroll import PayrollEntry

__all__ = [
    "Employee",
    "AttendanceRecord",
    "PayrollEntry",
]
