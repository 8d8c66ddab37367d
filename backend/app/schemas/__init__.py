from app.schemas.employee import EmployeeCreate, EmployeeUpdate, EmployeeOut, EmployeeStatsOut
from app.schemas.attendance import (
    AttendanceCreate, AttendanceUpdate, AttendanceOut, AttendanceSummaryOut, AttendanceStatsOut,
)
from app.schemas.payroll import (
    PayrollEntryOut, PayrollCalculateRequest, PayrollBulkRequest, PayrollPreviewOut, PayrollBulkOut,
    PayrollUpdate, PayrollStatsOut, PayslipOut,
)
from app.schemas.dashboard import DashboardOut

__all__ = [
    "EmployeeCreate", "EmployeeUpdate", "EmployeeOut", "EmployeeStatsOut",
    "AttendanceCreate", "AttendanceUpdate", "AttendanceOut", "AttendanceSummaryOut", "AttendanceStatsOut",
    "PayrollEntryOut", "PayrollCalculateRequest", "PayrollBulkRequest", "PayrollPreviewOut",
    "PayrollBulkOut", "PayrollUpdate", "PayrollStatsOut", "PayslipOut",
    "DashboardOut",
]
