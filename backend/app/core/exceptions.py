"""
Domain errors raised by the payroll core and the batch orchestrator.
Mapped to HTTP responses in app.main.
"""
import uuid
from datetime import date


class PayrollError(Exception):
    """Base exception for payroll rule violations."""


class InvalidInputError(PayrollError):
    """Malformed or out-of-domain input (negative salary/hours, unknown enum value)."""


class DuplicatePeriodError(PayrollError):
    """A payroll entry already exists for (employee, period_start, period_end)."""

    def __init__(self, employee_id: uuid.UUID, period_start: date, period_end: date):
        self.employee_id = employee_id
        self.period_start = period_start
        self.period_end = period_end
        super().__init__(
            f"Payroll already exists for employee {employee_id} "
            f"({period_start.isoformat()} – {period_end.isoformat()})"
        )


class EmployeeNotFoundError(PayrollError):
    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"Employee not found: {identifier}")
