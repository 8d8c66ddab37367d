"""
Celery tasks for the automatic monthly payroll run.
"""
import asyncio
import logging
from datetime import date

from dateutil.relativedelta import relativedelta

from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


def previous_month_period(today: date) -> tuple[date, date]:
    """First and last day of the calendar month before `today`."""
    start = today.replace(day=1) - relativedelta(months=1)
    end = start + relativedelta(months=1, days=-1)
    return start, end


@celery_app.task(name="app.tasks.payroll_tasks.create_monthly_payrolls")
def create_monthly_payrolls():
    """Creates payroll entries for the previous month for all active employees."""
    start, end = previous_month_period(date.today())
    return asyncio.run(_create_payrolls(start, end))


async def _create_payrolls(start: date, end: date) -> dict:
    from app.core.database import session_scope
    from app.services.payroll_service import PayrollService

    async with session_scope() as db:
        result = await PayrollService(db).run_batch(start, end, processed_by=SYSTEM_ACTOR)

    for error in result.errors:
        logger.error(
            "Payroll error for employee %s (%s): %s",
            error.employee_code, error.error, error.message,
        )
    return {
        "period_start": start.isoformat(),
        "period_end": end.isoformat(),
        "created": len(result.entries),
        "errors": len(result.errors),
    }
