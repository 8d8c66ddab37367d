from celery import Celery
from celery.schedules import crontab

from app.core.config import settings

celery_app = Celery(
    "payroll",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks.payroll_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=True,
    beat_schedule={
        # 1st of each month, 07:00: bulk payroll for the previous month
        "monthly-payroll": {
            "task": "app.tasks.payroll_tasks.create_monthly_payrolls",
            "schedule": crontab(hour=7, minute=0, day_of_month=1),
        },
    },
)
