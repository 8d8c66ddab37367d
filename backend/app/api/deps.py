from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.services.payroll_calculator import PayPolicy
from app.services.payroll_service import PayrollService


def get_pay_policy() -> PayPolicy:
    return PayPolicy.from_settings(settings)


async def get_payroll_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    policy: Annotated[PayPolicy, Depends(get_pay_policy)],
) -> PayrollService:
    return PayrollService(db, policy)


DB = Annotated[AsyncSession, Depends(get_db)]
Payroll = Annotated[PayrollService, Depends(get_payroll_service)]
