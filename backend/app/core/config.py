from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Database – SQLite for local development
    DATABASE_URL: str = "sqlite+aiosqlite:///./payroll.db"

    # Redis / Celery (monthly bulk run)
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_TIMEZONE: str = "Asia/Colombo"

    # Payroll policy
    # 40h week * 4 weeks; divisor for the overtime hourly rate
    PAYROLL_STANDARD_MONTHLY_HOURS: Decimal = Decimal("160")
    # Hours beyond this on a single attendance day count as overtime
    PAYROLL_STANDARD_DAILY_HOURS: Decimal = Decimal("8")
    # Divisor for the daily rate used by the unpaid-leave deduction
    PAYROLL_STANDARD_WORKING_DAYS: int = 20
    PAYROLL_PROVIDENT_FUND_RATE: Decimal = Decimal("0.08")
    PAYROLL_ETF_RATE: Decimal = Decimal("0")
    PAYROLL_PAID_LEAVE_POLICY: str = "full_base"  # full_base | deduct_unpaid

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
