"""
Fixtures and data helpers for the payroll tests.

Every test gets its own in-memory SQLite database. StaticPool keeps a single
connection, so the sessions opened by the HTTP client and the `db` fixture
all see the same rows.
"""
from datetime import date
from decimal import Decimal

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.core.database import create_tables, drop_tables, engine_options, get_db
from app.main import app
from app.models.attendance import AttendanceRecord
from app.models.employee import Employee

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def session_factory():
    test_engine = create_async_engine(
        TEST_DATABASE_URL, poolclass=StaticPool, **engine_options(TEST_DATABASE_URL)
    )
    await create_tables(test_engine)
    yield async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    await drop_tables(test_engine)
    await test_engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncSession:
    """Session for arranging data and checking what the code under test stored."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncClient:
    """API client; each request opens its own session on the test database."""
    async def test_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.pop(get_db, None)


# ── Data helpers ──────────────────────────────────────────────────────────────

async def create_employee(
    db,
    code: str = "EMP001",
    base_salary="100000",
    employment_type: str = "full_time",
    status: str = "active",
    first_name: str = "Nimal",
    last_name: str = "Perera",
    department: str | None = "Finance",
) -> Employee:
    emp = Employee(
        employee_code=code,
        first_name=first_name,
        last_name=last_name,
        department=department,
        position="Analyst",
        base_salary=Decimal(base_salary),
        employment_type=employment_type,
        status=status,
    )
    db.add(emp)
    await db.commit()
    await db.refresh(emp)
    return emp


async def add_attendance(
    db,
    employee: Employee,
    work_date: date,
    status: str = "present",
    hours="8",
    overtime="0",
    is_approved: bool = False,
) -> AttendanceRecord:
    record = AttendanceRecord(
        employee_id=employee.id,
        work_date=work_date,
        status=status,
        hours_worked=Decimal(hours),
        overtime_hours=Decimal(overtime),
        is_approved=is_approved,
    )
    db.add(record)
    await db.commit()
    return record
