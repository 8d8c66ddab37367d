from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings


class Base(DeclarativeBase):
    pass


def engine_options(database_url: str) -> dict:
    options = {"echo": settings.DEBUG and settings.LOG_LEVEL.upper() == "DEBUG"}
    if database_url.startswith("sqlite"):
        # aiosqlite hands the connection to a worker thread
        options["connect_args"] = {"check_same_thread": False}
    return options


engine = create_async_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """One session with rollback on error; used by requests and Celery tasks alike."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncIterator[AsyncSession]:
    async with session_scope() as session:
        yield session


async def create_tables(bind=None):
    """Creates all tables on `bind` (default: the app engine). No migration tooling."""
    import app.models  # noqa – registers all models
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(bind=None):
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
