from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from orstock.config import get_settings


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str):
    """Pooled engine for server databases, one connection per checkout for SQLite files."""
    settings = get_settings()
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, poolclass=NullPool)

    connect_args = {}
    if database_url.startswith("postgresql+asyncpg"):
        connect_args = {
            "timeout": settings.db_connect_timeout,
            "command_timeout": settings.db_command_timeout,
        }
    return create_async_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=0,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


engine = build_engine(get_settings().database_url)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
