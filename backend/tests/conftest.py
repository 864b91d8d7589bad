import asyncio
import os
import tempfile

# Settings are read once at import time; point the app at a throwaway database first.
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='orstock-')}/app.db"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from orstock.database import Base, get_db
from orstock.main import app
from orstock.models.user import User

ADMIN = {"x-role": "admin", "x-display": "Admin"}
OPERATOR = {"x-role": "operator", "x-display": "Nurse A"}
VIEWER = {"x-role": "viewer"}


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def add_user(session_factory):
    def _add(username, password="secret", display=None, role="operator", **extra):
        async def insert():
            async with session_factory() as session:
                session.add(
                    User(username=username, password=password, display=display, role=role, extra=extra)
                )
                await session.commit()

        asyncio.run(insert())

    return _add


@pytest.fixture
def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def cabinet(cabinet_id=1, month=3, year=2025, devices=None, **fields):
    body = {"id": cabinet_id, "month": month, "year": year, "name": f"ตู้ {cabinet_id}"}
    body["devices"] = devices if devices is not None else [
        {
            "id": 1,
            "name": "Suture 3-0",
            "initialStock": 10,
            "stockRecords": [{"date": 1, "stock": 10}, {"date": 2, "stock": 8}],
        },
        {
            "id": 2,
            "name": "Gauze",
            "initialStock": 50,
            "stockRecords": [{"date": 1, "stock": 50}, {"date": 2, "stock": 45}],
        },
    ]
    body.update(fields)
    return body
