import asyncio
import pytest
from sqlalchemy import select
from orstock.exceptions import VersionConflict
from orstock.models.locker import Locker
from orstock.services.stock_service import stock_service
from tests.conftest import cabinet

DEVICES_A = [{"id": 7, "name": "Writer A", "initialStock": 1, "stockRecords": []}]
DEVICES_B = [{"id": 8, "name": "Writer B", "initialStock": 2, "stockRecords": []}]


def run(coro):
    return asyncio.run(coro)


async def seed(session_factory):
    async with session_factory() as s:
        await stock_service.save(s, cabinet(), "seed")
        await s.commit()


async def stored(session_factory):
    async with session_factory() as s:
        return (await s.execute(select(Locker))).scalar_one()


def test_concurrent_saves_with_same_version_conflict(session_factory):
    async def scenario():
        await seed(session_factory)
        async with session_factory() as a, session_factory() as b:
            # Both writers read version 1 before either writes
            await stock_service.find(b, 1, 3, 2025)
            await stock_service.save(a, cabinet(devices=DEVICES_A, version=1), "A")
            await a.commit()
            with pytest.raises(VersionConflict):
                await stock_service.save(b, cabinet(devices=DEVICES_B, version=1), "B")
        return await stored(session_factory)

    locker = run(scenario())
    assert locker.version == 2
    assert locker.devices == DEVICES_A
    assert locker.last_updated_by == "A"


def test_concurrent_unversioned_saves_last_writer_wins(session_factory):
    async def scenario():
        await seed(session_factory)
        async with session_factory() as a, session_factory() as b:
            await stock_service.find(b, 1, 3, 2025)
            await stock_service.save(a, cabinet(devices=DEVICES_A), "A")
            await a.commit()
            saved = await stock_service.save(b, cabinet(devices=DEVICES_B), "B")
            await b.commit()
            assert saved.version == 3
        return await stored(session_factory)

    locker = run(scenario())
    assert locker.version == 3
    assert locker.devices == DEVICES_B
    assert locker.last_updated_by == "B"


def test_concurrent_device_edits_both_survive(session_factory):
    async def scenario():
        await seed(session_factory)
        async with session_factory() as a, session_factory() as b:
            await stock_service.find(b, 1, 3, 2025)
            body = {"cabinetId": 1, "month": 3, "year": 2025}
            await stock_service.update_device(a, {**body, "deviceId": 1, "name": "Suture 4-0"}, "A")
            await a.commit()
            await stock_service.update_device(b, {**body, "deviceId": 2, "initialStock": 60}, "B")
            await b.commit()
        return await stored(session_factory)

    locker = run(scenario())
    assert locker.version == 3
    assert locker.devices[0]["name"] == "Suture 4-0"
    assert locker.devices[1]["initialStock"] == 60


def test_stale_device_edit_with_version_conflicts(session_factory):
    async def scenario():
        await seed(session_factory)
        async with session_factory() as a, session_factory() as b:
            await stock_service.find(b, 1, 3, 2025)
            body = {"cabinetId": 1, "month": 3, "year": 2025, "version": 1}
            await stock_service.update_device(a, {**body, "deviceId": 1, "name": "Suture 4-0"}, "A")
            await a.commit()
            with pytest.raises(VersionConflict):
                await stock_service.update_device(b, {**body, "deviceId": 1, "name": "Other"}, "B")
        return await stored(session_factory)

    locker = run(scenario())
    assert locker.version == 2
    assert locker.devices[0]["name"] == "Suture 4-0"
