"""Cabinet stock documents: normalization, whole-document upserts and partial updates."""
import copy
import logging
import math
from datetime import datetime, timezone
from itertools import groupby
from operator import attrgetter
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError
from orstock.models.locker import Locker
from orstock.schemas.stock import CabinetResponse, CabinetSummary
from orstock.exceptions import CabinetNotFound, InvalidPayload, VersionConflict

logger = logging.getLogger(__name__)

WRITE_ATTEMPTS = 3


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value, default=0):
    """Coerce a JSON scalar to int (when integral) or float; None falls back to `default`."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            value = float(text)
        except ValueError:
            raise InvalidPayload(f"Not a number: {value!r}")
    if not is_number(value) or not math.isfinite(value):
        raise InvalidPayload(f"Not a number: {value!r}")
    return int(value) if float(value).is_integer() else value


def to_key(value) -> int:
    try:
        number = to_number(value, default=None)
    except InvalidPayload:
        number = None
    if not isinstance(number, int):
        raise InvalidPayload("Invalid id/month/year")
    return number


def normalize_devices(devices) -> list[dict]:
    if not isinstance(devices, list):
        return []
    normalized = []
    seen_ids = set()
    for idx, dv in enumerate(devices):
        dv = dv if isinstance(dv, dict) else {}
        records = dv.get("stockRecords")
        device_id = to_number(dv.get("id"), default=idx + 1)
        if device_id in seen_ids:
            raise InvalidPayload(f"Duplicate device id {device_id}")
        seen_ids.add(device_id)
        normalized.append(
            {
                "id": device_id,
                "name": str(dv["name"]) if dv.get("name") is not None else f"อุปกรณ์ {idx + 1}",
                "initialStock": to_number(dv.get("initialStock")),
                "stockRecords": [
                    {
                        "date": to_number(r.get("date") if isinstance(r, dict) else None),
                        "stock": to_number(r.get("stock") if isinstance(r, dict) else None),
                    }
                    for r in records
                ]
                if isinstance(records, list)
                else [],
            }
        )
    return normalized


def normalize_cabinet(body: dict) -> dict:
    """Coerce a posted cabinet document into its stored shape."""
    cabinet_id = to_key(body.get("id"))
    month = to_key(body.get("month"))
    year = to_key(body.get("year"))
    name = body.get("name")
    return {
        "id": cabinet_id,
        "month": month,
        "year": year,
        "name": str(name) if name is not None else f"ตู้ {cabinet_id}",
        "devices": normalize_devices(body.get("devices")),
    }


def expected_version(body: dict) -> Optional[int]:
    if body.get("version") is None:
        return None
    try:
        version = to_number(body["version"])
    except InvalidPayload:
        raise InvalidPayload("Invalid version")
    if not isinstance(version, int):
        raise InvalidPayload("Invalid version")
    return version


def to_response(locker: Locker) -> CabinetResponse:
    return CabinetResponse(
        id=locker.cabinet_id,
        name=locker.name,
        month=locker.month,
        year=locker.year,
        devices=locker.devices or [],
        last_updated=locker.last_updated,
        last_updated_by=locker.last_updated_by,
        version=locker.version,
    )


class StockService:
    async def find(self, db: AsyncSession, cabinet_id: int, month: int, year: int) -> Optional[Locker]:
        result = await db.execute(
            select(Locker).where(
                Locker.cabinet_id == cabinet_id,
                Locker.month == month,
                Locker.year == year,
            )
        )
        return result.scalar_one_or_none()

    async def summarize(self, db: AsyncSession) -> list[CabinetSummary]:
        """One row per cabinet, taken from its most recently updated month."""
        result = await db.execute(
            select(Locker).order_by(Locker.cabinet_id, Locker.last_updated.desc(), Locker.pk.desc())
        )
        summary = []
        for cabinet_id, group in groupby(result.scalars().all(), key=attrgetter("cabinet_id")):
            tables = list(group)
            latest = tables[0]
            summary.append(
                CabinetSummary(
                    id=cabinet_id,
                    name=latest.name,
                    month=latest.month,
                    year=latest.year,
                    last_updated=latest.last_updated,
                    last_updated_by=latest.last_updated_by,
                    table_count=len(tables),
                    device_count=len(latest.devices or []),
                )
            )
        return summary

    @staticmethod
    def _check_version(locker: Optional[Locker], expected: Optional[int]) -> None:
        if expected is None:
            return
        actual = locker.version if locker is not None else 0
        if expected != actual:
            raise VersionConflict(expected, actual)

    async def _write(self, db: AsyncSession, expected: Optional[int], apply) -> Locker:
        """Read-modify-flush with `apply`, guarded by the locker's version column.

        A lost race surfaces as StaleDataError (UPDATE matched no row at the
        version we read) or IntegrityError (someone inserted the key first).
        With a client `version` that is a conflict; without one the write is
        retried on fresh state, so the last writer still wins.
        """
        for attempt in range(1, WRITE_ATTEMPTS + 1):
            locker = await apply()
            key = (locker.cabinet_id, locker.month, locker.year)
            try:
                await db.flush()
                return locker
            except (StaleDataError, IntegrityError) as e:
                await db.rollback()
                if expected is not None or attempt == WRITE_ATTEMPTS:
                    logger.warning(
                        "Lost write race on cabinet %s %s/%s: %s", *key, e.__class__.__name__,
                    )
                    raise VersionConflict(expected if expected is not None else 0)
                logger.info(
                    "Retrying write to cabinet %s %s/%s (attempt %d)", *key, attempt + 1,
                )

    async def save(self, db: AsyncSession, body: dict, updated_by: str) -> Locker:
        """Replace the (id, month, year) document or insert it."""
        doc = normalize_cabinet(body)
        expected = expected_version(body)

        async def apply() -> Locker:
            locker = await self.find(db, doc["id"], doc["month"], doc["year"])
            self._check_version(locker, expected)
            if locker is None:
                locker = Locker(cabinet_id=doc["id"], month=doc["month"], year=doc["year"])
                db.add(locker)
            locker.name = doc["name"]
            locker.devices = copy.deepcopy(doc["devices"])
            flag_modified(locker, "devices")
            locker.last_updated = datetime.now(timezone.utc)
            locker.last_updated_by = updated_by
            return locker

        locker = await self._write(db, expected, apply)
        logger.info(
            "Saved cabinet %s %s/%s (%d devices, v%d) by %s",
            doc["id"], doc["month"], doc["year"], len(doc["devices"]), locker.version, updated_by,
        )
        return locker

    async def update_device(self, db: AsyncSession, body: dict, updated_by: str) -> Locker:
        """Apply one of the partial updates: a day's stock, a device name, or an initial stock."""
        if is_number(body.get("day")) and is_number(body.get("stock")):
            field = "day"
        elif isinstance(body.get("name"), str):
            field = "name"
        elif is_number(body.get("initialStock")):
            field = "initialStock"
        else:
            raise InvalidPayload("Unsupported update payload")

        try:
            cabinet_id = to_key(body.get("cabinetId"))
            month = to_key(body.get("month"))
            year = to_key(body.get("year"))
        except InvalidPayload:
            raise InvalidPayload("Invalid cabinetId/month/year")
        try:
            device_id = to_number(body.get("deviceId"), default=None)
        except InvalidPayload:
            # No stored device can carry a non-numeric id
            device_id = None
        expected = expected_version(body)

        async def apply() -> Locker:
            locker = await self.find(db, cabinet_id, month, year)
            devices = copy.deepcopy(locker.devices or []) if locker is not None else []
            device = next((d for d in devices if device_id is not None and d.get("id") == device_id), None)
            if device is None:
                raise CabinetNotFound(cabinet_id, month, year, device_id)
            self._check_version(locker, expected)

            if field == "day":
                for record in device.get("stockRecords") or []:
                    if record.get("date") == body["day"]:
                        record["stock"] = body["stock"]
            elif field == "name":
                device["name"] = body["name"]
            else:
                device["initialStock"] = body["initialStock"]

            locker.devices = devices
            flag_modified(locker, "devices")
            locker.last_updated = datetime.now(timezone.utc)
            locker.last_updated_by = updated_by
            return locker

        locker = await self._write(db, expected, apply)
        logger.info(
            "Updated %s of device %s in cabinet %s %s/%s by %s",
            field, device_id, cabinet_id, month, year, updated_by,
        )
        return locker


stock_service = StockService()
