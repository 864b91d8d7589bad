from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from orstock.auth import Identity, require_writer
from orstock.config import get_settings
from orstock.database import get_db
from orstock.exceptions import CabinetNotFound, InvalidPayload, VersionConflict
from orstock.schemas.stock import SaveResponse, UpdateResponse
from orstock.services.stock_service import stock_service, to_key, to_response
from orstock.services.time_gate import get_next_allowed_time, is_within_allowed_time

router = APIRouter()

MSG_CONFLICT = "ข้อมูลถูกแก้ไขโดยผู้ใช้อื่นแล้ว กรุณาโหลดข้อมูลใหม่"


async def check_edit_window():
    if get_settings().enforce_edit_window and not is_within_allowed_time():
        raise HTTPException(
            status_code=403,
            detail=f"อยู่นอกช่วงเวลาที่อนุญาตให้แก้ไข (ครั้งถัดไป {get_next_allowed_time()})",
        )


@router.get("")
async def get_stock(
    id: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """One cabinet's month when id, month and year are all given, otherwise the per-cabinet summary."""
    if not (id and month and year):
        return await stock_service.summarize(db)

    try:
        key = to_key(id), to_key(month), to_key(year)
    except InvalidPayload as e:
        raise HTTPException(status_code=400, detail=e.reason)
    locker = await stock_service.find(db, *key)
    if not locker:
        raise HTTPException(status_code=404, detail="Cabinet not found")
    return to_response(locker)


@router.post("", response_model=SaveResponse, dependencies=[Depends(check_edit_window)])
async def save_stock(
    body: dict,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_writer),
):
    try:
        locker = await stock_service.save(db, body, updated_by=identity.stamp)
    except InvalidPayload as e:
        raise HTTPException(status_code=400, detail=e.reason)
    except VersionConflict:
        raise HTTPException(status_code=409, detail=MSG_CONFLICT)
    return SaveResponse(last_updated=locker.last_updated, version=locker.version)


@router.put("", response_model=UpdateResponse, dependencies=[Depends(check_edit_window)])
async def update_stock(
    body: dict,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_writer),
):
    try:
        locker = await stock_service.update_device(db, body, updated_by=identity.stamp)
    except InvalidPayload as e:
        raise HTTPException(status_code=400, detail=e.reason)
    except CabinetNotFound:
        raise HTTPException(status_code=404, detail="Cabinet or device not found")
    except VersionConflict:
        raise HTTPException(status_code=409, detail=MSG_CONFLICT)
    return UpdateResponse(version=locker.version)
