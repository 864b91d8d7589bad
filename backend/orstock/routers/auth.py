import logging
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from orstock.auth import clear_identity_cookies, read_cookie, set_identity_cookies
from orstock.config import get_settings
from orstock.database import get_db
from orstock.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()


def local_now() -> datetime:
    """Wall-clock time at the configured UTC offset, as a naive datetime."""
    offset = timedelta(hours=get_settings().login_utc_offset_hours)
    return datetime.now(timezone.utc).replace(tzinfo=None) + offset


def iso_millis(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def thai_datetime(dt: datetime) -> str:
    """DD/MM/YYYY HH:MM:SS with the Buddhist-era year."""
    return f"{dt.day:02d}/{dt.month:02d}/{dt.year + 543} {dt:%H:%M:%S}"


@router.post("")
async def login(body: dict, response: Response, db: AsyncSession = Depends(get_db)):
    """
    Plaintext username/password login.
    Body: {"username": "or01", "password": "..."}
    """
    username = body.get("username")
    password = body.get("password")
    if not username or not password:
        raise HTTPException(status_code=400, detail="กรุณากรอกชื่อผู้ใช้และรหัสผ่าน")

    result = await db.execute(
        select(User).where(User.username == str(username), User.password == str(password))
    )
    user = result.scalar_one_or_none()
    if not user:
        logger.info("Failed login for %s", username)
        raise HTTPException(status_code=401, detail="ชื่อผู้ใช้หรือรหัสผ่านไม่ถูกต้อง")

    now = local_now()
    timestamp = iso_millis(now)
    timestamp_thai = thai_datetime(now)
    user.last_login = timestamp
    await db.flush()
    logger.info("User %s logged in", user.username)

    set_identity_cookies(response, user)
    return {
        "success": True,
        "user": {**user.to_dict(), "lastLoginThai": timestamp_thai},
        "message": "เข้าสู่ระบบสำเร็จ",
        "timestamp": timestamp,
        "timestampThai": timestamp_thai,
    }


@router.post("/logout")
async def logout(response: Response):
    clear_identity_cookies(response)
    return {"success": True}


@router.get("/check-role")
async def check_role(request: Request, db: AsyncSession = Depends(get_db)):
    username = read_cookie(request, "username")
    if not username:
        return {"role": None}
    role = await db.scalar(select(User.role).where(User.username == username))
    return {"role": role, "username": username}
