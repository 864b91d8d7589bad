import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from orstock.auth import Identity, require_admin
from orstock.database import get_db
from orstock.models.user import User
from orstock.schemas.user import UserDisplay, UserListItem, UserListResponse, UserLookupResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# Request keys stored in their own columns; anything else is kept in `extra`
USER_COLUMNS = {
    "username": "username",
    "password": "password",
    "display": "display",
    "role": "role",
    "lastLogin": "last_login",
}


@router.get("", response_model=UserListResponse)
async def list_users(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User.username, User.display).order_by(User.id))
    return UserListResponse(
        users=[UserListItem(username=row.username, display=row.display) for row in result.all()]
    )


@router.post("")
async def create_user(
    body: dict,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    """Insert the posted user as-is. No schema validation beyond the table's own constraints."""
    columns = {attr: body[key] for key, attr in USER_COLUMNS.items() if key in body}
    extra = {k: v for k, v in body.items() if k not in USER_COLUMNS}
    user = User(**columns, extra=extra)
    db.add(user)
    try:
        await db.flush()
    except SQLAlchemyError as e:
        logger.error("Failed to insert user %r: %s", body.get("username"), e)
        raise HTTPException(status_code=500, detail="Failed to insert user")
    logger.info("User %s created by %s", user.username, identity.stamp)
    return {"insertedId": user.id}


@router.get("/{employee_id}", response_model=UserLookupResponse)
async def get_user(employee_id: str, db: AsyncSession = Depends(get_db)):
    """Display name lookup by username (employee id)."""
    if not employee_id.strip():
        raise HTTPException(status_code=400, detail="รหัสพนักงานของท่านไม่ถูกต้อง")
    result = await db.execute(select(User.display).where(User.username == employee_id))
    row = result.first()
    if row is None:
        raise HTTPException(status_code=404, detail="ไม่พบข้อมูลพนักงาน")
    return UserLookupResponse(user=UserDisplay(display=row.display))
