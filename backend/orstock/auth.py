"""
Request identity: who is calling and what they may change.

There are no sessions or tokens. The login endpoint sets plain `username`,
`role` and `display` cookies and every privileged request re-resolves the
caller from them (or from the equivalent `x-*` headers / `?username=`
query parameter), hitting the users table when the role or display name is
not carried by the request itself.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, unquote
from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from orstock.database import get_db
from orstock.models.user import User

logger = logging.getLogger(__name__)

WRITE_ROLES = ("admin", "operator")
IDENTITY_COOKIES = ("username", "role", "display")

MSG_WRITE_FORBIDDEN = "ต้องเป็น admin หรือ operator เท่านั้น"
MSG_ADMIN_ONLY = "ต้องเป็นผู้ดูแลระบบ (admin) เท่านั้น"


@dataclass
class Identity:
    """Resolved caller attached to privileged requests."""
    role: Optional[str]
    display: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def can_write(self) -> bool:
        return self.role in WRITE_ROLES

    @property
    def stamp(self) -> str:
        """Name recorded in lastUpdatedBy."""
        return self.display or "Unknown"


def read_cookie(request: Request, name: str) -> Optional[str]:
    value = request.cookies.get(name)
    return unquote(value) if value else None


def set_identity_cookies(response: Response, user: User) -> None:
    response.set_cookie("username", quote(str(user.username), safe=""), path="/")
    if user.role:
        response.set_cookie("role", quote(str(user.role), safe=""), path="/")
    if user.display:
        response.set_cookie("display", quote(str(user.display), safe=""), path="/")


def clear_identity_cookies(response: Response) -> None:
    for name in IDENTITY_COOKIES:
        response.delete_cookie(name, path="/")


def resolve_username(request: Request) -> Optional[str]:
    return (
        request.headers.get("x-username")
        or request.query_params.get("username")
        or read_cookie(request, "username")
    )


async def resolve_role(request: Request, db: AsyncSession) -> Optional[str]:
    """Header, then cookie, then a lookup of the resolved username. None on any failure."""
    role = request.headers.get("x-role") or read_cookie(request, "role")
    if role:
        return role
    username = resolve_username(request)
    if not username:
        return None
    try:
        return await db.scalar(select(User.role).where(User.username == username))
    except SQLAlchemyError as e:
        logger.warning("Role lookup failed for %s: %s", username, e)
        return None


async def resolve_display(request: Request, db: AsyncSession) -> Optional[str]:
    display = request.headers.get("x-display") or read_cookie(request, "display")
    if display:
        return display
    username = resolve_username(request)
    if not username:
        return None
    try:
        row = (
            await db.execute(select(User.display, User.username).where(User.username == username))
        ).first()
    except SQLAlchemyError as e:
        logger.warning("Display lookup failed for %s: %s", username, e)
        return None
    if row is None:
        return None
    return row.display or row.username


def require_roles(*roles: str, message: str = MSG_WRITE_FORBIDDEN):
    """FastAPI dependency factory: 403 unless the resolved role is one of `roles`."""

    async def dependency(request: Request, db: AsyncSession = Depends(get_db)) -> Identity:
        role = await resolve_role(request, db)
        if role not in roles:
            logger.info("Rejected %s %s for role %r", request.method, request.url.path, role)
            raise HTTPException(status_code=403, detail=message)
        return Identity(role=role, display=await resolve_display(request, db))

    return dependency


require_writer = require_roles(*WRITE_ROLES)
require_admin = require_roles("admin", message=MSG_ADMIN_ONLY)
