from pydantic import BaseModel
from typing import Optional


class UserListItem(BaseModel):
    username: str
    display: Optional[str] = None


class UserListResponse(BaseModel):
    users: list[UserListItem]


class UserDisplay(BaseModel):
    display: Optional[str] = None


class UserLookupResponse(BaseModel):
    success: bool = True
    user: UserDisplay
