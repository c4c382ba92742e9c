from typing import Optional
from datetime import datetime

from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow
from .enums import UserRole, UserStatus


class UserBase(SQLModel):
    email: str = Field(index=True, unique=True)
    name: str
    role: UserRole = UserRole.VIEWER
    status: UserStatus = UserStatus.ACTIVE
    mill: Optional[str] = None
    service_partner: Optional[str] = None


class User(UserBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    password_hash: str = ""
    last_login: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)


class UserCreate(UserBase):
    password: str


class UserRead(UserBase):
    id: int
    last_login: Optional[datetime] = None
    created_at: datetime


class UserUpdate(SQLModel):
    name: Optional[str] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    mill: Optional[str] = None
    service_partner: Optional[str] = None
    password: Optional[str] = None
