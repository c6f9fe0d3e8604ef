# marketplace/models/user.py
from typing import Optional
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserBase(SQLModel):
    full_name: str = Field(max_length=100, nullable=False)
    nickname: str = Field(max_length=50, nullable=False)
    # always stored lower-cased, so the unique index is case-insensitive
    email: str = Field(max_length=254, index=True, nullable=False, unique=True)
    photo_path: Optional[str] = None


class UserCreate(UserBase):
    password_hash: str


class UserUpdate(SQLModel):
    full_name: Optional[str] = None
    nickname: Optional[str] = None
    photo_path: Optional[str] = None


class User(UserBase, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    password_hash: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=_utcnow)
