from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class ProfileCreate(BaseModel):
    full_name: str | None = Field(default=None, max_length=200)
    bio: str | None = Field(default=None, max_length=1000)
    avatar_url: str | None = Field(default=None, max_length=500)


class ProfileUpdate(ProfileCreate):
    pass


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    full_name: str | None
    bio: str | None
    avatar_url: str | None
    created_at: datetime
    updated_at: datetime


class AccountResponse(BaseModel):
    """Current user joined with their (optional) profile."""

    id: str
    username: str | None
    email: EmailStr
    is_verified: bool
    avatar_url: str | None
    created_at: datetime
    full_name: str | None
    bio: str | None


class UserSummaryResponse(BaseModel):
    id: str
    username: str | None
    email: EmailStr
    avatar_url: str | None
    created_at: datetime
    comment_count: int
    photo_count: int
