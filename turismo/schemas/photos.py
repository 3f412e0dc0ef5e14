from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from turismo.models.enums import PhotoReactionType


class PhotoUpdate(BaseModel):
    caption: str | None = Field(default=None, max_length=500)
    place_id: str | None = Field(default=None, max_length=36)


class PhotoResponse(BaseModel):
    id: str
    user_id: str
    photo_url: str
    caption: str | None
    place_id: str | None
    username: str | None
    place_name: str | None
    created_at: datetime


class PhotoListResponse(BaseModel):
    items: list[PhotoResponse]
    total: int


class PhotoReactionCreate(BaseModel):
    reaction_type: PhotoReactionType
