from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from turismo.models.enums import CommentReactionType


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    place_id: str | None = Field(default=None, max_length=36)
    parent_comment_id: str | None = Field(default=None, max_length=36)


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class CommentResponse(BaseModel):
    id: str
    user_id: str
    place_id: str | None
    parent_comment_id: str | None
    content: str
    username: str | None
    avatar_url: str | None
    place_name: str | None
    reaction_count: int = 0
    user_has_reacted: bool = False
    created_at: datetime
    updated_at: datetime


class CommentListResponse(BaseModel):
    items: list[CommentResponse]
    total: int


class CommentReactionCreate(BaseModel):
    reaction_type: CommentReactionType
