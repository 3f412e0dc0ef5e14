from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ReactionResponse(BaseModel):
    id: str
    user_id: str
    target_id: str
    reaction_type: str
    username: str | None
    created_at: datetime


class ReactionListResponse(BaseModel):
    items: list[ReactionResponse]
    total: int


class ReactionToggleResponse(BaseModel):
    message: str
    action: str  # added | removed
    reaction: ReactionResponse | None = None


class ReactionTypeCount(BaseModel):
    reaction_type: str
    count: int


class ReactionCountResponse(BaseModel):
    counts: list[ReactionTypeCount]
    total: int
