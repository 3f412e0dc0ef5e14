from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class RatingCreate(BaseModel):
    place_id: str = Field(min_length=1, max_length=36)
    rating: int = Field(ge=1, le=5)


class RatingUpdate(BaseModel):
    rating: int = Field(ge=1, le=5)


class RatingResponse(BaseModel):
    id: str
    user_id: str
    place_id: str
    rating: int
    username: str | None = None
    place_name: str | None = None
    created_at: datetime
    updated_at: datetime


class RatingListResponse(BaseModel):
    items: list[RatingResponse]
    total: int


class AggregateResponse(BaseModel):
    average_rating: float
    total_ratings: int


class RatingMutationResponse(BaseModel):
    message: str
    rating: RatingResponse
    aggregate: AggregateResponse


class RatingDeleteResponse(BaseModel):
    message: str
    aggregate: AggregateResponse


class UserRatingResponse(BaseModel):
    place_id: str
    rating: int


class RatingBucketResponse(BaseModel):
    rating: int
    count: int


class RatingStatsResponse(BaseModel):
    average_rating: float
    total_ratings: int
    rating_distribution: list[RatingBucketResponse]


class RatingStatsEnvelope(BaseModel):
    success: bool = True
    stats: RatingStatsResponse
