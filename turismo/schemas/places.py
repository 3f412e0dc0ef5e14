from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PlaceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    image_url: str | None = Field(default=None, max_length=500)
    pdf_url: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=250)
    category: str | None = Field(default=None, max_length=80)


class PlaceUpdate(BaseModel):
    # Omitted fields keep their current value; rating aggregates are not writable
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    image_url: str | None = Field(default=None, max_length=500)
    pdf_url: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=250)
    category: str | None = Field(default=None, max_length=80)


class PlaceResponse(BaseModel):
    id: str
    name: str
    description: str | None
    image_url: str | None
    pdf_url: str | None
    location: str | None
    category: str | None
    average_rating: float
    total_ratings: int
    created_at: datetime


class PlaceListResponse(BaseModel):
    items: list[PlaceResponse]
    total: int


class PlaceFileResponse(BaseModel):
    message: str
    url: str | None
    place: PlaceResponse
