from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from turismo.db.base import Base


class Place(Base):
    __tablename__ = "places"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    pdf_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    location: Mapped[str | None] = mapped_column(String(250), nullable=True)
    category: Mapped[str | None] = mapped_column(String(80), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Cached aggregate over place_ratings; written only by services.ratings
    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, index=True)
    total_ratings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    ratings: Mapped[list["PlaceRating"]] = relationship(back_populates="place", cascade="all, delete-orphan")
    comments: Mapped[list["Comment"]] = relationship(back_populates="place")
    photos: Mapped[list["UserPhoto"]] = relationship(back_populates="place")
