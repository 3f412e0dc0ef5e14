from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from turismo.db.base import Base


class PlaceRating(Base):
    __tablename__ = "place_ratings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    place_id: Mapped[str] = mapped_column(String(36), ForeignKey("places.id"), nullable=False, index=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    place: Mapped["Place"] = relationship(back_populates="ratings")
    user: Mapped["User"] = relationship()

    __table_args__ = (
        UniqueConstraint("user_id", "place_id", name="uq_place_ratings_user_place"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_place_ratings_rating_range"),
    )


Index("ix_place_ratings_place_rating", PlaceRating.place_id, PlaceRating.rating)
