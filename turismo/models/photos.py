from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from turismo.db.base import Base


class UserPhoto(Base):
    __tablename__ = "user_photos"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    photo_url: Mapped[str] = mapped_column(String(500), nullable=False)
    caption: Mapped[str | None] = mapped_column(String(500), nullable=True)
    place_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("places.id"), nullable=True, index=True)
    storage_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    user: Mapped["User"] = relationship()
    place: Mapped["Place | None"] = relationship(back_populates="photos")
    reactions: Mapped[list["PhotoReaction"]] = relationship(back_populates="photo", cascade="all, delete-orphan")


class PhotoReaction(Base):
    __tablename__ = "photo_reactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    photo_id: Mapped[str] = mapped_column(String(36), ForeignKey("user_photos.id"), nullable=False, index=True)
    reaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    user: Mapped["User"] = relationship()
    photo: Mapped[UserPhoto] = relationship(back_populates="reactions")

    __table_args__ = (UniqueConstraint("user_id", "photo_id", name="uq_photo_reactions_user_photo"),)
