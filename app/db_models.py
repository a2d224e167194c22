"""SQLAlchemy ORM models backing the media collection."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class MediaEntry(Base):
    """A single logged movie, show or book owned by one user."""

    __tablename__ = "media_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    title: Mapped[str] = mapped_column(String(500))
    medium: Mapped[str | None] = mapped_column(String(50), nullable=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    genre: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    platform: Mapped[str | None] = mapped_column(String(100), nullable=True)
    language: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    start_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    finish_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    my_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    average_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    length: Mapped[str | None] = mapped_column(String(50), nullable=True)
    episodes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    episodes_watched: Mapped[int | None] = mapped_column(Integer, nullable=True)
    season: Mapped[str | None] = mapped_column(String(50), nullable=True)
    year: Mapped[str | None] = mapped_column(String(20), nullable=True)
    plot: Mapped[str | None] = mapped_column(Text, nullable=True)
    poster_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    imdb_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


# Columns an action is allowed to write; ``id`` and ``user_id`` are never
# taken from caller data.
MUTABLE_FIELDS: frozenset[str] = frozenset(
    column.name
    for column in MediaEntry.__table__.columns
    if column.name not in {"id", "user_id", "created_at", "updated_at"}
)
