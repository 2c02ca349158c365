"""SQLAlchemy ORM models backing the persistent state."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class GenreListRecord(Base):
    """Raw genre taxonomy of one content pool as last fetched upstream."""

    __tablename__ = "genre_lists"

    pool: Mapped[str] = mapped_column(String(16), primary_key=True)
    payload: Mapped[list[dict[str, Any]]] = mapped_column(JSON)
    fetched_at: Mapped[datetime] = mapped_column(DateTime)
    expires_at: Mapped[datetime] = mapped_column(DateTime)

    def is_fresh(self, now: datetime) -> bool:
        return self.expires_at > now
