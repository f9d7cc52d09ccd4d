"""
Article model: news items ("noticias") shown on the public portal.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from gera.db.base import Base


class Article(Base):
    __tablename__ = "articles"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    title: str = Column(String(300), nullable=False)  # type: ignore[assignment]
    summary: str = Column(Text, nullable=False)  # type: ignore[assignment]
    body: str = Column(Text, nullable=False)  # type: ignore[assignment]
    category: str = Column(String(100), nullable=False, index=True)  # type: ignore[assignment]
    image: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
