"""
Lead model: advertiser submissions ("anuncios") reviewed by the admin.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from gera.db.base import Base

LEAD_PENDING = "pending"
LEAD_ACTIVE = "active"
LEAD_INACTIVE = "inactive"
VALID_LEAD_STATUSES = {LEAD_PENDING, LEAD_ACTIVE, LEAD_INACTIVE}


class Lead(Base):
    __tablename__ = "leads"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    company: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    email: str = Column(String(320), nullable=False)  # type: ignore[assignment]
    phone: str = Column(String(30), nullable=False)  # type: ignore[assignment]
    kind: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    message: str = Column(Text, nullable=False)  # type: ignore[assignment]
    image: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=LEAD_PENDING,
        server_default=LEAD_PENDING,
        index=True,
    )  # pending | active | inactive
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
