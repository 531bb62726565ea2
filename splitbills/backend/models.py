"""SQLAlchemy models for the Split Bills backend."""
from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Transaction(Base):
    __tablename__ = "transactions"

    id: int = Column(Integer, primary_key=True, index=True)
    payer: str = Column(String(100), nullable=False)
    description: str = Column(Text, nullable=False)
    amount: Decimal = Column(Numeric(12, 2), nullable=False)
    paid: bool = Column(Boolean, nullable=False, default=False)
    timestamp: datetime = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
