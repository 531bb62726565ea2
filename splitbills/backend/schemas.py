"""Pydantic schemas for serialising Split Bills data."""
from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class TransactionBase(BaseModel):
    payer: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., allow_inf_nan=False)


class TransactionCreate(TransactionBase):
    paid: bool = False


class TransactionUpdate(BaseModel):
    payer: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[Decimal] = Field(None, allow_inf_nan=False)
    paid: Optional[bool] = None


class TransactionRead(TransactionBase, ORMModel):
    id: int
    paid: bool
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive values; they are stored as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class HealthRead(BaseModel):
    status: str
    message: str


class ConnectivityRead(BaseModel):
    status: str
    message: str
    transaction_count: Optional[int] = Field(None, serialization_alias="transactionCount")


class ErrorRead(BaseModel):
    error: str
