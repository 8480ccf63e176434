"""Revolving credit card records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class CreditCard(SQLModel, table=True):
    """Card snapshot as stored by the bookkeeping layer.

    Values are stored as entered; the engine normalizes them on read, so
    nothing here is range-checked beyond the column types.
    """

    __tablename__: ClassVar[str] = "credit_card"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=80, index=True)
    credit_limit: float = Field(default=0.0, nullable=False)
    current_used: float = Field(default=0.0, nullable=False)
    statement_balance: Optional[float] = Field(default=None)
    pending_charges: Optional[float] = Field(default=None)
    minimum_payment: float = Field(default=0.0, nullable=False)
    minimum_payment_type: str = Field(default="fixed", max_length=32)
    minimum_payment_percent: Optional[float] = Field(default=None)
    extra_payment: float = Field(default=0.0, nullable=False)
    planned_monthly_spend: float = Field(default=0.0, nullable=False)
    apr: float = Field(default=0.0, nullable=False)
    statement_day: Optional[int] = Field(default=None)
    due_day: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
