"""Installment loan records and their balance history."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Loan(SQLModel, table=True):
    """Installment loan tracked by the bookkeeping layer."""

    __tablename__: ClassVar[str] = "loan"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=80, index=True)
    balance: float = Field(default=0.0, nullable=False)
    principal_balance: Optional[float] = Field(default=None)
    accrued_interest: Optional[float] = Field(default=None)
    minimum_payment: float = Field(default=0.0, nullable=False)
    minimum_payment_type: str = Field(default="fixed", max_length=32)
    minimum_payment_percent: Optional[float] = Field(default=None)
    extra_payment: float = Field(default=0.0, nullable=False)
    subscription_cost: Optional[float] = Field(default=None)
    subscription_payment_count: Optional[int] = Field(default=None)
    subscription_outstanding: Optional[float] = Field(default=None)
    apr: float = Field(default=0.0, nullable=False)
    due_day: int = Field(default=1, nullable=False)
    cadence: str = Field(default="monthly", max_length=16)
    custom_interval: Optional[int] = Field(default=None)
    custom_unit: Optional[str] = Field(default=None, max_length=16)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)


class LoanEvent(SQLModel, table=True):
    """A payment, charge, interest posting or subscription fee on a loan."""

    __tablename__: ClassVar[str] = "loan_event"

    id: Optional[int] = Field(default=None, primary_key=True)
    loan_id: int = Field(foreign_key="loan.id", nullable=False, index=True)
    event_type: str = Field(nullable=False, max_length=32)
    amount: float = Field(default=0.0, nullable=False)
    principal_delta: float = Field(default=0.0, nullable=False)
    interest_delta: float = Field(default=0.0, nullable=False)
    resulting_balance: float = Field(default=0.0, nullable=False)
    occurred_at: datetime = Field(nullable=False, index=True)
