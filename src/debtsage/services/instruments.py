"""Normalization of raw instrument records into validated snapshots.

Every projector works on the frozen snapshots produced here instead of the raw
records handed over by the persistence layer. Records may be mappings, plain
objects or SQLModel rows; missing, negative or non-finite numbers degrade to 0
and out-of-range days fall back to documented defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional, Union

from .money import (
    clamp_day,
    clamp_percent,
    finite_or_zero,
    round_currency,
    to_day_of_month,
    to_non_negative,
)

DEFAULT_STATEMENT_DAY = 1
DEFAULT_DUE_DAY = 21
DEFAULT_SUBSCRIPTION_PAYMENTS = 12

CADENCES = ("weekly", "biweekly", "monthly", "quarterly", "yearly", "custom", "one_time")
CUSTOM_UNITS = ("days", "weeks", "months", "years")


@dataclass(frozen=True, slots=True)
class FixedMinimum:
    """Minimum payment is a flat amount per period."""

    amount: float

    def raw_minimum(self, balance: float, interest: float, occurrences: float = 1.0) -> float:
        return self.amount * occurrences


@dataclass(frozen=True, slots=True)
class PercentPlusInterest:
    """Minimum payment is a share of the balance plus the period's interest."""

    percent: float

    def raw_minimum(self, balance: float, interest: float, occurrences: float = 1.0) -> float:
        return balance * (self.percent / 100) * occurrences + interest


MinimumPaymentPolicy = Union[FixedMinimum, PercentPlusInterest]


def minimum_policy_from_fields(kind: Any, amount: Any, percent: Any) -> MinimumPaymentPolicy:
    """Build the policy variant from the loosely-typed stored fields."""

    if kind == "percent_plus_interest":
        return PercentPlusInterest(percent=clamp_percent(to_non_negative(percent)))
    return FixedMinimum(amount=to_non_negative(amount))


@dataclass(frozen=True, slots=True)
class Cadence:
    kind: str = "monthly"
    custom_interval: Optional[int] = None
    custom_unit: Optional[str] = None

    def monthly_occurrences(self) -> float:
        """Return how many payment occurrences fall in an average month."""

        if self.kind == "weekly":
            return 52 / 12
        if self.kind == "biweekly":
            return 26 / 12
        if self.kind == "monthly":
            return 1.0
        if self.kind == "quarterly":
            return 1 / 3
        if self.kind == "yearly":
            return 1 / 12
        if self.kind == "custom":
            interval = self.custom_interval
            if not interval or interval <= 0 or self.custom_unit not in CUSTOM_UNITS:
                return 0.0
            if self.custom_unit == "days":
                return 365.2425 / (interval * 12)
            if self.custom_unit == "weeks":
                return 365.2425 / (interval * 7 * 12)
            if self.custom_unit == "months":
                return 1 / interval
            return 1 / (interval * 12)
        return 0.0


@dataclass(frozen=True, slots=True)
class CardSnapshot:
    """Validated revolving-credit instrument."""

    id: str
    name: str
    credit_limit: float
    current_used: float
    statement_balance: float
    pending_charges: float
    minimum_policy: MinimumPaymentPolicy
    extra_payment: float
    planned_monthly_spend: float
    apr: float
    statement_day: int
    due_day: int


@dataclass(frozen=True, slots=True)
class LoanSnapshot:
    """Validated installment loan."""

    id: str
    name: str
    principal: float
    accrued_interest: float
    apr: float
    cadence: Cadence
    due_day: int
    minimum_policy: MinimumPaymentPolicy
    extra_payment: float
    subscription_cost: float
    subscription_payment_count: Optional[int]
    subscription_outstanding: Optional[float]

    @property
    def loan_balance(self) -> float:
        return round_currency(self.principal + self.accrued_interest)


@dataclass(frozen=True, slots=True)
class LoanEventSnapshot:
    """A balance-affecting event from a loan's history."""

    loan_id: str
    event_type: str
    amount: float
    occurred_at: date


def _field(record: Any, name: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        value = record.get(name, default)
    else:
        value = getattr(record, name, default)
    return default if value is None else value


def _identifier(record: Any) -> str:
    value = _field(record, "id")
    return "" if value is None else str(value)


def _positive_int(value: Any) -> Optional[int]:
    number = finite_or_zero(value)
    if number > 0 and number == int(number):
        return int(number)
    return None


def normalize_card(record: Any) -> CardSnapshot:
    """Return a :class:`CardSnapshot` from a raw card record."""

    if isinstance(record, CardSnapshot):
        return record

    current_used = to_non_negative(_field(record, "current_used"))
    raw_statement = _field(record, "statement_balance")
    statement_balance = to_non_negative(current_used if raw_statement is None else raw_statement)
    raw_pending = _field(record, "pending_charges")
    if raw_pending is None:
        pending_charges = max(current_used - statement_balance, 0.0)
    else:
        pending_charges = to_non_negative(raw_pending)

    return CardSnapshot(
        id=_identifier(record),
        name=str(_field(record, "name", "")),
        credit_limit=to_non_negative(_field(record, "credit_limit")),
        current_used=current_used,
        statement_balance=statement_balance,
        pending_charges=pending_charges,
        minimum_policy=minimum_policy_from_fields(
            _field(record, "minimum_payment_type"),
            _field(record, "minimum_payment"),
            _field(record, "minimum_payment_percent"),
        ),
        extra_payment=to_non_negative(_field(record, "extra_payment")),
        planned_monthly_spend=to_non_negative(_field(record, "planned_monthly_spend")),
        apr=to_non_negative(_field(record, "apr")),
        statement_day=to_day_of_month(_field(record, "statement_day"), DEFAULT_STATEMENT_DAY),
        due_day=to_day_of_month(_field(record, "due_day"), DEFAULT_DUE_DAY),
    )


def normalize_loan(record: Any) -> LoanSnapshot:
    """Return a :class:`LoanSnapshot` from a raw loan record.

    When either ``principal_balance`` or ``accrued_interest`` is present the
    two are treated as explicit components; otherwise ``balance`` is all
    principal.
    """

    if isinstance(record, LoanSnapshot):
        return record

    raw_principal = _field(record, "principal_balance")
    raw_interest = _field(record, "accrued_interest")
    if raw_principal is not None or raw_interest is not None:
        principal = to_non_negative(raw_principal)
        accrued_interest = to_non_negative(raw_interest)
    else:
        principal = to_non_negative(_field(record, "balance"))
        accrued_interest = 0.0

    kind = _field(record, "cadence", "monthly")
    if kind not in CADENCES:
        kind = "monthly"
    unit = _field(record, "custom_unit")
    raw_outstanding = _field(record, "subscription_outstanding")

    return LoanSnapshot(
        id=_identifier(record),
        name=str(_field(record, "name", "")),
        principal=round_currency(principal),
        accrued_interest=round_currency(accrued_interest),
        apr=to_non_negative(_field(record, "apr")),
        cadence=Cadence(
            kind=kind,
            custom_interval=_positive_int(_field(record, "custom_interval")),
            custom_unit=unit if unit in CUSTOM_UNITS else None,
        ),
        due_day=clamp_day(_field(record, "due_day", 1)),
        minimum_policy=minimum_policy_from_fields(
            _field(record, "minimum_payment_type"),
            _field(record, "minimum_payment"),
            _field(record, "minimum_payment_percent"),
        ),
        extra_payment=to_non_negative(_field(record, "extra_payment")),
        subscription_cost=round_currency(to_non_negative(_field(record, "subscription_cost"))),
        subscription_payment_count=_positive_int(_field(record, "subscription_payment_count")),
        subscription_outstanding=(
            None if raw_outstanding is None else round_currency(to_non_negative(raw_outstanding))
        ),
    )


def normalize_loan_event(record: Any) -> LoanEventSnapshot:
    if isinstance(record, LoanEventSnapshot):
        return record
    occurred = _field(record, "occurred_at")
    if isinstance(occurred, datetime):
        occurred = occurred.date()
    elif not isinstance(occurred, date):
        occurred = date.min
    return LoanEventSnapshot(
        loan_id=str(_field(record, "loan_id", "")),
        event_type=str(_field(record, "event_type", "")),
        amount=finite_or_zero(_field(record, "amount")),
        occurred_at=occurred,
    )


def normalize_cards(records: Iterable[Any]) -> list[CardSnapshot]:
    return [normalize_card(record) for record in records]


def normalize_loans(records: Iterable[Any]) -> list[LoanSnapshot]:
    return [normalize_loan(record) for record in records]


def normalize_loan_events(records: Iterable[Any]) -> list[LoanEventSnapshot]:
    return [normalize_loan_event(record) for record in records]
