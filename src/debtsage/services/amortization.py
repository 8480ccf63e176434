"""Month-by-month balance projection for revolving debt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .instruments import MinimumPaymentPolicy
from .money import round_currency, utilization_for

STANDARD_HORIZON_MONTHS = 12


@dataclass(frozen=True, slots=True)
class ProjectionRow:
    """One simulated month."""

    month_index: int
    start_balance: float
    interest: float
    due_balance: float
    minimum_due: float
    planned_payment: float
    planned_spend: float
    ending_balance: float
    ending_utilization: float


def simulate_projection(
    *,
    months: int,
    start_balance: float,
    limit: float,
    monthly_rate: float,
    minimum_policy: MinimumPaymentPolicy,
    extra_payment: float = 0.0,
    planned_spend: float = 0.0,
) -> list[ProjectionRow]:
    """Project ``months`` rows from ``start_balance``.

    Each month accrues interest on the carried balance, pays the policy minimum
    plus ``extra_payment`` (never more than is owed), then adds
    ``planned_spend``. Every intermediate amount is rounded to cents before the
    next step uses it, and the rounded ending balance is carried forward.
    """

    rows: list[ProjectionRow] = []
    if months <= 0:
        return rows

    balance = round_currency(max(start_balance, 0.0))
    spend = round_currency(max(planned_spend, 0.0))
    extra = max(extra_payment, 0.0)

    for month_index in range(1, months + 1):
        interest = round_currency(balance * monthly_rate)
        due_balance = round_currency(balance + interest)
        minimum_raw = minimum_policy.raw_minimum(balance, interest)
        minimum_due = round_currency(min(due_balance, max(minimum_raw, 0.0)))
        planned_payment = round_currency(min(due_balance, minimum_due + extra))
        ending_balance = round_currency(max(due_balance - planned_payment, 0.0) + spend)

        rows.append(
            ProjectionRow(
                month_index=month_index,
                start_balance=balance,
                interest=interest,
                due_balance=due_balance,
                minimum_due=minimum_due,
                planned_payment=planned_payment,
                planned_spend=spend,
                ending_balance=ending_balance,
                ending_utilization=utilization_for(ending_balance, limit),
            )
        )
        balance = ending_balance

    return rows


def total_interest(rows: Sequence[ProjectionRow]) -> float:
    return round_currency(sum(row.interest for row in rows))


def total_payments(rows: Sequence[ProjectionRow]) -> float:
    return round_currency(sum(row.planned_payment for row in rows))
