"""Credit card billing-cycle projections."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Sequence

from ..logging_config import get_logger
from .amortization import (
    STANDARD_HORIZON_MONTHS,
    ProjectionRow,
    simulate_projection,
    total_interest,
)
from .due_cycle import resolve_due_cycle
from .instruments import CardSnapshot, normalize_card
from .money import monthly_rate_for, round_currency, utilization_for

logger = get_logger("statements")

OVER_LIMIT_EPSILON = 0.000001
PAYMENT_BELOW_INTEREST_MARGIN = 0.01
TREND_FLAT_BAND_PP = 0.05


@dataclass(frozen=True, slots=True)
class CardCycleProjection:
    """Current-cycle state for one card plus its forward projection."""

    card: CardSnapshot
    monthly_rate: float
    interest: float
    new_statement_balance: float
    minimum_due: float
    planned_payment: float
    due_adjusted_balance: float
    due_applied: bool
    due_in_days: int
    display_balance: float
    display_available_credit: float
    display_utilization: float
    projected_utilization_after_payment: float
    projected_next_month_interest: float
    projected_12_month_interest: float
    over_limit: bool
    payment_below_interest: bool
    rows: tuple[ProjectionRow, ...]

    @property
    def id(self) -> str:
        return self.card.id

    @property
    def name(self) -> str:
        return self.card.name


def project_card_cycle(
    record: Any, *, now: date | datetime, months: int = STANDARD_HORIZON_MONTHS
) -> CardCycleProjection:
    """Resolve the card's current billing cycle and project ``months`` ahead.

    Before the due date the cardholder still owes the full current balance, so
    that is what gets displayed; once the due date has passed the planned
    payment is assumed to have posted and the due-adjusted balance is shown.
    """

    card = normalize_card(record)
    limit = card.credit_limit
    statement = card.statement_balance
    monthly_rate = monthly_rate_for(card.apr)

    interest = round_currency(statement * monthly_rate)
    new_statement_balance = round_currency(statement + interest)
    minimum_raw = card.minimum_policy.raw_minimum(statement, interest)
    minimum_due = round_currency(min(new_statement_balance, max(minimum_raw, 0.0)))
    planned_payment = round_currency(
        min(new_statement_balance, minimum_due + card.extra_payment)
    )
    due_adjusted_balance = round_currency(
        max(new_statement_balance - planned_payment, 0.0) + card.pending_charges
    )

    timing = resolve_due_cycle(card.due_day, now)
    display_balance = round_currency(
        due_adjusted_balance if timing.due_applied else card.current_used
    )

    recurrence = dict(
        start_balance=due_adjusted_balance,
        limit=limit,
        monthly_rate=monthly_rate,
        minimum_policy=card.minimum_policy,
        extra_payment=card.extra_payment,
        planned_spend=card.planned_monthly_spend,
    )
    rows = simulate_projection(months=months, **recurrence)
    # Interest figures always cover the standard year, whatever horizon is displayed.
    if months == STANDARD_HORIZON_MONTHS:
        annual_rows = rows
    else:
        annual_rows = simulate_projection(months=STANDARD_HORIZON_MONTHS, **recurrence)

    projection = CardCycleProjection(
        card=card,
        monthly_rate=monthly_rate,
        interest=interest,
        new_statement_balance=new_statement_balance,
        minimum_due=minimum_due,
        planned_payment=planned_payment,
        due_adjusted_balance=due_adjusted_balance,
        due_applied=timing.due_applied,
        due_in_days=timing.due_in_days,
        display_balance=display_balance,
        display_available_credit=round_currency(limit - display_balance),
        display_utilization=utilization_for(display_balance, limit),
        projected_utilization_after_payment=utilization_for(due_adjusted_balance, limit),
        projected_next_month_interest=annual_rows[0].interest,
        projected_12_month_interest=total_interest(annual_rows),
        over_limit=display_balance > limit + OVER_LIMIT_EPSILON,
        payment_below_interest=planned_payment + PAYMENT_BELOW_INTEREST_MARGIN < interest,
        rows=tuple(rows),
    )
    logger.debug(
        "Projected card cycle",
        extra={
            "card_id": card.id,
            "due_applied": timing.due_applied,
            "display_balance": display_balance,
        },
    )
    return projection


def project_cards(
    records: Iterable[Any], *, now: date | datetime, months: int = STANDARD_HORIZON_MONTHS
) -> list[CardCycleProjection]:
    return [project_card_cycle(record, now=now, months=months) for record in records]


@dataclass(frozen=True, slots=True)
class CardPortfolioSummary:
    """Totals across every card projection."""

    card_count: int
    total_limit: float
    total_minimum_due: float
    total_planned_payment: float
    total_pending_charges: float
    total_new_statements: float
    total_display_balance: float
    total_due_adjusted_balance: float
    total_available_credit: float
    total_extra_payments: float
    projected_next_month_interest: float
    projected_12_month_interest: float
    display_utilization: float
    utilization_after_payment: float
    weighted_apr: float
    utilization_trend: str


def summarize_cards(projections: Sequence[CardCycleProjection]) -> CardPortfolioSummary:
    """Aggregate card projections into portfolio totals and a weighted APR."""

    def _sum(values: Iterable[float]) -> float:
        return round_currency(sum(values))

    total_limit = _sum(p.card.credit_limit for p in projections)
    total_display = _sum(p.display_balance for p in projections)
    total_due_adjusted = _sum(p.due_adjusted_balance for p in projections)

    display_utilization = utilization_for(total_display, total_limit)
    after_payment = utilization_for(total_due_adjusted, total_limit)

    if total_display > 0:
        weighted = sum(max(p.display_balance, 0.0) * p.card.apr for p in projections)
        weighted_apr = weighted / total_display
    else:
        weighted_apr = 0.0

    delta_pp = (after_payment - display_utilization) * 100
    if delta_pp < -TREND_FLAT_BAND_PP:
        trend = "down"
    elif delta_pp > TREND_FLAT_BAND_PP:
        trend = "up"
    else:
        trend = "flat"

    return CardPortfolioSummary(
        card_count=len(projections),
        total_limit=total_limit,
        total_minimum_due=_sum(p.minimum_due for p in projections),
        total_planned_payment=_sum(p.planned_payment for p in projections),
        total_pending_charges=_sum(p.card.pending_charges for p in projections),
        total_new_statements=_sum(p.new_statement_balance for p in projections),
        total_display_balance=total_display,
        total_due_adjusted_balance=total_due_adjusted,
        total_available_credit=_sum(p.display_available_credit for p in projections),
        total_extra_payments=_sum(round_currency(p.card.extra_payment) for p in projections),
        projected_next_month_interest=_sum(p.projected_next_month_interest for p in projections),
        projected_12_month_interest=_sum(p.projected_12_month_interest for p in projections),
        display_utilization=display_utilization,
        utilization_after_payment=after_payment,
        weighted_apr=weighted_apr,
        utilization_trend=trend,
    )
