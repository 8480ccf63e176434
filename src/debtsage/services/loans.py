"""Installment loan projections, scenarios and refinance comparisons."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..logging_config import get_logger
from .due_cycle import add_months_keeping_day, as_date, clamped_date
from .instruments import (
    DEFAULT_SUBSCRIPTION_PAYMENTS,
    LoanEventSnapshot,
    LoanSnapshot,
    normalize_loan,
    normalize_loan_events,
)
from .money import clamp_day, monthly_rate_for, round_currency

logger = get_logger("loans")

HORIZONS = (12, 24, 36)
MAX_MODELED_MONTHS = 36
PAID_OFF_EPSILON = 0.000001
CONSISTENCY_RATIO_CAP = 1.4
CONSISTENCY_WINDOW_MONTHS = 12


@dataclass(frozen=True, slots=True)
class LoanOverrides:
    """Adjustments applied on top of a loan's stored terms for scenarios."""

    extra_payment_delta: float = 0.0
    apr_delta: float = 0.0
    subscription_delta: float = 0.0
    due_day_shift: int = 0


@dataclass(frozen=True, slots=True)
class LoanProjectionRow:
    month_index: int
    opening_principal: float
    opening_interest: float
    opening_subscription: float
    opening_outstanding: float
    interest_accrued: float
    minimum_due: float
    planned_loan_payment: float
    payment_to_interest: float
    payment_to_principal: float
    subscription_due: float
    total_payment: float
    ending_principal: float
    ending_interest: float
    ending_subscription: float
    ending_loan_balance: float
    ending_outstanding: float
    payment_consistency_ratio: float


@dataclass(frozen=True, slots=True)
class LoanHorizonSummary:
    months: int
    ending_outstanding: float
    total_interest: float
    total_principal_paid: float
    total_loan_payment: float
    total_subscription_paid: float
    total_payment: float


@dataclass(frozen=True, slots=True)
class ConsistencyPoint:
    month_key: str
    paid: float
    expected: float
    ratio: float


@dataclass(frozen=True, slots=True)
class LoanProjectionModel:
    """Projection for one loan over the modeled window."""

    loan_id: str
    name: str
    apr: float
    due_day: int
    subscription_cost: float
    subscription_payments_remaining: int
    current_principal: float
    current_interest: float
    current_loan_balance: float
    current_subscription_outstanding: float
    current_outstanding: float
    projected_next_month_interest: float
    projected_annual_interest: float
    projected_24_month_interest: float
    projected_36_month_interest: float
    projected_payoff_months: Optional[int]
    projected_payoff_date: Optional[date]  # None: beyond the modeled window
    payment_consistency_score: float
    payment_consistency_trend: tuple[ConsistencyPoint, ...]
    rows: tuple[LoanProjectionRow, ...]
    horizons: Mapping[int, LoanHorizonSummary]
    loan: LoanSnapshot
    overrides: LoanOverrides


@dataclass(frozen=True, slots=True)
class LoanPortfolioProjection:
    total_outstanding: float
    projected_next_month_interest: float
    projected_annual_interest: float
    projected_24_month_interest: float
    projected_36_month_interest: float
    projected_annual_payments: float
    average_payment_consistency_score: float
    models: tuple[LoanProjectionModel, ...]


def _subscription_outstanding(loan: LoanSnapshot) -> float:
    cost = loan.subscription_cost
    if cost <= 0:
        return 0.0
    count = loan.subscription_payment_count
    if loan.subscription_outstanding is not None:
        outstanding = loan.subscription_outstanding
        # A stored outstanding of a single period with no count means "a year of fees".
        if count is None and outstanding <= cost + PAID_OFF_EPSILON:
            return round_currency(cost * DEFAULT_SUBSCRIPTION_PAYMENTS)
        return outstanding
    return round_currency(cost * (count or DEFAULT_SUBSCRIPTION_PAYMENTS))


def _subscription_payments_remaining(cost: float, outstanding: float) -> int:
    if cost <= 0 or outstanding <= 0:
        return 0
    return max(1, math.ceil(outstanding / cost - PAID_OFF_EPSILON))


def _paid_off_row(month_index: int, principal: float, interest: float, subscription: float) -> LoanProjectionRow:
    opening_outstanding = round_currency(principal + interest + subscription)
    return LoanProjectionRow(
        month_index=month_index,
        opening_principal=principal,
        opening_interest=interest,
        opening_subscription=subscription,
        opening_outstanding=opening_outstanding,
        interest_accrued=0.0,
        minimum_due=0.0,
        planned_loan_payment=0.0,
        payment_to_interest=0.0,
        payment_to_principal=0.0,
        subscription_due=0.0,
        total_payment=0.0,
        ending_principal=0.0,
        ending_interest=0.0,
        ending_subscription=0.0,
        ending_loan_balance=0.0,
        ending_outstanding=0.0,
        payment_consistency_ratio=1.0,
    )


@dataclass(slots=True)
class _Simulation:
    rows: list[LoanProjectionRow] = field(default_factory=list)
    payoff_month: Optional[int] = None
    apr: float = 0.0
    subscription_cost: float = 0.0
    due_day: int = 1


def _simulate_loan(loan: LoanSnapshot, months: int, overrides: LoanOverrides) -> _Simulation:
    """Run the amortization recurrence for a loan.

    Interest accrues on the opening loan balance, payments settle accrued
    interest before principal, and the flat subscription fee is collected
    alongside until its outstanding amount is exhausted.
    """

    apr = max(loan.apr + overrides.apr_delta, 0.0)
    monthly_rate = monthly_rate_for(apr)
    occurrences = max(loan.cadence.monthly_occurrences(), 1.0)
    extra = max(loan.extra_payment + overrides.extra_payment_delta, 0.0)
    monthly_extra = extra * occurrences
    subscription_cost = max(loan.subscription_cost + overrides.subscription_delta, 0.0)

    sim = _Simulation(
        apr=round_currency(apr),
        subscription_cost=round_currency(subscription_cost),
        due_day=clamp_day(loan.due_day + int(overrides.due_day_shift)),
    )

    principal = loan.principal
    accrued = loan.accrued_interest
    subscription = _subscription_outstanding(loan)

    for month_index in range(1, max(months, 1) + 1):
        opening_principal = round_currency(max(principal, 0.0))
        opening_interest = round_currency(max(accrued, 0.0))
        opening_loan_balance = round_currency(opening_principal + opening_interest)
        opening_subscription = round_currency(max(subscription, 0.0))
        opening_outstanding = round_currency(opening_loan_balance + opening_subscription)

        if opening_outstanding <= PAID_OFF_EPSILON:
            sim.rows.append(
                _paid_off_row(month_index, opening_principal, opening_interest, opening_subscription)
            )
            if sim.payoff_month is None:
                sim.payoff_month = month_index
            continue

        interest_accrued = round_currency(opening_loan_balance * monthly_rate)
        accrued = round_currency(accrued + interest_accrued)

        due_balance = round_currency(principal + accrued)
        minimum_raw = loan.minimum_policy.raw_minimum(principal, accrued, occurrences)
        minimum_due = round_currency(min(due_balance, max(minimum_raw, 0.0)))
        planned = round_currency(min(due_balance, minimum_due + monthly_extra))

        to_interest = round_currency(min(accrued, planned))
        accrued = round_currency(max(accrued - to_interest, 0.0))
        to_principal = round_currency(min(principal, round_currency(planned - to_interest)))
        principal = round_currency(max(principal - to_principal, 0.0))

        fee = subscription_cost if subscription_cost > 0 else subscription
        subscription_due = round_currency(min(subscription, fee))
        subscription = round_currency(max(subscription - subscription_due, 0.0))

        ending_loan_balance = round_currency(principal + accrued)
        ending_outstanding = round_currency(ending_loan_balance + subscription)
        ratio = planned / minimum_due if minimum_due > 0 else 1.0

        sim.rows.append(
            LoanProjectionRow(
                month_index=month_index,
                opening_principal=opening_principal,
                opening_interest=opening_interest,
                opening_subscription=opening_subscription,
                opening_outstanding=opening_outstanding,
                interest_accrued=interest_accrued,
                minimum_due=minimum_due,
                planned_loan_payment=planned,
                payment_to_interest=to_interest,
                payment_to_principal=to_principal,
                subscription_due=subscription_due,
                total_payment=round_currency(planned + subscription_due),
                ending_principal=principal,
                ending_interest=accrued,
                ending_subscription=subscription,
                ending_loan_balance=ending_loan_balance,
                ending_outstanding=ending_outstanding,
                payment_consistency_ratio=ratio if math.isfinite(ratio) else 1.0,
            )
        )

        if sim.payoff_month is None and ending_outstanding <= PAID_OFF_EPSILON:
            sim.payoff_month = month_index

    return sim


def _summarise(rows: Sequence[LoanProjectionRow], months: int) -> LoanHorizonSummary:
    bounded = rows[:months]
    return LoanHorizonSummary(
        months=months,
        ending_outstanding=round_currency(bounded[-1].ending_outstanding if bounded else 0.0),
        total_interest=round_currency(sum(r.interest_accrued for r in bounded)),
        total_principal_paid=round_currency(sum(r.payment_to_principal for r in bounded)),
        total_loan_payment=round_currency(sum(r.planned_loan_payment for r in bounded)),
        total_subscription_paid=round_currency(sum(r.subscription_due for r in bounded)),
        total_payment=round_currency(sum(r.total_payment for r in bounded)),
    )


def _month_key(value: date) -> str:
    return f"{value.year}-{value.month:02d}"


def payment_consistency(
    loan_id: str,
    events: Iterable[LoanEventSnapshot],
    expected_monthly_payment: float,
    *,
    now: date | datetime,
) -> tuple[float, tuple[ConsistencyPoint, ...]]:
    """Score logged payments over the trailing twelve months against the plan.

    Returns ``(score, trend)``; the score is the mean capped ratio times 100,
    clamped to ``[0, 140]``.
    """

    today = as_date(now)
    paid_by_month: dict[str, float] = {}
    for event in events:
        if event.loan_id != loan_id or event.event_type != "payment":
            continue
        key = _month_key(event.occurred_at)
        paid_by_month[key] = round_currency(paid_by_month.get(key, 0.0) + max(event.amount, 0.0))

    expected = round_currency(max(expected_monthly_payment, 0.0))
    trend = []
    for offset in range(-(CONSISTENCY_WINDOW_MONTHS - 1), 1):
        key = _month_key(clamped_date(today.year, today.month + offset, 1))
        paid = round_currency(paid_by_month.get(key, 0.0))
        ratio = paid / expected if expected > 0 else 1.0
        trend.append(ConsistencyPoint(month_key=key, paid=paid, expected=expected, ratio=ratio))

    mean = sum(min(max(p.ratio, 0.0), CONSISTENCY_RATIO_CAP) for p in trend) / len(trend)
    score = round_currency(min(max(mean * 100, 0.0), CONSISTENCY_RATIO_CAP * 100))
    return score, tuple(trend)


def build_loan_projection(
    record: Any,
    *,
    now: date | datetime,
    events: Iterable[Any] = (),
    overrides: Optional[LoanOverrides] = None,
    max_months: int = MAX_MODELED_MONTHS,
) -> LoanProjectionModel:
    """Project a loan across the modeled window (at least 36 months)."""

    loan = normalize_loan(record)
    overrides = overrides or LoanOverrides()
    months = max(max_months, MAX_MODELED_MONTHS)
    sim = _simulate_loan(loan, months, overrides)
    rows = tuple(sim.rows)

    horizons = {months_out: _summarise(rows, months_out) for months_out in HORIZONS}
    payoff_date = (
        None
        if sim.payoff_month is None
        else add_months_keeping_day(now, sim.payoff_month, sim.due_day)
    )

    expected_payment = rows[0].total_payment if rows else 0.0
    score, trend = payment_consistency(
        loan.id, normalize_loan_events(events), expected_payment, now=now
    )

    subscription_outstanding = _subscription_outstanding(loan)
    current_loan_balance = loan.loan_balance
    return LoanProjectionModel(
        loan_id=loan.id,
        name=loan.name,
        apr=sim.apr,
        due_day=sim.due_day,
        subscription_cost=sim.subscription_cost,
        subscription_payments_remaining=_subscription_payments_remaining(
            sim.subscription_cost, subscription_outstanding
        ),
        current_principal=loan.principal,
        current_interest=loan.accrued_interest,
        current_loan_balance=current_loan_balance,
        current_subscription_outstanding=subscription_outstanding,
        current_outstanding=round_currency(current_loan_balance + subscription_outstanding),
        projected_next_month_interest=rows[0].interest_accrued if rows else 0.0,
        projected_annual_interest=horizons[12].total_interest,
        projected_24_month_interest=horizons[24].total_interest,
        projected_36_month_interest=horizons[36].total_interest,
        projected_payoff_months=sim.payoff_month,
        projected_payoff_date=payoff_date,
        payment_consistency_score=score,
        payment_consistency_trend=trend,
        rows=rows,
        horizons=horizons,
        loan=loan,
        overrides=overrides,
    )


def build_loan_portfolio_projection(
    records: Iterable[Any],
    *,
    now: date | datetime,
    events: Iterable[Any] = (),
    overrides: Optional[Mapping[str, LoanOverrides]] = None,
    max_months: int = MAX_MODELED_MONTHS,
) -> LoanPortfolioProjection:
    """Project every loan and aggregate the portfolio totals."""

    loans = [normalize_loan(record) for record in records]
    event_list = normalize_loan_events(events)
    overrides = overrides or {}
    models = tuple(
        build_loan_projection(
            loan,
            now=now,
            events=event_list,
            overrides=overrides.get(loan.id),
            max_months=max_months,
        )
        for loan in loans
    )

    def _total(attr: str) -> float:
        return round_currency(sum(getattr(model, attr) for model in models))

    average_score = (
        round_currency(sum(m.payment_consistency_score for m in models) / len(models))
        if models
        else 100.0
    )
    logger.debug("Projected loan portfolio", extra={"loan_count": len(models)})
    return LoanPortfolioProjection(
        total_outstanding=_total("current_outstanding"),
        projected_next_month_interest=_total("projected_next_month_interest"),
        projected_annual_interest=_total("projected_annual_interest"),
        projected_24_month_interest=_total("projected_24_month_interest"),
        projected_36_month_interest=_total("projected_36_month_interest"),
        projected_annual_payments=round_currency(
            sum(model.horizons[12].total_payment for model in models)
        ),
        average_payment_consistency_score=average_score,
        models=models,
    )


@dataclass(frozen=True, slots=True)
class LoanWhatIfInput:
    """Scenario adjustments; ``loan_id="all"`` applies them to every loan."""

    loan_id: str = "all"
    extra_payment_delta: float = 0.0
    apr_delta: float = 0.0
    subscription_delta: float = 0.0
    due_day_shift: int = 0


@dataclass(frozen=True, slots=True)
class LoanWhatIfDelta:
    next_month_interest: float
    annual_interest: float
    annual_payments: float
    total_outstanding: float


@dataclass(frozen=True, slots=True)
class LoanWhatIfResult:
    input: LoanWhatIfInput
    baseline: LoanPortfolioProjection
    scenario: LoanPortfolioProjection
    delta: LoanWhatIfDelta


def run_loan_what_if(
    records: Iterable[Any],
    *,
    now: date | datetime,
    scenario: LoanWhatIfInput,
    events: Iterable[Any] = (),
) -> LoanWhatIfResult:
    loans = [normalize_loan(record) for record in records]
    event_list = normalize_loan_events(events)
    adjustment = LoanOverrides(
        extra_payment_delta=scenario.extra_payment_delta,
        apr_delta=scenario.apr_delta,
        subscription_delta=scenario.subscription_delta,
        due_day_shift=scenario.due_day_shift,
    )
    per_loan = {
        loan.id: adjustment
        for loan in loans
        if scenario.loan_id == "all" or scenario.loan_id == loan.id
    }

    baseline = build_loan_portfolio_projection(loans, now=now, events=event_list)
    adjusted = build_loan_portfolio_projection(
        loans, now=now, events=event_list, overrides=per_loan
    )
    return LoanWhatIfResult(
        input=scenario,
        baseline=baseline,
        scenario=adjusted,
        delta=LoanWhatIfDelta(
            next_month_interest=round_currency(
                adjusted.projected_next_month_interest - baseline.projected_next_month_interest
            ),
            annual_interest=round_currency(
                adjusted.projected_annual_interest - baseline.projected_annual_interest
            ),
            annual_payments=round_currency(
                adjusted.projected_annual_payments - baseline.projected_annual_payments
            ),
            total_outstanding=round_currency(
                adjusted.total_outstanding - baseline.total_outstanding
            ),
        ),
    )


@dataclass(frozen=True, slots=True)
class LoanRefinanceOffer:
    apr: float
    fees: float
    term_months: int


@dataclass(frozen=True, slots=True)
class LoanRefinanceResult:
    monthly_payment: float
    total_refinance_interest: float
    total_refinance_cost: float
    total_current_cost: float
    total_cost_delta: float
    break_even_month: Optional[int]
    remaining_current_outstanding_at_term: float


def amortized_payment(principal: float, apr: float, term_months: int) -> float:
    """Level payment that retires ``principal`` over ``term_months``.

    payment = P * i / (1 - (1 + i) ** -n), or P / n when the rate is zero.
    """

    principal = max(principal, 0.0)
    term = max(int(term_months), 1)
    rate = monthly_rate_for(apr)
    if rate <= 0:
        return principal / term
    denominator = 1 - (1 + rate) ** -term
    if denominator <= 0:
        return principal / term
    return principal * rate / denominator


def analyze_loan_refinance(
    model: LoanProjectionModel, offer: LoanRefinanceOffer
) -> LoanRefinanceResult:
    """Compare keeping the current loan against refinancing its loan balance.

    The subscription component stays on both sides; fees are paid up front.
    The break-even month is the first month where cumulative refinance cost no
    longer exceeds cumulative cost of the current plan. Terms longer than the
    modeled window re-run the current plan out to the full term.
    """

    term = max(int(offer.term_months), 1)
    apr = max(offer.apr, 0.0)
    fees = max(offer.fees, 0.0)
    rate = monthly_rate_for(apr)
    payment_raw = amortized_payment(model.current_loan_balance, apr, term)

    baseline_rows = model.rows[:term]
    if len(baseline_rows) < term:
        baseline_rows = tuple(_simulate_loan(model.loan, term, model.overrides).rows)
    remaining_at_term = (
        baseline_rows[-1].ending_outstanding if baseline_rows else model.current_outstanding
    )

    balance = max(model.current_loan_balance, 0.0)
    interest_total = 0.0
    refinance_cost = fees
    cumulative_current = 0.0
    cumulative_refinance = fees
    break_even: Optional[int] = None

    for month in range(1, term + 1):
        interest = balance * rate
        interest_total += interest
        due = balance + interest
        payment = min(due, payment_raw)
        balance = max(due - payment, 0.0)
        refinance_cost += payment

        baseline_row = baseline_rows[month - 1] if month <= len(baseline_rows) else None
        subscription_due = baseline_row.subscription_due if baseline_row else 0.0
        cumulative_current += baseline_row.total_payment if baseline_row else 0.0
        cumulative_refinance += payment + subscription_due

        if break_even is None and cumulative_refinance <= cumulative_current + PAID_OFF_EPSILON:
            break_even = month

    subscription_total = sum(row.subscription_due for row in baseline_rows)
    total_refinance_cost = round_currency(refinance_cost + subscription_total + balance)
    total_current_cost = round_currency(
        sum(row.total_payment for row in baseline_rows) + remaining_at_term
    )
    return LoanRefinanceResult(
        monthly_payment=round_currency(payment_raw),
        total_refinance_interest=round_currency(interest_total),
        total_refinance_cost=total_refinance_cost,
        total_current_cost=total_current_cost,
        total_cost_delta=round_currency(total_refinance_cost - total_current_cost),
        break_even_month=break_even,
        remaining_current_outstanding_at_term=round_currency(remaining_at_term),
    )
