"""Payoff prioritization: avalanche and snowball ranking.

Avalanche targets the most expensive debt (highest APR) first; snowball
targets the smallest balance first. Both orderings break ties down to the
instrument name so the ranking is fully deterministic. The recommendation
step estimates, for each strategy's target, how much twelve months of interest
a monthly overpay budget would save, and picks the larger saving.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from ..logging_config import get_logger
from .amortization import STANDARD_HORIZON_MONTHS, simulate_projection, total_interest
from .loans import LoanOverrides, LoanPortfolioProjection, build_loan_portfolio_projection
from .money import round_currency
from .statements import CardCycleProjection

logger = get_logger("payoff")

STRATEGIES = ("avalanche", "snowball")
OPEN_BALANCE_EPSILON = 0.005


@dataclass(frozen=True, slots=True)
class PayoffCandidate:
    id: str
    name: str
    balance: float
    apr: float
    monthly_interest: float
    utilization: float
    minimum_due: float
    planned_payment: float


@dataclass(frozen=True, slots=True)
class PayoffTarget:
    candidate: PayoffCandidate
    annual_interest_savings: float


@dataclass(frozen=True, slots=True)
class PayoffStrategyResult:
    monthly_overpay_budget: float
    baseline_annual_interest: float
    annual_interest_with_avalanche: float
    annual_interest_with_snowball: float
    recommended_mode: str
    recommended_target: Optional[PayoffTarget]  # None: no open balances
    avalanche_target: Optional[PayoffTarget]
    snowball_target: Optional[PayoffTarget]


def _avalanche_key(c: PayoffCandidate) -> tuple:
    return (-c.apr, -c.monthly_interest, -c.balance, c.name.casefold())


def _snowball_key(c: PayoffCandidate) -> tuple:
    return (c.balance, -c.apr, -c.monthly_interest, c.name.casefold())


def rank_payoff_candidates(
    candidates: Iterable[PayoffCandidate], strategy: str
) -> list[PayoffCandidate]:
    """Return candidates with an open balance in payoff order for ``strategy``."""

    if strategy == "avalanche":
        key = _avalanche_key
    elif strategy == "snowball":
        key = _snowball_key
    else:
        raise ValueError("Invalid debt payoff strategy.")
    return sorted((c for c in candidates if c.balance > 0), key=key)


def payoff_target(candidates: Iterable[PayoffCandidate], strategy: str) -> Optional[PayoffCandidate]:
    ranked = rank_payoff_candidates(candidates, strategy)
    return ranked[0] if ranked else None


def card_payoff_candidates(projections: Iterable[CardCycleProjection]) -> list[PayoffCandidate]:
    candidates = []
    for projection in projections:
        balance = round_currency(max(projection.display_balance, 0.0))
        if balance <= 0:
            continue
        candidates.append(
            PayoffCandidate(
                id=projection.card.id,
                name=projection.card.name,
                balance=balance,
                apr=projection.card.apr,
                monthly_interest=round_currency(projection.interest),
                utilization=projection.display_utilization,
                minimum_due=round_currency(projection.minimum_due),
                planned_payment=round_currency(projection.planned_payment),
            )
        )
    return candidates


def loan_payoff_candidates(portfolio: LoanPortfolioProjection) -> list[PayoffCandidate]:
    candidates = []
    for model in portfolio.models:
        if model.current_outstanding <= OPEN_BALANCE_EPSILON:
            continue
        first = model.rows[0] if model.rows else None
        candidates.append(
            PayoffCandidate(
                id=model.loan_id,
                name=model.name,
                balance=model.current_outstanding,
                apr=model.apr,
                monthly_interest=model.projected_next_month_interest,
                utilization=0.0,
                minimum_due=first.minimum_due if first else 0.0,
                planned_payment=first.planned_loan_payment if first else 0.0,
            )
        )
    return candidates


def recommend_payoff_target(
    candidates: Sequence[PayoffCandidate],
    *,
    monthly_overpay_budget: float,
    annual_interest_for: Callable[[Optional[str]], float],
) -> PayoffStrategyResult:
    """Pick between the avalanche and snowball targets by projected savings.

    ``annual_interest_for(target_id)`` must return the portfolio's projected
    annual interest with the budget redirected to ``target_id``, or the
    baseline when ``target_id`` is ``None``. Equal savings resolve to
    avalanche.
    """

    budget = round_currency(max(monthly_overpay_budget, 0.0))
    baseline = round_currency(annual_interest_for(None))
    avalanche = payoff_target(candidates, "avalanche")
    snowball = payoff_target(candidates, "snowball")

    if avalanche is None or snowball is None:
        return PayoffStrategyResult(
            monthly_overpay_budget=budget,
            baseline_annual_interest=baseline,
            annual_interest_with_avalanche=baseline,
            annual_interest_with_snowball=baseline,
            recommended_mode="avalanche",
            recommended_target=None,
            avalanche_target=None,
            snowball_target=None,
        )

    with_avalanche = round_currency(annual_interest_for(avalanche.id))
    if snowball.id == avalanche.id:
        with_snowball = with_avalanche
    else:
        with_snowball = round_currency(annual_interest_for(snowball.id))

    avalanche_target = PayoffTarget(
        candidate=avalanche,
        annual_interest_savings=round_currency(max(baseline - with_avalanche, 0.0)),
    )
    snowball_target = PayoffTarget(
        candidate=snowball,
        annual_interest_savings=round_currency(max(baseline - with_snowball, 0.0)),
    )
    if avalanche_target.annual_interest_savings >= snowball_target.annual_interest_savings:
        mode, recommended = "avalanche", avalanche_target
    else:
        mode, recommended = "snowball", snowball_target

    logger.debug(
        "Recommended payoff target",
        extra={"mode": mode, "target_id": recommended.candidate.id, "budget": budget},
    )
    return PayoffStrategyResult(
        monthly_overpay_budget=budget,
        baseline_annual_interest=baseline,
        annual_interest_with_avalanche=with_avalanche,
        annual_interest_with_snowball=with_snowball,
        recommended_mode=mode,
        recommended_target=recommended,
        avalanche_target=avalanche_target,
        snowball_target=snowball_target,
    )


def build_card_payoff_strategy(
    projections: Sequence[CardCycleProjection], *, monthly_overpay_budget: float
) -> PayoffStrategyResult:
    """Recommend a card to receive the overpay budget on top of its planned extra."""

    budget = max(monthly_overpay_budget, 0.0)

    def annual_interest_for(target_id: Optional[str]) -> float:
        total = 0.0
        for projection in projections:
            card = projection.card
            if target_id is None or card.id != target_id:
                total += projection.projected_12_month_interest
                continue
            rows = simulate_projection(
                months=STANDARD_HORIZON_MONTHS,
                start_balance=projection.due_adjusted_balance,
                limit=card.credit_limit,
                monthly_rate=projection.monthly_rate,
                minimum_policy=card.minimum_policy,
                extra_payment=card.extra_payment + budget,
                planned_spend=card.planned_monthly_spend,
            )
            total += total_interest(rows)
        return total

    return recommend_payoff_target(
        card_payoff_candidates(projections),
        monthly_overpay_budget=budget,
        annual_interest_for=annual_interest_for,
    )


def build_loan_payoff_strategy(
    records: Iterable[Any],
    *,
    now: date | datetime,
    monthly_overpay_budget: float,
    events: Iterable[Any] = (),
) -> PayoffStrategyResult:
    """Recommend a loan to receive the overpay budget as extra payment."""

    loans = list(records)
    event_list = list(events)
    budget = max(monthly_overpay_budget, 0.0)
    baseline = build_loan_portfolio_projection(loans, now=now, events=event_list)

    def annual_interest_for(target_id: Optional[str]) -> float:
        if target_id is None:
            return baseline.projected_annual_interest
        focused = build_loan_portfolio_projection(
            loans,
            now=now,
            events=event_list,
            overrides={target_id: LoanOverrides(extra_payment_delta=budget)},
        )
        return focused.projected_annual_interest

    return recommend_payoff_target(
        loan_payoff_candidates(baseline),
        monthly_overpay_budget=budget,
        annual_interest_for=annual_interest_for,
    )
