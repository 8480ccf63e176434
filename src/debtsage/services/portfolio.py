"""Whole-portfolio report combining cards, loans, alerts and payoff targets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional

from ..domain.repositories import InstrumentRepository
from ..logging_config import get_logger
from .alerts import (
    MoneyFormatter,
    PercentFormatter,
    PortfolioAlert,
    alert_summary,
    build_portfolio_alerts,
    default_money,
    default_percent,
)
from .amortization import STANDARD_HORIZON_MONTHS
from .instruments import normalize_loan_events, normalize_loans
from .loans import LoanPortfolioProjection, build_loan_portfolio_projection
from .money import round_currency
from .payoff import (
    PayoffCandidate,
    PayoffStrategyResult,
    build_card_payoff_strategy,
    build_loan_payoff_strategy,
    card_payoff_candidates,
    loan_payoff_candidates,
    rank_payoff_candidates,
)
from .statements import CardCycleProjection, CardPortfolioSummary, project_cards, summarize_cards

logger = get_logger("portfolio")


@dataclass(frozen=True, slots=True)
class PortfolioReport:
    as_of: date
    strategy: str
    card_projections: tuple[CardCycleProjection, ...]
    card_summary: CardPortfolioSummary
    loan_portfolio: LoanPortfolioProjection
    alerts: tuple[PortfolioAlert, ...]
    alert_counts: dict[str, int]
    card_ranking: tuple[PayoffCandidate, ...]
    loan_ranking: tuple[PayoffCandidate, ...]
    card_strategy: PayoffStrategyResult
    loan_strategy: PayoffStrategyResult

    @property
    def card_target(self) -> Optional[PayoffCandidate]:
        return self.card_ranking[0] if self.card_ranking else None

    @property
    def loan_target(self) -> Optional[PayoffCandidate]:
        return self.loan_ranking[0] if self.loan_ranking else None

    @property
    def total_debt(self) -> float:
        return round_currency(
            self.card_summary.total_display_balance + self.loan_portfolio.total_outstanding
        )


def build_portfolio_report(
    *,
    cards: Iterable[Any],
    loans: Iterable[Any],
    loan_events: Iterable[Any] = (),
    now: date | datetime,
    strategy: str = "avalanche",
    monthly_overpay_budget: float = 0.0,
    months: int = STANDARD_HORIZON_MONTHS,
    money: MoneyFormatter = default_money,
    percent: PercentFormatter = default_percent,
) -> PortfolioReport:
    """Project every instrument as of ``now`` and derive alerts and rankings."""

    loan_list = normalize_loans(loans)
    event_list = normalize_loan_events(loan_events)

    card_projections = project_cards(cards, now=now, months=months)
    loan_portfolio = build_loan_portfolio_projection(loan_list, now=now, events=event_list)
    alerts = build_portfolio_alerts(
        card_projections, loan_portfolio.models, money=money, percent=percent
    )

    card_ranking = rank_payoff_candidates(card_payoff_candidates(card_projections), strategy)
    loan_ranking = rank_payoff_candidates(loan_payoff_candidates(loan_portfolio), strategy)

    report = PortfolioReport(
        as_of=now.date() if isinstance(now, datetime) else now,
        strategy=strategy,
        card_projections=tuple(card_projections),
        card_summary=summarize_cards(card_projections),
        loan_portfolio=loan_portfolio,
        alerts=tuple(alerts),
        alert_counts=alert_summary(alerts),
        card_ranking=tuple(card_ranking),
        loan_ranking=tuple(loan_ranking),
        card_strategy=build_card_payoff_strategy(
            card_projections, monthly_overpay_budget=monthly_overpay_budget
        ),
        loan_strategy=build_loan_payoff_strategy(
            loan_list, now=now, events=event_list, monthly_overpay_budget=monthly_overpay_budget
        ),
    )
    logger.info(
        "Portfolio report built",
        extra={
            "as_of": report.as_of.isoformat(),
            "cards": len(card_projections),
            "loans": len(loan_list),
            "alerts": len(alerts),
            "strategy": strategy,
        },
    )
    return report


class PortfolioService:
    """Reads instrument snapshots from a repository and builds reports."""

    def __init__(self, repository: InstrumentRepository):
        self.repository = repository

    def report(
        self,
        *,
        now: date | datetime,
        strategy: str = "avalanche",
        monthly_overpay_budget: float = 0.0,
        months: int = STANDARD_HORIZON_MONTHS,
    ) -> PortfolioReport:
        return build_portfolio_report(
            cards=self.repository.list_cards(),
            loans=self.repository.list_loans(),
            loan_events=self.repository.list_loan_events(),
            now=now,
            strategy=strategy,
            monthly_overpay_budget=monthly_overpay_budget,
            months=months,
        )
