"""Portfolio risk alerts derived from current-cycle projections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from .loans import LoanProjectionModel
from .statements import PAYMENT_BELOW_INTEREST_MARGIN, CardCycleProjection

SEVERITY_RANK = {"critical": 3, "warning": 2, "watch": 1}

# (threshold, severity), checked top-down
UTILIZATION_BANDS = ((0.9, "critical"), (0.5, "warning"), (0.3, "watch"))
DUE_SOON_WINDOWS = ((1, "critical"), (3, "warning"), (14, "watch"))

MoneyFormatter = Callable[[float], str]
PercentFormatter = Callable[[float], str]


def default_money(amount: float) -> str:
    return f"${amount:,.2f}"


def default_percent(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


@dataclass(frozen=True, slots=True)
class PortfolioAlert:
    id: str
    severity: str
    title: str
    detail: str
    source: str


def utilization_severity(utilization: float) -> Optional[str]:
    for threshold, severity in UTILIZATION_BANDS:
        if utilization >= threshold:
            return severity
    return None


def due_soon_severity(due_in_days: int) -> Optional[str]:
    for window, severity in DUE_SOON_WINDOWS:
        if due_in_days <= window:
            return severity
    return None


def format_due_countdown(days: int) -> str:
    if days <= 0:
        return "Due today"
    return f"Due in {days} day{'' if days == 1 else 's'}"


def card_alerts(
    projection: CardCycleProjection,
    *,
    money: MoneyFormatter = default_money,
    percent: PercentFormatter = default_percent,
) -> list[PortfolioAlert]:
    """Evaluate every card rule independently; several may fire at once."""

    alerts: list[PortfolioAlert] = []
    card = projection.card

    if projection.display_balance > 0:
        severity = due_soon_severity(projection.due_in_days)
        if severity:
            alerts.append(
                PortfolioAlert(
                    id=f"due-{card.id}",
                    severity=severity,
                    title=f"{card.name}: {format_due_countdown(projection.due_in_days)}",
                    detail=f"Due day {card.due_day} · planned payment {money(projection.planned_payment)}",
                    source="due_soon",
                )
            )

    severity = utilization_severity(projection.display_utilization)
    if severity:
        alerts.append(
            PortfolioAlert(
                id=f"util-{card.id}",
                severity=severity,
                title=f"{card.name}: utilization {percent(projection.display_utilization)}",
                detail=(
                    "Threshold hit (>30/50/90) · available credit "
                    f"{money(projection.display_available_credit)}"
                ),
                source="utilization",
            )
        )

    if projection.payment_below_interest:
        alerts.append(
            PortfolioAlert(
                id=f"interest-{card.id}",
                severity="critical",
                title=f"{card.name}: payment below interest",
                detail=(
                    f"Planned {money(projection.planned_payment)} is below interest "
                    f"{money(projection.interest)}."
                ),
                source="payment_interest",
            )
        )

    if projection.over_limit:
        alerts.append(
            PortfolioAlert(
                id=f"over-limit-{card.id}",
                severity="critical",
                title=f"{card.name}: over credit limit",
                detail=(
                    f"Current {money(projection.display_balance)} against "
                    f"{money(card.credit_limit)} limit."
                ),
                source="over_limit",
            )
        )

    return alerts


def loan_alerts(model: LoanProjectionModel, *, money: MoneyFormatter = default_money) -> list[PortfolioAlert]:
    """Flag loans whose first planned payment does not cover the month's interest."""

    if not model.rows:
        return []
    first = model.rows[0]
    if first.planned_loan_payment + PAYMENT_BELOW_INTEREST_MARGIN >= first.interest_accrued:
        return []
    return [
        PortfolioAlert(
            id=f"loan-interest-{model.loan_id}",
            severity="critical",
            title=f"{model.name}: payment below interest",
            detail=(
                f"Planned {money(first.planned_loan_payment)} is below interest "
                f"{money(first.interest_accrued)}."
            ),
            source="payment_interest",
        )
    ]


def sort_alerts(alerts: Iterable[PortfolioAlert]) -> list[PortfolioAlert]:
    """Most severe first, then by title ignoring case."""

    return sorted(alerts, key=lambda a: (-SEVERITY_RANK[a.severity], a.title.casefold()))


def build_portfolio_alerts(
    card_projections: Sequence[CardCycleProjection],
    loan_models: Sequence[LoanProjectionModel] = (),
    *,
    money: MoneyFormatter = default_money,
    percent: PercentFormatter = default_percent,
) -> list[PortfolioAlert]:
    alerts: list[PortfolioAlert] = []
    for projection in card_projections:
        alerts.extend(card_alerts(projection, money=money, percent=percent))
    for model in loan_models:
        alerts.extend(loan_alerts(model, money=money))
    return sort_alerts(alerts)


def alert_summary(alerts: Iterable[PortfolioAlert]) -> dict[str, int]:
    """Count alerts per severity."""

    counts = {severity: 0 for severity in SEVERITY_RANK}
    for alert in alerts:
        counts[alert.severity] += 1
    return counts
