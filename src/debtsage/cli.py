"""Command line entry points for DebtSage."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Optional

import click

from .config import PAYOFF_STRATEGIES, BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelInstrumentRepository
from .logging_config import setup_logging
from .services.alerts import default_money, default_percent
from .services.payoff import PayoffStrategyResult
from .services.portfolio import PortfolioReport, PortfolioService


def _print_strategy(label: str, result: PayoffStrategyResult) -> None:
    target = result.recommended_target
    if target is None:
        click.echo(f"{label}: no open balances")
        return
    click.echo(
        f"{label}: {target.candidate.name} ({result.recommended_mode}) saves "
        f"{default_money(target.annual_interest_savings)} over 12 months "
        f"with {default_money(result.monthly_overpay_budget)}/month extra"
    )


def _print_report(report: PortfolioReport) -> None:
    cards = report.card_summary
    loans = report.loan_portfolio
    click.echo(f"Portfolio as of {report.as_of.isoformat()}")
    click.echo(f"  Total debt:           {default_money(report.total_debt)}")
    click.echo(
        f"  Card balance:         {default_money(cards.total_display_balance)} "
        f"({default_percent(cards.display_utilization)} utilization, trend {cards.utilization_trend})"
    )
    click.echo(f"  Card weighted APR:    {cards.weighted_apr:.2f}%")
    click.echo(f"  Card 12-mo interest:  {default_money(cards.projected_12_month_interest)}")
    click.echo(f"  Loan outstanding:     {default_money(loans.total_outstanding)}")
    click.echo(f"  Loan 12-mo interest:  {default_money(loans.projected_annual_interest)}")
    click.echo(f"  Loan 12-mo payments:  {default_money(loans.projected_annual_payments)}")

    for model in loans.models:
        payoff = (
            model.projected_payoff_date.isoformat()
            if model.projected_payoff_date
            else "beyond modeled window"
        )
        click.echo(f"    {model.name}: payoff {payoff}")

    counts = report.alert_counts
    click.echo(
        f"Alerts: {counts['critical']} critical, {counts['warning']} warning, {counts['watch']} watch"
    )
    for alert in report.alerts:
        click.echo(f"  [{alert.severity}] {alert.title}: {alert.detail}")

    click.echo(f"Payoff order ({report.strategy}):")
    for rank, candidate in enumerate(report.card_ranking + report.loan_ranking, start=1):
        click.echo(
            f"  {rank}. {candidate.name} {default_money(candidate.balance)} @ {candidate.apr:.2f}%"
        )
    _print_strategy("Card target", report.card_strategy)
    _print_strategy("Loan target", report.loan_strategy)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Debt amortization and payoff prioritization."""

    config = BaseConfig()
    setup_logging(config)
    ctx.obj = config


@cli.command("init-db")
@click.pass_obj
def init_db(config: BaseConfig) -> None:
    """Create the instrument tables."""

    bootstrap_database(config)
    click.echo(f"Database ready: {config.DATABASE_URL}")


@cli.command("report")
@click.option(
    "--as-of",
    "as_of",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Date to project from (defaults to today).",
)
@click.option("--strategy", type=click.Choice(PAYOFF_STRATEGIES), default=None)
@click.option("--budget", type=click.FloatRange(min=0), default=None, help="Monthly overpay budget.")
@click.option("--chart", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_obj
def report(
    config: BaseConfig,
    as_of: Optional[datetime],
    strategy: Optional[str],
    budget: Optional[float],
    chart: Optional[Path],
) -> None:
    """Print the portfolio projection, alerts and payoff targets."""

    now = as_of.date() if as_of else date.today()
    _, session_factory = bootstrap_database(config)
    service = PortfolioService(SQLModelInstrumentRepository(session_factory))
    result = service.report(
        now=now,
        strategy=strategy or config.PAYOFF_STRATEGY,
        monthly_overpay_budget=config.OVERPAY_BUDGET if budget is None else budget,
        months=config.PROJECTION_MONTHS,
    )
    _print_report(result)

    if chart is not None:
        from .services.reports import build_trajectory_chart, render_chart

        figure = build_trajectory_chart(
            result.card_projections, result.loan_portfolio.models, months=config.PROJECTION_MONTHS
        )
        path = render_chart(figure, output_path=chart)
        click.echo(f"Chart written: {path}")


def main() -> None:  # pragma: no cover - console script
    cli()
