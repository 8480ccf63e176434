"""DebtSage debt amortization and payoff prioritization engine."""

from __future__ import annotations

from .config import BaseConfig, DevConfig, TestConfig
from .services.portfolio import PortfolioReport, PortfolioService, build_portfolio_report

__all__ = [
    "BaseConfig",
    "DevConfig",
    "TestConfig",
    "PortfolioReport",
    "PortfolioService",
    "build_portfolio_report",
]
