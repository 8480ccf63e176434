"""Service module exports."""

from . import (
    alerts,
    amortization,
    due_cycle,
    instruments,
    loans,
    money,
    payoff,
    portfolio,
    statements,
)

__all__ = [
    "alerts",
    "amortization",
    "due_cycle",
    "instruments",
    "loans",
    "money",
    "payoff",
    "portfolio",
    "statements",
]
