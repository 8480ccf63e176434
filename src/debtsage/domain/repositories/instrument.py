"""Instrument repository protocol."""

from __future__ import annotations

from typing import Protocol

from ...models.card import CreditCard
from ...models.loan import Loan, LoanEvent


class InstrumentRepository(Protocol):
    """Read-only access to the debt instruments the engine projects."""

    def list_cards(self) -> list[CreditCard]:
        """List every credit card, ordered by name."""
        ...

    def list_loans(self) -> list[Loan]:
        """List every loan, ordered by name."""
        ...

    def list_loan_events(self) -> list[LoanEvent]:
        """List loan history events, oldest first."""
        ...
