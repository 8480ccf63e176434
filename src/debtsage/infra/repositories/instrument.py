"""SQLModel implementation of the instrument repository."""

from __future__ import annotations

from typing import Callable, ContextManager

from sqlmodel import Session, select

from ...models.card import CreditCard
from ...models.loan import Loan, LoanEvent


class SQLModelInstrumentRepository:
    """SQLModel-based instrument repository implementation."""

    def __init__(self, session_factory: Callable[[], ContextManager[Session]]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def list_cards(self) -> list[CreditCard]:
        with self.session_factory() as session:
            statement = select(CreditCard).order_by(CreditCard.name, CreditCard.id)  # type: ignore
            return list(session.exec(statement).all())

    def list_loans(self) -> list[Loan]:
        with self.session_factory() as session:
            statement = select(Loan).order_by(Loan.name, Loan.id)  # type: ignore
            return list(session.exec(statement).all())

    def list_loan_events(self) -> list[LoanEvent]:
        with self.session_factory() as session:
            statement = select(LoanEvent).order_by(LoanEvent.occurred_at, LoanEvent.id)  # type: ignore
            return list(session.exec(statement).all())

    def add(self, record: CreditCard | Loan | LoanEvent) -> CreditCard | Loan | LoanEvent:
        """Persist a record; used by seeding and tests, never by the engine."""
        with self.session_factory() as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            return record
