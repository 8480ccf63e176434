"""Pytest configuration and shared fixtures for DebtSage tests.

This module provides database fixtures, instrument factories, and helper
utilities for testing the projection engine and its repository adapter
without touching a real database.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import date, datetime
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from debtsage.infra.database import create_session_factory
from debtsage.models import CreditCard, Loan, LoanEvent

# A mid-month reference date used across tests; due day 21 is still ahead.
AS_OF = date(2024, 3, 10)


# =============================================================================
# Environment
# =============================================================================

_ENV_VARS = (
    "DEBTSAGE_DATA_DIR",
    "DEBTSAGE_DEV_MODE",
    "DEBTSAGE_DATABASE_URL",
    "DEBTSAGE_PROJECTION_MONTHS",
    "DEBTSAGE_OVERPAY_BUDGET",
    "DEBTSAGE_PAYOFF_STRATEGY",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point configuration at a temp data dir and drop handlers afterwards."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DEBTSAGE_DATA_DIR", str(tmp_path / "data"))

    yield

    package_logger = logging.getLogger("debtsage")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the one the repository expects."""
    return create_session_factory(db_engine)


# =============================================================================
# Instrument Factories
# =============================================================================


@pytest.fixture
def card_record():
    """Factory for plain-dict card records with sensible defaults.

    Returns:
        Callable: Function that builds a card mapping
    """

    def _build(**overrides) -> dict:
        record = {
            "id": "card-1",
            "name": "Everyday Card",
            "credit_limit": 5000.0,
            "current_used": 1200.0,
            "statement_balance": 1200.0,
            "pending_charges": 0.0,
            "minimum_payment": 25.0,
            "minimum_payment_type": "fixed",
            "minimum_payment_percent": None,
            "extra_payment": 0.0,
            "planned_monthly_spend": 0.0,
            "apr": 24.0,
            "statement_day": 1,
            "due_day": 21,
        }
        record.update(overrides)
        return record

    return _build


@pytest.fixture
def loan_record():
    """Factory for plain-dict loan records with sensible defaults."""

    def _build(**overrides) -> dict:
        record = {
            "id": "loan-1",
            "name": "Car Loan",
            "balance": 1000.0,
            "principal_balance": 1000.0,
            "accrued_interest": 0.0,
            "minimum_payment": 100.0,
            "minimum_payment_type": "fixed",
            "extra_payment": 0.0,
            "apr": 0.0,
            "due_day": 12,
            "cadence": "monthly",
        }
        record.update(overrides)
        return record

    return _build


@pytest.fixture
def card_factory(db_session):
    """Factory for persisted :class:`CreditCard` rows."""

    def _create(**fields) -> CreditCard:
        defaults = {
            "name": "Test Card",
            "credit_limit": 2000.0,
            "current_used": 500.0,
            "minimum_payment": 25.0,
            "apr": 19.99,
            "due_day": 21,
        }
        defaults.update(fields)
        card = CreditCard(**defaults)
        db_session.add(card)
        db_session.commit()
        db_session.refresh(card)
        return card

    return _create


@pytest.fixture
def loan_factory(db_session):
    """Factory for persisted :class:`Loan` rows."""

    def _create(**fields) -> Loan:
        defaults = {
            "name": "Test Loan",
            "balance": 3000.0,
            "minimum_payment": 150.0,
            "apr": 9.5,
            "due_day": 5,
        }
        defaults.update(fields)
        loan = Loan(**defaults)
        db_session.add(loan)
        db_session.commit()
        db_session.refresh(loan)
        return loan

    return _create


@pytest.fixture
def loan_event_factory(db_session):
    """Factory for persisted :class:`LoanEvent` rows."""

    def _create(*, loan: Loan, amount: float, occurred_at: datetime, event_type: str = "payment") -> LoanEvent:
        event = LoanEvent(
            loan_id=loan.id,
            event_type=event_type,
            amount=amount,
            occurred_at=occurred_at,
        )
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event

    return _create


# =============================================================================
# Helper Utilities
# =============================================================================


def assert_float_equal(actual: float, expected: float, tolerance: float = 0.01):
    """Assert that two floats are equal within a tolerance.

    Args:
        actual: Actual value
        expected: Expected value
        tolerance: Maximum allowed difference (default 0.01 = 1 cent)

    Raises:
        AssertionError: If values differ by more than tolerance
    """
    assert (
        abs(actual - expected) < tolerance
    ), f"Expected {expected}, got {actual} (diff: {abs(actual - expected)})"
