"""Tests for avalanche/snowball ranking and overpay recommendations."""

from __future__ import annotations

import pytest

from debtsage.services.loans import build_loan_portfolio_projection
from debtsage.services.payoff import (
    PayoffCandidate,
    build_card_payoff_strategy,
    build_loan_payoff_strategy,
    card_payoff_candidates,
    loan_payoff_candidates,
    payoff_target,
    rank_payoff_candidates,
    recommend_payoff_target,
)
from debtsage.services.statements import project_cards
from tests.conftest import AS_OF


def _candidate(id: str, *, balance: float, apr: float, monthly_interest: float = 0.0, name=None):
    return PayoffCandidate(
        id=id,
        name=name or id,
        balance=balance,
        apr=apr,
        monthly_interest=monthly_interest,
        utilization=0.0,
        minimum_due=0.0,
        planned_payment=0.0,
    )


class TestRanking:
    """Strategy orderings and their tie-breaks."""

    def test_avalanche_orders_by_apr(self):
        a = _candidate("A", balance=100.0, apr=20.0)
        b = _candidate("B", balance=500.0, apr=25.0)
        assert [c.id for c in rank_payoff_candidates([a, b], "avalanche")] == ["B", "A"]

    def test_snowball_orders_by_balance(self):
        a = _candidate("A", balance=100.0, apr=20.0)
        b = _candidate("B", balance=500.0, apr=25.0)
        assert [c.id for c in rank_payoff_candidates([a, b], "snowball")] == ["A", "B"]

    def test_avalanche_tie_breaks(self):
        candidates = [
            _candidate("low-interest", balance=900.0, apr=20.0, monthly_interest=5.0),
            _candidate("high-interest", balance=100.0, apr=20.0, monthly_interest=15.0),
            _candidate("bigger", balance=800.0, apr=20.0, monthly_interest=5.0),
        ]
        ranked = rank_payoff_candidates(candidates, "avalanche")
        assert [c.id for c in ranked] == ["high-interest", "low-interest", "bigger"]

    def test_snowball_tie_breaks(self):
        candidates = [
            _candidate("cheap", balance=300.0, apr=10.0),
            _candidate("pricey", balance=300.0, apr=22.0),
        ]
        assert [c.id for c in rank_payoff_candidates(candidates, "snowball")] == ["pricey", "cheap"]

    def test_name_is_final_tie_break_ignoring_case(self):
        candidates = [
            _candidate("1", balance=300.0, apr=10.0, name="beta"),
            _candidate("2", balance=300.0, apr=10.0, name="Alpha"),
        ]
        for strategy in ("avalanche", "snowball"):
            assert [c.name for c in rank_payoff_candidates(candidates, strategy)] == ["Alpha", "beta"]

    def test_zero_balances_are_excluded(self):
        candidates = [_candidate("paid", balance=0.0, apr=30.0), _candidate("open", balance=10.0, apr=5.0)]
        assert [c.id for c in rank_payoff_candidates(candidates, "avalanche")] == ["open"]

    def test_empty_set_has_no_target(self):
        assert payoff_target([], "avalanche") is None

    def test_invalid_strategy_rejected(self):
        with pytest.raises(ValueError, match="Invalid debt payoff strategy."):
            rank_payoff_candidates([], "debt-free-yesterday")


class TestRecommendation:
    """Savings comparison between the two targets."""

    def _candidates(self):
        return [
            _candidate("A", balance=100.0, apr=20.0),
            _candidate("B", balance=500.0, apr=25.0),
        ]

    def test_equal_savings_resolve_to_avalanche(self):
        result = recommend_payoff_target(
            self._candidates(), monthly_overpay_budget=50.0, annual_interest_for=lambda _id: 100.0
        )
        assert result.recommended_mode == "avalanche"
        assert result.recommended_target.candidate.id == "B"
        assert result.avalanche_target.annual_interest_savings == 0.0

    def test_larger_snowball_savings_wins(self):
        interest = {None: 100.0, "B": 90.0, "A": 80.0}
        result = recommend_payoff_target(
            self._candidates(), monthly_overpay_budget=50.0, annual_interest_for=interest.get
        )
        assert result.recommended_mode == "snowball"
        assert result.recommended_target.candidate.id == "A"
        assert result.recommended_target.annual_interest_savings == 20.0
        assert result.avalanche_target.annual_interest_savings == 10.0

    def test_no_open_balances(self):
        result = recommend_payoff_target(
            [], monthly_overpay_budget=50.0, annual_interest_for=lambda _id: 0.0
        )
        assert result.recommended_target is None
        assert result.recommended_mode == "avalanche"
        assert result.monthly_overpay_budget == 50.0


class TestCardStrategy:
    def test_budget_goes_to_highest_apr_card(self, card_record):
        projections = project_cards(
            [
                card_record(id="rewards", name="Rewards", current_used=3000.0, statement_balance=3000.0, apr=29.99),
                card_record(id="store", name="Store", current_used=500.0, statement_balance=500.0, apr=12.0),
            ],
            now=AS_OF,
        )
        result = build_card_payoff_strategy(projections, monthly_overpay_budget=100.0)

        assert result.avalanche_target.candidate.id == "rewards"
        assert result.snowball_target.candidate.id == "store"
        assert result.recommended_mode == "avalanche"
        assert result.avalanche_target.annual_interest_savings > result.snowball_target.annual_interest_savings > 0
        assert result.annual_interest_with_avalanche < result.baseline_annual_interest

    @pytest.mark.parametrize("months", [6, 24])
    def test_savings_do_not_depend_on_projection_horizon(self, card_record, months):
        """Baseline and savings always compare twelve months against twelve."""
        record = card_record(
            current_used=3000.0, statement_balance=3000.0, minimum_payment=100.0, apr=24.0
        )
        standard = build_card_payoff_strategy(
            project_cards([record], now=AS_OF), monthly_overpay_budget=50.0
        )
        other = build_card_payoff_strategy(
            project_cards([record], now=AS_OF, months=months), monthly_overpay_budget=50.0
        )

        assert standard.recommended_target.annual_interest_savings > 0
        assert other.baseline_annual_interest == standard.baseline_annual_interest
        assert (
            other.recommended_target.annual_interest_savings
            == standard.recommended_target.annual_interest_savings
        )

    def test_paid_off_cards_are_not_candidates(self, card_record):
        projections = project_cards(
            [card_record(current_used=0.0, statement_balance=0.0)], now=AS_OF
        )
        assert card_payoff_candidates(projections) == []
        result = build_card_payoff_strategy(projections, monthly_overpay_budget=100.0)
        assert result.recommended_target is None


class TestLoanStrategy:
    def test_budget_goes_to_expensive_loan(self, loan_record):
        loans = [
            loan_record(id="car", name="Car", principal_balance=4000.0, apr=9.0, minimum_payment=150.0),
            loan_record(id="personal", name="Personal", principal_balance=1500.0, apr=18.0, minimum_payment=60.0),
        ]
        result = build_loan_payoff_strategy(loans, now=AS_OF, monthly_overpay_budget=100.0)

        assert result.avalanche_target.candidate.id == "personal"
        assert result.snowball_target.candidate.id == "personal"
        assert result.recommended_target.annual_interest_savings > 0

    def test_loan_candidates_skip_paid_off(self, loan_record):
        portfolio = build_loan_portfolio_projection(
            [loan_record(principal_balance=0.0, balance=0.0), loan_record(id="loan-2")], now=AS_OF
        )
        assert [c.id for c in loan_payoff_candidates(portfolio)] == ["loan-2"]

    def test_avalanche_tie_break_uses_next_month_interest(self, loan_record):
        """At equal APR the larger coming interest charge wins, even if the loan ends soon."""
        portfolio = build_loan_portfolio_projection(
            [
                loan_record(id="long", name="Long", principal_balance=2000.0, balance=2000.0, apr=12.0, minimum_payment=20.0),
                loan_record(id="short", name="Short", principal_balance=3000.0, balance=3000.0, apr=12.0, minimum_payment=1100.0),
            ],
            now=AS_OF,
        )
        by_id = {model.loan_id: model for model in portfolio.models}
        assert by_id["short"].projected_annual_interest < by_id["long"].projected_annual_interest

        candidates = loan_payoff_candidates(portfolio)
        assert {c.id: c.monthly_interest for c in candidates} == {"long": 20.0, "short": 30.0}
        assert [c.id for c in rank_payoff_candidates(candidates, "avalanche")] == ["short", "long"]
