"""Tests for card billing-cycle projection and portfolio summaries."""

from __future__ import annotations

from datetime import date

import pytest

from debtsage.services.statements import project_card_cycle, project_cards, summarize_cards
from tests.conftest import AS_OF, assert_float_equal


class TestProjectCardCycle:
    """Current-cycle values before and after the due date."""

    def test_before_due_date_shows_current_balance(self, card_record):
        projection = project_card_cycle(card_record(), now=AS_OF)

        assert projection.interest == 24.0
        assert projection.new_statement_balance == 1224.0
        assert projection.minimum_due == 25.0
        assert projection.planned_payment == 25.0
        assert projection.due_adjusted_balance == 1199.0
        assert projection.due_applied is False
        assert projection.due_in_days == 11
        assert projection.display_balance == 1200.0
        assert projection.display_available_credit == 3800.0
        assert_float_equal(projection.display_utilization, 0.24, tolerance=1e-9)
        assert_float_equal(projection.projected_utilization_after_payment, 0.2398, tolerance=1e-9)

    def test_after_due_date_shows_due_adjusted_balance(self, card_record):
        projection = project_card_cycle(card_record(), now=date(2024, 3, 25))

        assert projection.due_applied is True
        assert projection.due_in_days == 27
        assert projection.display_balance == 1199.0
        assert projection.display_available_credit == 3801.0

    def test_projection_seeds_from_due_adjusted_balance(self, card_record):
        projection = project_card_cycle(card_record(), now=AS_OF)

        assert len(projection.rows) == 12
        assert projection.rows[0].start_balance == 1199.0
        assert projection.projected_next_month_interest == 23.98
        assert_float_equal(
            projection.projected_12_month_interest,
            sum(row.interest for row in projection.rows),
            tolerance=0.006,
        )

    def test_custom_month_count(self, card_record):
        assert len(project_card_cycle(card_record(), now=AS_OF, months=3).rows) == 3
        empty = project_card_cycle(card_record(), now=AS_OF, months=0)
        assert empty.rows == ()
        assert empty.projected_next_month_interest == 23.98

    @pytest.mark.parametrize("months", [0, 6, 24])
    def test_annual_interest_ignores_display_horizon(self, card_record, months):
        """Twelve-month interest stays a twelve-month figure for any row count."""
        standard = project_card_cycle(card_record(), now=AS_OF)
        other = project_card_cycle(card_record(), now=AS_OF, months=months)

        assert len(other.rows) == months
        assert other.projected_12_month_interest == standard.projected_12_month_interest
        assert other.projected_next_month_interest == standard.projected_next_month_interest

    def test_pending_charges_added_to_due_adjusted(self, card_record):
        projection = project_card_cycle(
            card_record(current_used=1400.0, pending_charges=200.0), now=AS_OF
        )
        assert projection.due_adjusted_balance == 1399.0

    def test_extra_payment_raises_planned_payment(self, card_record):
        projection = project_card_cycle(card_record(extra_payment=75.0), now=AS_OF)
        assert projection.planned_payment == 100.0
        assert projection.due_adjusted_balance == 1124.0

    def test_percent_plus_interest_minimum(self, card_record):
        projection = project_card_cycle(
            card_record(
                current_used=1000.0,
                statement_balance=1000.0,
                apr=12.0,
                minimum_payment_type="percent_plus_interest",
                minimum_payment_percent=2.0,
            ),
            now=AS_OF,
        )
        assert projection.interest == 10.0
        assert projection.minimum_due == 30.0


class TestCardFlags:
    """Over-limit and payment-below-interest flags."""

    def test_at_limit_is_not_over_limit(self, card_record):
        projection = project_card_cycle(
            card_record(credit_limit=1000.0, current_used=1000.0, statement_balance=1000.0), now=AS_OF
        )
        assert projection.over_limit is False

    def test_above_limit_is_over_limit(self, card_record):
        projection = project_card_cycle(
            card_record(credit_limit=1000.0, current_used=1000.01, statement_balance=1000.0), now=AS_OF
        )
        assert projection.over_limit is True

    def test_payment_below_interest(self, card_record):
        projection = project_card_cycle(
            card_record(current_used=1000.0, statement_balance=1000.0, apr=60.0, minimum_payment=10.0),
            now=AS_OF,
        )
        assert projection.interest == 50.0
        assert projection.payment_below_interest is True

    def test_payment_just_covering_interest(self, card_record):
        projection = project_card_cycle(
            card_record(current_used=1000.0, statement_balance=1000.0, apr=60.0, minimum_payment=50.0),
            now=AS_OF,
        )
        assert projection.payment_below_interest is False

    def test_zero_limit_has_zero_utilization(self, card_record):
        projection = project_card_cycle(card_record(credit_limit=0.0), now=AS_OF)
        assert projection.display_utilization == 0.0
        assert projection.projected_utilization_after_payment == 0.0
        assert all(row.ending_utilization == 0.0 for row in projection.rows)

    def test_projection_is_deterministic(self, card_record):
        assert project_card_cycle(card_record(), now=AS_OF) == project_card_cycle(card_record(), now=AS_OF)


class TestSummarizeCards:
    """Portfolio totals, weighted APR and utilization trend."""

    def test_totals_and_weighted_apr(self, card_record):
        projections = project_cards(
            [
                card_record(),
                card_record(
                    id="card-2",
                    name="Store Card",
                    credit_limit=2000.0,
                    current_used=500.0,
                    statement_balance=500.0,
                    apr=12.0,
                ),
            ],
            now=AS_OF,
        )
        summary = summarize_cards(projections)

        assert summary.card_count == 2
        assert summary.total_limit == 7000.0
        assert summary.total_display_balance == 1700.0
        assert summary.total_due_adjusted_balance == 1679.0
        assert summary.total_minimum_due == 50.0
        assert_float_equal(summary.weighted_apr, (1200 * 24 + 500 * 12) / 1700, tolerance=1e-9)
        assert summary.utilization_trend == "down"

    def test_empty_portfolio(self):
        summary = summarize_cards([])
        assert summary.card_count == 0
        assert summary.total_display_balance == 0.0
        assert summary.display_utilization == 0.0
        assert summary.weighted_apr == 0.0
        assert summary.utilization_trend == "flat"

    def test_growing_spend_trends_up(self, card_record):
        projection = project_card_cycle(
            card_record(current_used=1000.0, statement_balance=500.0, pending_charges=900.0),
            now=AS_OF,
        )
        assert summarize_cards([projection]).utilization_trend == "up"
