"""Tests for due-date resolution around month ends and year boundaries."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from debtsage.services.due_cycle import add_months_keeping_day, clamped_date, resolve_due_cycle


class TestResolveDueCycle:
    """Due date applied flag and countdown."""

    def test_due_later_this_month(self):
        timing = resolve_due_cycle(21, date(2024, 3, 10))
        assert timing.due_applied is False
        assert timing.due_in_days == 11
        assert timing.next_due_date == date(2024, 3, 21)

    def test_due_day_31_clamps_in_leap_february(self):
        timing = resolve_due_cycle(31, date(2024, 2, 15))
        assert timing.cycle_due_date == date(2024, 2, 29)
        assert timing.due_applied is False
        assert timing.due_in_days == 14

    def test_due_day_31_clamps_in_common_february(self):
        timing = resolve_due_cycle(31, date(2023, 2, 15))
        assert timing.cycle_due_date == date(2023, 2, 28)
        assert timing.due_in_days == 13

    def test_due_today_counts_as_applied(self):
        """The countdown moves to next month once the due date is reached."""
        timing = resolve_due_cycle(21, date(2024, 3, 21))
        assert timing.due_applied is True
        assert timing.next_due_date == date(2024, 4, 21)
        assert timing.due_in_days == 31

    def test_past_due_date_applies_and_clamps_next_month(self):
        timing = resolve_due_cycle(31, date(2024, 1, 31))
        assert timing.due_applied is True
        assert timing.next_due_date == date(2024, 2, 29)
        assert timing.due_in_days == 29

    def test_december_rolls_into_next_year(self):
        timing = resolve_due_cycle(5, date(2024, 12, 20))
        assert timing.due_applied is True
        assert timing.next_due_date == date(2025, 1, 5)
        assert timing.due_in_days == 16

    def test_time_of_day_is_ignored(self):
        assert resolve_due_cycle(21, datetime(2024, 3, 10, 23, 59)) == resolve_due_cycle(
            21, date(2024, 3, 10)
        )

    def test_is_pure(self):
        now = date(2024, 6, 30)
        assert resolve_due_cycle(30, now) == resolve_due_cycle(30, now)


class TestCalendarHelpers:
    @pytest.mark.parametrize(
        "year,month,day,expected",
        [
            (2024, 4, 31, date(2024, 4, 30)),
            (2024, 13, 15, date(2025, 1, 15)),
            (2024, 0, 31, date(2023, 12, 31)),
            (2024, 14, 30, date(2025, 2, 28)),
        ],
    )
    def test_clamped_date(self, year, month, day, expected):
        assert clamped_date(year, month, day) == expected

    def test_add_months_keeping_day(self):
        assert add_months_keeping_day(date(2024, 3, 10), 10, 12) == date(2025, 1, 12)
        assert add_months_keeping_day(date(2024, 1, 10), 1, 31) == date(2024, 2, 29)
