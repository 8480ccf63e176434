"""Due-date resolution for monthly billing cycles."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime

from .money import clamp_day


@dataclass(frozen=True, slots=True)
class DueTiming:
    """Where ``today`` sits relative to the billing cycle's due date."""

    cycle_due_date: date  # this month's due date, clamped to the month's length
    next_due_date: date  # the due date ``due_in_days`` counts down to
    due_applied: bool
    due_in_days: int


def as_date(value: date | datetime) -> date:
    """Drop the time of day, if any."""

    return value.date() if isinstance(value, datetime) else value


def clamped_date(year: int, month: int, day: int) -> date:
    """Return ``year-month-day`` with ``day`` capped at the month's length.

    ``month`` may fall outside 1..12 and is rolled into the adjacent years.
    """

    year += (month - 1) // 12
    month = ((month - 1) % 12) + 1
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, days_in_month))


def add_months_keeping_day(anchor: date | datetime, months: int, day_of_month: int) -> date:
    """Move ``months`` calendar months from ``anchor`` and land on ``day_of_month``."""

    anchor = as_date(anchor)
    return clamped_date(anchor.year, anchor.month + months, day_of_month)


def resolve_due_cycle(due_day: int, now: date | datetime) -> DueTiming:
    """Resolve whether this month's due date has passed and how far the next one is.

    A due date that falls on ``today`` counts as applied: the cycle's payment is
    assumed to have posted and the countdown moves to next month.
    """

    today = as_date(now)
    day = clamp_day(due_day)
    due_this_month = clamped_date(today.year, today.month, day)
    if due_this_month > today:
        return DueTiming(
            cycle_due_date=due_this_month,
            next_due_date=due_this_month,
            due_applied=False,
            due_in_days=(due_this_month - today).days,
        )

    next_due = clamped_date(today.year, today.month + 1, day)
    return DueTiming(
        cycle_due_date=due_this_month,
        next_due_date=next_due,
        due_applied=True,
        due_in_days=(next_due - today).days,
    )
