"""Effective annual rate of a certificate on a given date."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from fintrack.records import Investment

# Elapsed-time math averages leap years, so a step-down can take effect a
# day either side of the calendar anniversary.
DAYS_PER_YEAR = Decimal("365.25")


def full_years_elapsed(start: date, as_of: date) -> int:
    days = (as_of - start).days
    if days <= 0:
        return 0
    return int(Decimal(days) / DAYS_PER_YEAR)


def effective_rate(investment: Investment, as_of: date) -> Decimal:
    """
    Annual rate (%) in force on ``as_of``.

    A step-down with ``year_trigger=N`` applies from the start of contract
    year N, i.e. once N - 1 full years have elapsed.  When several
    qualify, the one with the largest trigger wins.
    """
    if as_of < investment.start_date:
        return investment.initial_rate

    years = full_years_elapsed(investment.start_date, as_of)
    rate = investment.initial_rate
    for step in sorted(investment.step_downs, key=lambda s: s.year_trigger):
        if years + 1 >= step.year_trigger:
            rate = step.new_rate
    return rate


def monthly_income(principal: Decimal, annual_rate: Decimal) -> Decimal:
    """Simple monthly pay-out, unrounded."""
    return principal * (annual_rate / 100) / 12
