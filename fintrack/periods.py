"""
Monthly income periods of a certificate, and the claim watermark filter.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Iterator, Optional

from dateutil.relativedelta import relativedelta

from fintrack.rates import effective_rate, monthly_income
from fintrack.records import Investment, Period, PeriodId


def payable_date_for(period_id: PeriodId, anchor_day: int) -> date:
    """
    The anchor day in the month after ``period_id``, clamped to that
    month's length (31 Jan start -> paid 28/29 Feb, 30 Apr, ...).
    """
    return period_id.first_day() + relativedelta(months=1, day=anchor_day)


def enumerate_periods(investment: Investment) -> Iterator[Period]:
    """
    Yield the investment's income periods in order, from its start month
    up to the last period payable on or before the term end date.

    Payable dates strictly increase month over month, so the loop ends
    after at most ``term_years * 12`` periods.
    """
    start = investment.start_date
    term_end = investment.term_end_date
    period_id = PeriodId.from_date(start)

    while True:
        payable = payable_date_for(period_id, investment.anchor_day)
        if payable > term_end:
            return

        period_end = period_id.last_day()
        if period_end >= start:
            rate = effective_rate(investment, period_end)
            yield Period(
                investment_id=investment.id,
                period_id=period_id,
                period_end_date=period_end,
                payable_date=payable,
                effective_rate=rate,
                monthly_income=monthly_income(investment.principal, rate),
            )
        period_id = period_id.next()


def is_claimed(period_id: PeriodId, last_claimed: Optional[PeriodId]) -> bool:
    return last_claimed is not None and period_id <= last_claimed


def unclaimed_periods(investment: Investment, periods: Optional[Iterable[Period]] = None) -> Iterator[Period]:
    if periods is None:
        periods = enumerate_periods(investment)
    for period in periods:
        if not is_claimed(period.period_id, investment.last_claimed_period):
            yield period
