"""
Due / upcoming classification of unclaimed certificate income.

Every query rescans each investment from its first unclaimed period, so
an item that was upcoming last time simply shows up as due once its
payable date arrives.  Nothing here is stored.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from fintrack.periods import unclaimed_periods
from fintrack.records import ClaimableIncomePeriod, ClaimStatus, Investment, Period, PeriodId

logger = logging.getLogger(__name__)


def upcoming_window_end(today: date) -> date:
    """Last day of the month after ``today``'s month."""
    return today + relativedelta(months=1, day=31)


def classify(period: Period, investment: Investment, today: date) -> Optional[ClaimableIncomePeriod]:
    """
    Returns the period tagged ``due`` or ``upcoming``, or None when it is
    not worth surfacing (no income, payable after the term, or payable
    later than next month).
    """
    income = period.monthly_income
    if income.is_nan() or income <= 0:
        return None
    if period.payable_date > investment.term_end_date:
        return None

    if today >= period.payable_date:
        return ClaimableIncomePeriod(investment, period, ClaimStatus.DUE)

    this_month = PeriodId.from_date(today)
    payable_month = PeriodId.from_date(period.payable_date)
    if payable_month in (this_month, this_month.next()):
        days = max(0, (period.payable_date - today).days)
        return ClaimableIncomePeriod(investment, period, ClaimStatus.UPCOMING, days_until_due=days)
    return None


def claimable_for(investment: Investment, today: date) -> List[ClaimableIncomePeriod]:
    window_end = upcoming_window_end(today)
    items = []
    for period in unclaimed_periods(investment):
        if period.payable_date > window_end:
            # every later period pays out later still
            break
        item = classify(period, investment, today)
        if item is not None:
            items.append(item)
    return items


def claimable_incomes(investments: Iterable[Investment], today: date) -> List[ClaimableIncomePeriod]:
    """
    Due and upcoming income across all investments, ordered by payable
    date, then investment id.
    """
    items: List[ClaimableIncomePeriod] = []
    for investment in investments:
        items.extend(claimable_for(investment, today))
    items.sort(key=lambda item: (item.payable_date, str(item.investment.id)))

    due = sum(1 for item in items if item.status is ClaimStatus.DUE)
    logger.debug("%d claimable income periods on %s (%d due)", len(items), today, due)
    return items
