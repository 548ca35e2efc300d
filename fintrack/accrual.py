from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from fintrack.rates import effective_rate, monthly_income
from fintrack.records import Investment


def current_monthly_total(investments: Iterable[Investment], today: date) -> Decimal:
    """
    Estimated monthly income from all certificates active on ``today``, at
    today's rates.  A projection for display: it ignores claims and is
    not rounded.
    """
    total = Decimal("0")
    for inv in investments:
        if not inv.is_active(today):
            continue
        rate = effective_rate(inv, today)
        if rate > 0:
            total += monthly_income(inv.principal, rate)
    return total
