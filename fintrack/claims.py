"""
Turning a due income period into a ledger income record.

The claim watermark (``Investment.last_claimed_period``) is the only
thing that stops a period from being paid twice, so every guard here is
checked against a fresh copy of the investment, and the ledger writes
the income record and the new watermark in one transaction.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from fintrack.errors import AlreadyClaimedError, ClaimNotDueError, ClaimOutOfSequenceError
from fintrack.periods import is_claimed, unclaimed_periods
from fintrack.records import ClaimableIncomePeriod, ClaimStatus, IncomeRecord, Investment, Period, PeriodId

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def round_currency(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def next_claimable_period(investment: Investment) -> Optional[Period]:
    """First unclaimed period that actually pays something."""
    for period in unclaimed_periods(investment):
        income = period.monthly_income
        if income.is_nan() or income <= 0:
            continue
        if period.payable_date > investment.term_end_date:
            break
        return period
    return None


def check_claimable(investment: Investment, period_id: PeriodId, today: date) -> Period:
    """
    Returns the period to commit, or raises a ``ClaimError`` explaining
    why ``period_id`` cannot be claimed on ``today``.
    """
    if is_claimed(period_id, investment.last_claimed_period):
        raise AlreadyClaimedError(
            f"{period_id} already claimed (last claimed {investment.last_claimed_period})",
            investment.id,
            str(period_id),
        )

    expected = next_claimable_period(investment)
    if expected is None or expected.period_id != period_id:
        nxt = expected.period_id if expected else "none"
        raise ClaimOutOfSequenceError(
            f"{period_id} is not the next claimable period (next is {nxt})",
            investment.id,
            str(period_id),
        )

    if today < expected.payable_date:
        raise ClaimNotDueError(
            f"{period_id} is not payable until {expected.payable_date}",
            investment.id,
            str(period_id),
        )
    return expected


def prepare_claim(item: ClaimableIncomePeriod) -> Tuple[IncomeRecord, Investment]:
    """Build the income record and the advanced investment. Writes nothing."""
    inv = item.investment
    name = inv.certificate_name or inv.description
    income = IncomeRecord(
        id=None,
        date=item.payable_date,
        description=f"Monthly income from {name} for {item.period_id.label()}",
        amount=round_currency(item.monthly_income),
        source=f"Investment: {name}",
        account_id=inv.account_id,
    )
    return income, inv.with_claim(item.period_id)


class ClaimCommitter:
    """
    The only writer of claim state.

    ``ledger`` must provide ``get_investment(id)`` and
    ``commit_claim(income, investment, expected_last_claimed)``; the
    latter appends and advances atomically, raising
    ``AlreadyClaimedError`` if the watermark moved underneath us.
    """

    def __init__(self, ledger):
        self.ledger = ledger

    def claim(self, investment_id: str, period_id: PeriodId, today: date) -> Tuple[IncomeRecord, Investment]:
        current = self.ledger.get_investment(investment_id)
        try:
            period = check_claimable(current, period_id, today)
        except (AlreadyClaimedError, ClaimNotDueError, ClaimOutOfSequenceError) as exc:
            logger.info("Rejected claim %s/%s: %s", investment_id, period_id, exc)
            raise

        income, updated = prepare_claim(ClaimableIncomePeriod(current, period, ClaimStatus.DUE))
        saved = self.ledger.commit_claim(income, updated, current.last_claimed_period)
        logger.info(
            "Claimed %s for %s (%s): %s on %s",
            period_id, current.certificate_name, investment_id, saved.amount, saved.date,
        )
        return saved, updated

    def commit(self, item: ClaimableIncomePeriod, today: date) -> Tuple[IncomeRecord, Investment]:
        return self.claim(item.investment.id, item.period_id, today)
