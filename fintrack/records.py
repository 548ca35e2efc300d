"""
Domain records.

Income, expenses and certificate investments are distinct shapes; they
share only the fields every ledger entry has (date, description, amount,
account).  Periods and claimable items are derived on every query and
never stored.
"""

from __future__ import annotations

import calendar
import re
import uuid
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from dateutil.relativedelta import relativedelta

from fintrack.errors import InvalidInvestmentError

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{2})$")


def new_id() -> str:
    return str(uuid.uuid4())


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 4.1 from turning into 4.0999999...
    return Decimal(str(value))


@dataclass(frozen=True, order=True)
class PeriodId:
    """
    A calendar month.  Held as the packed key ``year * 12 + (month - 1)``
    so that ordering is plain integer ordering, and rendered as
    ``YYYY-MM`` at the edges.
    """

    key: int

    @classmethod
    def of(cls, year: int, month: int) -> PeriodId:
        if not 1 <= month <= 12:
            raise ValueError(f"month must be in 1..12, got {month}")
        return cls(year * 12 + month - 1)

    @classmethod
    def from_date(cls, value: date) -> PeriodId:
        return cls.of(value.year, value.month)

    @classmethod
    def parse(cls, text: str) -> PeriodId:
        match = _PERIOD_RE.match(text.strip()) if isinstance(text, str) else None
        if not match:
            raise ValueError(f"Invalid period identifier {text!r}, expected YYYY-MM")
        return cls.of(int(match.group(1)), int(match.group(2)))

    @property
    def year(self) -> int:
        return self.key // 12

    @property
    def month(self) -> int:
        return self.key % 12 + 1

    def next(self) -> PeriodId:
        return PeriodId(self.key + 1)

    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def label(self) -> str:
        """``January 2024``"""
        return f"{calendar.month_name[self.month]} {self.year}"

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class Account:
    id: str
    name: str


@dataclass(frozen=True)
class IncomeRecord:
    id: Optional[str]
    date: date
    description: str
    amount: Decimal
    source: str
    account_id: Optional[str] = None


@dataclass(frozen=True)
class ExpenseRecord:
    id: Optional[str]
    date: date
    description: str
    amount: Decimal
    category: str
    account_id: Optional[str] = None


@dataclass(frozen=True)
class StepDown:
    year_trigger: int       # contract year from which new_rate applies
    new_rate: Decimal       # annual %, e.g. 4.5

    def __post_init__(self):
        object.__setattr__(self, "new_rate", to_decimal(self.new_rate))


@dataclass(frozen=True)
class Investment:
    """
    A fixed-term certificate.  ``principal`` is the ledger amount and
    ``start_date`` the ledger date.  Everything except
    ``last_claimed_period`` is fixed once created.
    """

    id: str
    start_date: date
    principal: Decimal
    term_years: int
    initial_rate: Decimal
    step_downs: Tuple[StepDown, ...] = ()
    certificate_name: str = ""
    description: str = ""
    account_id: Optional[str] = None
    last_claimed_period: Optional[PeriodId] = None

    def __post_init__(self):
        object.__setattr__(self, "principal", to_decimal(self.principal))
        object.__setattr__(self, "initial_rate", to_decimal(self.initial_rate))
        object.__setattr__(self, "step_downs", tuple(self.step_downs))

        if not self.principal > 0:
            raise InvalidInvestmentError(f"principal must be positive, got {self.principal}")
        if self.term_years <= 0:
            raise InvalidInvestmentError(f"term_years must be positive, got {self.term_years}")
        if not self.initial_rate > 0:
            raise InvalidInvestmentError(f"initial_rate must be positive, got {self.initial_rate}")
        for step in self.step_downs:
            if not 1 < step.year_trigger <= self.term_years:
                raise InvalidInvestmentError(
                    f"step-down year {step.year_trigger} must be between 2 and {self.term_years}"
                )
            if not step.new_rate > 0:
                raise InvalidInvestmentError(f"step-down rate must be positive, got {step.new_rate}")

    @property
    def term_end_date(self) -> date:
        # relativedelta clamps 29 Feb to 28 Feb in non-leap end years
        return self.start_date + relativedelta(years=self.term_years)

    @property
    def anchor_day(self) -> int:
        return self.start_date.day

    def is_active(self, today: date) -> bool:
        return self.start_date <= today < self.term_end_date

    def with_claim(self, period_id: PeriodId) -> Investment:
        return replace(self, last_claimed_period=period_id)


@dataclass(frozen=True)
class Period:
    investment_id: str
    period_id: PeriodId
    period_end_date: date
    payable_date: date
    effective_rate: Decimal
    monthly_income: Decimal     # unrounded


class ClaimStatus(str, Enum):
    DUE = "due"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class ClaimableIncomePeriod:
    investment: Investment
    period: Period
    status: ClaimStatus
    days_until_due: Optional[int] = None

    @property
    def period_id(self) -> PeriodId:
        return self.period.period_id

    @property
    def payable_date(self) -> date:
        return self.period.payable_date

    @property
    def monthly_income(self) -> Decimal:
        return self.period.monthly_income
