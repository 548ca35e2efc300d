"""Request / response models for the HTTP API."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fintrack.claims import round_currency
from fintrack.records import (
    Account,
    ClaimableIncomePeriod,
    ExpenseRecord,
    IncomeRecord,
    Investment,
    PeriodId,
    StepDown,
    new_id,
)


def _not_blank(value: str, what: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{what} cannot be empty")
    return value


# --- Accounts ---

class AccountCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _not_blank(v, "Account name")


class AccountOut(BaseModel):
    id: str
    name: str

    @classmethod
    def from_record(cls, account: Account) -> AccountOut:
        return cls(id=account.id, name=account.name)


# --- Income & expenses ---

class EntryBase(BaseModel):
    date: dt.date
    description: str = ""
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    account_id: Optional[str] = None


class IncomeCreate(EntryBase):
    source: str

    @field_validator("source")
    @classmethod
    def source_not_blank(cls, v: str) -> str:
        return _not_blank(v, "Income source")

    def to_record(self) -> IncomeRecord:
        return IncomeRecord(
            id=None,
            date=self.date,
            description=self.description,
            amount=self.amount,
            source=self.source,
            account_id=self.account_id,
        )


class IncomeOut(EntryBase):
    id: str
    source: str

    @classmethod
    def from_record(cls, r: IncomeRecord) -> IncomeOut:
        return cls(id=r.id, date=r.date, description=r.description, amount=r.amount,
                   account_id=r.account_id, source=r.source)


class ExpenseCreate(EntryBase):
    category: str

    @field_validator("category")
    @classmethod
    def category_not_blank(cls, v: str) -> str:
        return _not_blank(v, "Expense category")

    def to_record(self) -> ExpenseRecord:
        return ExpenseRecord(
            id=None,
            date=self.date,
            description=self.description,
            amount=self.amount,
            category=self.category,
            account_id=self.account_id,
        )


class ExpenseOut(EntryBase):
    id: str
    category: str

    @classmethod
    def from_record(cls, r: ExpenseRecord) -> ExpenseOut:
        return cls(id=r.id, date=r.date, description=r.description, amount=r.amount,
                   account_id=r.account_id, category=r.category)


# --- Investments ---

class StepDownIn(BaseModel):
    year_trigger: int
    new_rate: Decimal = Field(gt=0, max_digits=7, decimal_places=4)


class InvestmentCreate(EntryBase):
    """``date`` is the start date and ``amount`` the principal."""

    certificate_name: str
    initial_rate: Decimal = Field(gt=0, max_digits=7, decimal_places=4, description="Annual rate in percent, e.g. 5 for 5%")
    term_years: int = Field(gt=0)
    step_downs: List[StepDownIn] = Field(default_factory=list)

    @field_validator("certificate_name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _not_blank(v, "Certificate name")

    @model_validator(mode="after")
    def step_downs_within_term(self):
        for sd in self.step_downs:
            if not 1 < sd.year_trigger <= self.term_years:
                raise ValueError(
                    f"Invalid year trigger {sd.year_trigger} in step-down. "
                    f"Must be between 2 and {self.term_years}."
                )
        return self

    def to_record(self) -> Investment:
        return Investment(
            id=new_id(),
            start_date=self.date,
            principal=self.amount,
            term_years=self.term_years,
            initial_rate=self.initial_rate,
            step_downs=tuple(StepDown(sd.year_trigger, sd.new_rate) for sd in self.step_downs),
            certificate_name=self.certificate_name,
            description=self.description,
            account_id=self.account_id,
        )


class InvestmentOut(BaseModel):
    id: str
    date: dt.date
    description: str
    amount: Decimal
    account_id: Optional[str]
    certificate_name: str
    initial_rate: Decimal
    term_years: int
    term_end_date: dt.date
    step_downs: List[StepDownIn]
    last_claimed_period: Optional[str]

    @classmethod
    def from_record(cls, inv: Investment) -> InvestmentOut:
        return cls(
            id=inv.id,
            date=inv.start_date,
            description=inv.description,
            amount=inv.principal,
            account_id=inv.account_id,
            certificate_name=inv.certificate_name,
            initial_rate=inv.initial_rate,
            term_years=inv.term_years,
            term_end_date=inv.term_end_date,
            step_downs=[StepDownIn(year_trigger=sd.year_trigger, new_rate=sd.new_rate) for sd in inv.step_downs],
            last_claimed_period=str(inv.last_claimed_period) if inv.last_claimed_period else None,
        )


class ClaimableOut(BaseModel):
    investment_id: str
    certificate_name: str
    period_id: str
    period_label: str
    payable_date: dt.date
    effective_rate: Decimal
    monthly_income: Decimal
    status: str
    days_until_due: Optional[int] = None

    @classmethod
    def from_item(cls, item: ClaimableIncomePeriod) -> ClaimableOut:
        return cls(
            investment_id=item.investment.id,
            certificate_name=item.investment.certificate_name,
            period_id=str(item.period_id),
            period_label=item.period_id.label(),
            payable_date=item.payable_date,
            effective_rate=item.period.effective_rate,
            monthly_income=round_currency(item.monthly_income),
            status=item.status.value,
            days_until_due=item.days_until_due,
        )


class MonthlyIncomeOut(BaseModel):
    as_of: dt.date
    total: Decimal


class ClaimRequest(BaseModel):
    """The claim is dated by the server clock, never by the caller."""

    model_config = ConfigDict(extra="forbid")

    period_id: str

    @field_validator("period_id")
    @classmethod
    def valid_period(cls, v: str) -> str:
        return str(PeriodId.parse(v))


class ClaimOut(BaseModel):
    income: IncomeOut
    last_claimed_period: str


class SummaryOut(BaseModel):
    total_income: float
    total_expenses: float
    total_investments: float
    net_balance: float


class ExportOut(BaseModel):
    file_name: str
    rows: int
