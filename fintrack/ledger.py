"""
SQL-backed ledger: the investment source and income sink of the engine,
plus plain CRUD for accounts, incomes and expenses.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional

from sqlalchemy import update

from fintrack.database import AccountRow, ExpenseRow, IncomeRow, InvestmentRow, SessionLocal, StepDownRow
from fintrack.errors import AlreadyClaimedError, RecordNotFoundError
from fintrack.records import (
    Account,
    ExpenseRecord,
    IncomeRecord,
    Investment,
    PeriodId,
    StepDown,
    new_id,
)

logger = logging.getLogger(__name__)


def _income(row: IncomeRow) -> IncomeRecord:
    return IncomeRecord(
        id=row.id,
        date=row.date,
        description=row.description,
        amount=row.amount,
        source=row.source,
        account_id=row.account_id,
    )


def _expense(row: ExpenseRow) -> ExpenseRecord:
    return ExpenseRecord(
        id=row.id,
        date=row.date,
        description=row.description,
        amount=row.amount,
        category=row.category,
        account_id=row.account_id,
    )


def _investment(row: InvestmentRow) -> Investment:
    return Investment(
        id=row.id,
        start_date=row.date,
        principal=row.amount,
        term_years=row.term_years,
        initial_rate=row.initial_rate,
        step_downs=tuple(StepDown(s.year_trigger, s.new_rate) for s in row.step_downs),
        certificate_name=row.certificate_name,
        description=row.description,
        account_id=row.account_id,
        last_claimed_period=PeriodId(row.last_claimed_key) if row.last_claimed_key is not None else None,
    )


class SqlLedger:
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    # --- Accounts ---

    def add_account(self, name: str) -> Account:
        with self.session_factory() as s:
            row = AccountRow(id=new_id(), name=name.strip())
            s.add(row)
            s.commit()
            return Account(id=row.id, name=row.name)

    def list_accounts(self) -> List[Account]:
        with self.session_factory() as s:
            return [Account(id=r.id, name=r.name) for r in s.query(AccountRow).order_by(AccountRow.name).all()]

    def get_account(self, account_id: str) -> Account:
        with self.session_factory() as s:
            row = s.get(AccountRow, account_id)
            if row is None:
                raise RecordNotFoundError("Account", account_id)
            return Account(id=row.id, name=row.name)

    def _check_account(self, account_id: Optional[str]):
        if account_id is not None:
            self.get_account(account_id)

    # --- Incomes & expenses ---

    def add_income(self, income: IncomeRecord) -> IncomeRecord:
        self._check_account(income.account_id)
        with self.session_factory() as s:
            row = IncomeRow(
                id=income.id or new_id(),
                date=income.date,
                description=income.description,
                amount=income.amount,
                source=income.source,
                account_id=income.account_id,
            )
            s.add(row)
            s.commit()
            return _income(row)

    def list_incomes(self) -> List[IncomeRecord]:
        with self.session_factory() as s:
            q = s.query(IncomeRow).order_by(IncomeRow.date.desc(), IncomeRow.id)
            return [_income(r) for r in q.all()]

    def delete_income(self, income_id: str) -> None:
        # Deleting a claimed income does not reopen its period
        self._delete(IncomeRow, "Income", income_id)

    def add_expense(self, expense: ExpenseRecord) -> ExpenseRecord:
        self._check_account(expense.account_id)
        with self.session_factory() as s:
            row = ExpenseRow(
                id=expense.id or new_id(),
                date=expense.date,
                description=expense.description,
                amount=expense.amount,
                category=expense.category,
                account_id=expense.account_id,
            )
            s.add(row)
            s.commit()
            return _expense(row)

    def list_expenses(self) -> List[ExpenseRecord]:
        with self.session_factory() as s:
            q = s.query(ExpenseRow).order_by(ExpenseRow.date.desc(), ExpenseRow.id)
            return [_expense(r) for r in q.all()]

    def delete_expense(self, expense_id: str) -> None:
        self._delete(ExpenseRow, "Expense", expense_id)

    def _delete(self, model, kind: str, record_id: str) -> None:
        with self.session_factory() as s:
            row = s.get(model, record_id)
            if row is None:
                raise RecordNotFoundError(kind, record_id)
            s.delete(row)
            s.commit()

    # --- Investments ---

    def add_investment(self, investment: Investment) -> Investment:
        self._check_account(investment.account_id)
        with self.session_factory() as s:
            row = InvestmentRow(
                id=investment.id,
                date=investment.start_date,
                description=investment.description,
                amount=investment.principal,
                account_id=investment.account_id,
                certificate_name=investment.certificate_name,
                initial_rate=investment.initial_rate,
                term_years=investment.term_years,
                last_claimed_key=investment.last_claimed_period.key if investment.last_claimed_period else None,
                step_downs=[StepDownRow(year_trigger=sd.year_trigger, new_rate=sd.new_rate) for sd in investment.step_downs],
            )
            s.add(row)
            s.commit()
            logger.info("Added investment %s (%s)", row.id, row.certificate_name)
            return _investment(row)

    def list_investments(self) -> List[Investment]:
        with self.session_factory() as s:
            q = s.query(InvestmentRow).order_by(InvestmentRow.date, InvestmentRow.id)
            return [_investment(r) for r in q.all()]

    def get_investment(self, investment_id: str) -> Investment:
        with self.session_factory() as s:
            row = s.get(InvestmentRow, investment_id)
            if row is None:
                raise RecordNotFoundError("Investment", investment_id)
            return _investment(row)

    def commit_claim(
        self,
        income: IncomeRecord,
        investment: Investment,
        expected_last_claimed: Optional[PeriodId],
    ) -> IncomeRecord:
        """
        Append ``income`` and move the investment's watermark to
        ``investment.last_claimed_period`` in one transaction.

        The watermark only moves if it still equals
        ``expected_last_claimed``; otherwise another claim won the race,
        nothing is written and ``AlreadyClaimedError`` is raised.
        """
        new_period = investment.last_claimed_period
        if new_period is None:
            raise ValueError("investment carries no claimed period to commit")

        if expected_last_claimed is None:
            unchanged = InvestmentRow.last_claimed_key.is_(None)
        else:
            unchanged = InvestmentRow.last_claimed_key == expected_last_claimed.key

        with self.session_factory() as s:
            with s.begin():
                result = s.execute(
                    update(InvestmentRow)
                    .where(InvestmentRow.id == investment.id, unchanged)
                    .values(last_claimed_key=new_period.key)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise AlreadyClaimedError(
                        f"{new_period} was claimed concurrently",
                        investment.id,
                        str(new_period),
                    )
                row = IncomeRow(
                    id=income.id or new_id(),
                    date=income.date,
                    description=income.description,
                    amount=income.amount,
                    source=income.source,
                    account_id=income.account_id,
                )
                s.add(row)
            return replace(income, id=row.id)
