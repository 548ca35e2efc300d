from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from fintrack import database

APP = str(Path(__file__).resolve().parents[1] / "fintrack" / "app.py")


@pytest.fixture
def page(ledger, monkeypatch):
    monkeypatch.setattr(database, "init_db", lambda: None)
    monkeypatch.setenv("FINTRACK_TODAY", "2024-02-15")
    at = AppTest.from_file(APP, default_timeout=30)
    at.session_state["ledger"] = ledger
    return at


def by_label(elements, label):
    return [e for e in elements if e.label == label]


def test_accounts_with_same_name_stay_separate(page, ledger):
    first = ledger.add_account("Checking")
    second = ledger.add_account("Checking")
    page.run()

    account = page.selectbox(key="income_account")
    assert len(account.options) == 3

    account.select_index(2)
    by_label(page.number_input, "Amount ($)")[0].set_value(250.0)
    by_label(page.text_input, "Source")[0].input("Job")
    by_label(page.button, "Add Income")[0].click()
    page.run()

    [income] = ledger.list_incomes()
    assert income.source == "Job"
    assert income.account_id in {first.id, second.id}
    assert income.account_id == ledger.list_accounts()[1].id


def test_expense_and_account_entry(page, ledger):
    page.run()

    by_label(page.text_input, "Account Name")[0].input("Savings")
    by_label(page.button, "Add Account")[0].click()
    page.run()
    assert [a.name for a in ledger.list_accounts()] == ["Savings"]

    by_label(page.number_input, "Amount ($)")[1].set_value(40.0)
    by_label(page.text_input, "Category")[0].input("Groceries")
    by_label(page.button, "Add Expense")[0].click()
    page.run()

    [expense] = ledger.list_expenses()
    assert expense.category == "Groceries"
    assert expense.amount == 40
    assert not page.exception


def test_blank_expense_category_rejected(page, ledger):
    page.run()
    by_label(page.number_input, "Amount ($)")[1].set_value(40.0)
    by_label(page.button, "Add Expense")[0].click()
    page.run()

    assert ledger.list_expenses() == []
    assert any("Category cannot be empty" in e.value for e in page.error)
