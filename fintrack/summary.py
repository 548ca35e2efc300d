# summary.py: ledger totals and monthly trend for the dashboard and API

from __future__ import annotations

from typing import Iterable

import pandas as pd
import plotly.graph_objects as go

from fintrack.records import ExpenseRecord, IncomeRecord, Investment

COLUMNS = ["Date", "Type", "Description", "Amount", "AccountId"]


def transactions_to_df(
    incomes: Iterable[IncomeRecord],
    expenses: Iterable[ExpenseRecord],
    investments: Iterable[Investment] = (),
) -> pd.DataFrame:
    """
    One row per ledger entry.  Amounts stay positive; ``Type`` says which
    way the money went.  Investment rows carry the principal.
    """
    rows = []
    for r in incomes:
        rows.append({"Date": r.date, "Type": "Income", "Description": r.description,
                     "Amount": float(r.amount), "AccountId": r.account_id})
    for r in expenses:
        rows.append({"Date": r.date, "Type": "Expense", "Description": r.description,
                     "Amount": float(r.amount), "AccountId": r.account_id})
    for inv in investments:
        rows.append({"Date": inv.start_date, "Type": "Investment",
                     "Description": inv.certificate_name or inv.description,
                     "Amount": float(inv.principal), "AccountId": inv.account_id})

    if not rows:
        df = pd.DataFrame(columns=COLUMNS)
        df["Month"] = pd.Series(dtype=str)
        return df

    df = pd.DataFrame(rows, columns=COLUMNS)
    df["Date"] = pd.to_datetime(df["Date"])
    df["Month"] = df["Date"].dt.to_period("M").astype(str)
    return df


def get_summary(df: pd.DataFrame) -> dict:
    """
    Totals per entry type.  Net balance is income minus expenses;
    investment principal is not counted as cash flow.
    """
    if df.empty:
        totals = {}
    else:
        totals = df.groupby("Type")["Amount"].sum().to_dict()

    income = float(totals.get("Income", 0.0))
    expenses = float(totals.get("Expense", 0.0))
    return {
        "total_income": income,
        "total_expenses": expenses,
        "total_investments": float(totals.get("Investment", 0.0)),
        "net_balance": income - expenses,
    }


def monthly_income_vs_expense(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["Month", "Income", "Expense"])

    flows = df[df["Type"].isin(["Income", "Expense"])]
    monthly = (
        flows.pivot_table(index="Month", columns="Type", values="Amount", aggfunc="sum", fill_value=0.0)
        .reindex(columns=["Income", "Expense"], fill_value=0.0)
        .reset_index()
        .sort_values("Month")
    )
    monthly.columns.name = None
    return monthly


def income_vs_expense_chart(df: pd.DataFrame):
    """
    Bar chart of Income vs Expenses per month.
    """
    monthly = monthly_income_vs_expense(df)

    fig = go.Figure()
    fig.add_trace(go.Bar(x=monthly["Month"], y=monthly["Income"], name="Income", marker_color="#4CAF50"))
    fig.add_trace(go.Bar(x=monthly["Month"], y=monthly["Expense"], name="Expenses", marker_color="#FF5252"))

    fig.update_layout(barmode="group", title="Income vs Expenses Trend", height=400)
    return fig


def recent_transactions(df: pd.DataFrame, n: int = 5) -> pd.DataFrame:
    if df.empty:
        return df
    return df.sort_values("Date", ascending=False, kind="stable").head(n).reset_index(drop=True)
