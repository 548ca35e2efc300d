import streamlit as st
import pandas as pd

from fintrack.accrual import current_monthly_total
from fintrack.claims import ClaimCommitter
from fintrack.classifier import claimable_incomes
from fintrack.config import configure_logging, utc_today
from fintrack.database import init_db
from fintrack.errors import ClaimError, InvalidInvestmentError
from fintrack.ledger import SqlLedger
from fintrack.records import ClaimStatus, ExpenseRecord, IncomeRecord, Investment, StepDown, new_id
from fintrack.summary import get_summary, income_vs_expense_chart, recent_transactions, transactions_to_df

# --- Configuration ---
st.set_page_config(page_title="FinTrack", layout="wide", page_icon="💰")
configure_logging()
init_db()

if "ledger" not in st.session_state:
    st.session_state.ledger = SqlLedger()

ledger: SqlLedger = st.session_state.ledger
today = utc_today()


def money(amount) -> str:
    return f"${float(amount):,.2f}"


def account_select(column, key):
    accounts = {a.id: a.name for a in ledger.list_accounts()}
    return column.selectbox(
        "Account",
        [None, *accounts],
        format_func=lambda account_id: accounts.get(account_id, "(none)"),
        key=key,
    )


def add_investment_form():
    with st.expander("➕ Add Investment"):
        with st.form("add_investment"):
            c1, c2 = st.columns(2)
            name = c1.text_input("Certificate Name")
            principal = c2.number_input("Principal", min_value=0.0, step=100.0)
            start = c1.date_input("Start Date", value=today)
            account_id = account_select(c2, "investment_account")
            rate = c1.number_input("Initial Annual Rate (%)", min_value=0.0, step=0.01)
            term = c2.number_input("Term (Years)", min_value=1, step=1)

            st.caption("Interest rate step-downs, one per row (optional)")
            steps = st.data_editor(
                pd.DataFrame({"year_trigger": pd.Series(dtype="int"), "new_rate": pd.Series(dtype="float")}),
                num_rows="dynamic",
                key="step_downs",
            )

            if st.form_submit_button("Add Investment"):
                try:
                    inv = Investment(
                        id=new_id(),
                        start_date=start,
                        principal=round(principal, 2),
                        term_years=int(term),
                        initial_rate=round(rate, 4),
                        step_downs=tuple(
                            StepDown(int(r.year_trigger), round(r.new_rate, 4))
                            for r in steps.dropna().itertuples()
                        ),
                        certificate_name=name.strip(),
                        account_id=account_id,
                    )
                except InvalidInvestmentError as e:
                    st.error(str(e))
                else:
                    if not inv.certificate_name:
                        st.error("Please enter a certificate name.")
                    else:
                        ledger.add_investment(inv)
                        st.success("Investment Added!")
                        st.rerun()


def claimable_section(investments):
    st.subheader("Upcoming & Due Investment Income (This & Next Month)")
    items = claimable_incomes(investments, today)
    if not items:
        st.info("No investment income due or upcoming in the current or next month.")
        return

    committer = ClaimCommitter(ledger)
    for item in items:
        with st.container(border=True):
            c1, c2, c3 = st.columns([3, 1, 1])
            c1.markdown(
                f"**{item.investment.certificate_name}**  \n"
                f"Income for: {item.period_id.label()}  \n"
                f"Payable on: {item.payable_date:%b %d, %Y}"
            )
            c2.markdown(f"### {money(item.monthly_income)}")
            if item.status is ClaimStatus.DUE:
                if c3.button("Accept Income", key=f"claim-{item.investment.id}-{item.period_id}"):
                    try:
                        committer.commit(item, today)
                    except ClaimError as e:
                        st.warning(str(e))
                    st.rerun()
            else:
                days = item.days_until_due
                c3.caption(f"Due in {days} day{'' if days == 1 else 's'}")


def add_account_form():
    with st.form("add_account", clear_on_submit=True):
        name = st.text_input("Account Name")
        if st.form_submit_button("Add Account"):
            if not name.strip():
                st.error("Account name cannot be empty.")
            else:
                ledger.add_account(name)
                st.success("Account Added!")
                st.rerun()


def add_entry_form(kind: str):
    """Income and expense forms differ only in their source/category field."""
    label = "Source" if kind == "income" else "Category"
    with st.form(f"add_{kind}", clear_on_submit=True):
        c1, c2 = st.columns(2)
        entry_date = c1.date_input("Date", value=today)
        amount = c2.number_input("Amount ($)", min_value=0.0, step=10.0)
        tag = c1.text_input(label)
        account_id = account_select(c2, f"{kind}_account")
        description = st.text_input("Description")

        if st.form_submit_button(f"Add {kind.title()}"):
            if amount <= 0:
                st.error("Amount must be greater than zero.")
            elif not tag.strip():
                st.error(f"{label} cannot be empty.")
            else:
                fields = dict(
                    id=None,
                    date=entry_date,
                    description=description.strip(),
                    amount=round(amount, 2),
                    account_id=account_id,
                )
                if kind == "income":
                    ledger.add_income(IncomeRecord(source=tag.strip(), **fields))
                else:
                    ledger.add_expense(ExpenseRecord(category=tag.strip(), **fields))
                st.success("Saved!")
                st.rerun()


def entries_table(kind: str, records, delete):
    if not records:
        st.info(f"No {kind} recorded yet.")
        return
    tag = "source" if kind == "income" else "category"
    st.dataframe(
        pd.DataFrame(
            [
                {
                    "Date": r.date,
                    tag.title(): getattr(r, tag),
                    "Description": r.description,
                    "Amount": float(r.amount),
                }
                for r in records
            ]
        ),
        use_container_width=True,
    )
    by_id = {r.id: r for r in records}
    to_delete = st.selectbox(
        "Select to Delete",
        list(by_id),
        format_func=lambda rid: f"{by_id[rid].date} {getattr(by_id[rid], tag)} {money(by_id[rid].amount)}",
        key=f"delete_{kind}",
    )
    if st.button("Delete Selected", key=f"delete_{kind}_button"):
        delete(to_delete)
        st.rerun()


st.title("💰 FinTrack")
st.caption(f"As of {today:%B %d, %Y}")

investments = ledger.list_investments()
df = transactions_to_df(ledger.list_incomes(), ledger.list_expenses(), investments)
summary = get_summary(df)

tab1, tab2, tab3 = st.tabs(["📊 Dashboard", "📈 Investments", "💳 Entries"])

with tab1:
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Income", money(summary["total_income"]))
    col2.metric("Total Expenses", money(summary["total_expenses"]))
    col3.metric("Total Investments", money(summary["total_investments"]))
    col4.metric("Net Balance", money(summary["net_balance"]))

    if not df.empty:
        st.plotly_chart(income_vs_expense_chart(df), use_container_width=True)
        st.caption("Recent transactions")
        st.dataframe(recent_transactions(df), use_container_width=True)

with tab2:
    st.metric("Total Estimated Current Monthly Income", money(current_monthly_total(investments, today)))
    add_investment_form()
    claimable_section(investments)

    if investments:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Certificate": inv.certificate_name,
                        "Principal": float(inv.principal),
                        "Start": inv.start_date,
                        "Term End": inv.term_end_date,
                        "Initial Rate %": float(inv.initial_rate),
                        "Last Claimed": str(inv.last_claimed_period or ""),
                    }
                    for inv in investments
                ]
            ),
            use_container_width=True,
        )

with tab3:
    with st.expander("➕ Add Account"):
        add_account_form()
        accounts = ledger.list_accounts()
        if accounts:
            st.caption(", ".join(a.name for a in accounts))

    income_col, expense_col = st.columns(2)
    with income_col:
        st.subheader("Income")
        add_entry_form("income")
        entries_table("income", ledger.list_incomes(), ledger.delete_income)
    with expense_col:
        st.subheader("Expenses")
        add_entry_form("expense")
        entries_table("expenses", ledger.list_expenses(), ledger.delete_expense)
