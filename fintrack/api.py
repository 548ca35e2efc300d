"""FinTrack HTTP API over FastAPI."""

from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from fintrack import storage
from fintrack.accrual import current_monthly_total
from fintrack.claims import ClaimCommitter
from fintrack.classifier import claimable_incomes
from fintrack.config import configure_logging, utc_today
from fintrack.database import init_db
from fintrack.errors import ClaimError, InvalidInvestmentError, RecordNotFoundError
from fintrack.ledger import SqlLedger
from fintrack.records import PeriodId
from fintrack.schemas import (
    AccountCreate,
    AccountOut,
    ClaimableOut,
    ClaimOut,
    ClaimRequest,
    ExpenseCreate,
    ExpenseOut,
    ExportOut,
    IncomeCreate,
    IncomeOut,
    InvestmentCreate,
    InvestmentOut,
    MonthlyIncomeOut,
    SummaryOut,
)
from fintrack.summary import get_summary, transactions_to_df


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    yield


app = FastAPI(title="FinTrack", version="0.1.0", lifespan=lifespan)


def get_ledger() -> SqlLedger:
    return SqlLedger()


@app.exception_handler(RecordNotFoundError)
async def not_found(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ClaimError)
async def claim_rejected(request: Request, exc: ClaimError):
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "reason": type(exc).__name__,
            "investment_id": exc.investment_id,
            "period_id": exc.period_id,
        },
    )


@app.exception_handler(InvalidInvestmentError)
async def invalid_investment(request: Request, exc: InvalidInvestmentError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# --- Accounts ---

@app.post("/accounts", response_model=AccountOut, status_code=201)
async def add_account(req: AccountCreate, ledger: SqlLedger = Depends(get_ledger)):
    return AccountOut.from_record(ledger.add_account(req.name))


@app.get("/accounts", response_model=List[AccountOut])
async def list_accounts(ledger: SqlLedger = Depends(get_ledger)):
    return [AccountOut.from_record(a) for a in ledger.list_accounts()]


@app.get("/accounts/{account_id}", response_model=AccountOut)
async def get_account(account_id: str, ledger: SqlLedger = Depends(get_ledger)):
    return AccountOut.from_record(ledger.get_account(account_id))


# --- Income & expenses ---

@app.post("/incomes", response_model=IncomeOut, status_code=201)
async def add_income(req: IncomeCreate, ledger: SqlLedger = Depends(get_ledger)):
    return IncomeOut.from_record(ledger.add_income(req.to_record()))


@app.get("/incomes", response_model=List[IncomeOut])
async def list_incomes(ledger: SqlLedger = Depends(get_ledger)):
    return [IncomeOut.from_record(r) for r in ledger.list_incomes()]


@app.delete("/incomes/{income_id}", status_code=204)
async def delete_income(income_id: str, ledger: SqlLedger = Depends(get_ledger)):
    ledger.delete_income(income_id)


@app.post("/expenses", response_model=ExpenseOut, status_code=201)
async def add_expense(req: ExpenseCreate, ledger: SqlLedger = Depends(get_ledger)):
    return ExpenseOut.from_record(ledger.add_expense(req.to_record()))


@app.get("/expenses", response_model=List[ExpenseOut])
async def list_expenses(ledger: SqlLedger = Depends(get_ledger)):
    return [ExpenseOut.from_record(r) for r in ledger.list_expenses()]


@app.delete("/expenses/{expense_id}", status_code=204)
async def delete_expense(expense_id: str, ledger: SqlLedger = Depends(get_ledger)):
    ledger.delete_expense(expense_id)


# --- Investments ---

@app.post("/investments", response_model=InvestmentOut, status_code=201)
async def add_investment(req: InvestmentCreate, ledger: SqlLedger = Depends(get_ledger)):
    return InvestmentOut.from_record(ledger.add_investment(req.to_record()))


@app.get("/investments", response_model=List[InvestmentOut])
async def list_investments(ledger: SqlLedger = Depends(get_ledger)):
    return [InvestmentOut.from_record(inv) for inv in ledger.list_investments()]


@app.get("/investments/claimable", response_model=List[ClaimableOut])
async def claimable(today: Optional[date] = None, ledger: SqlLedger = Depends(get_ledger)):
    items = claimable_incomes(ledger.list_investments(), today or utc_today())
    return [ClaimableOut.from_item(item) for item in items]


@app.get("/investments/monthly-income", response_model=MonthlyIncomeOut)
async def monthly_income(today: Optional[date] = None, ledger: SqlLedger = Depends(get_ledger)):
    as_of = today or utc_today()
    return MonthlyIncomeOut(as_of=as_of, total=current_monthly_total(ledger.list_investments(), as_of))


@app.post("/investments/{investment_id}/claims", response_model=ClaimOut, status_code=201)
async def claim_income(investment_id: str, req: ClaimRequest, ledger: SqlLedger = Depends(get_ledger)):
    income, updated = ClaimCommitter(ledger).claim(
        investment_id, PeriodId.parse(req.period_id), utc_today()
    )
    return ClaimOut(income=IncomeOut.from_record(income), last_claimed_period=str(updated.last_claimed_period))


# --- Reporting ---

def _ledger_df(ledger: SqlLedger):
    return transactions_to_df(ledger.list_incomes(), ledger.list_expenses(), ledger.list_investments())


@app.get("/summary", response_model=SummaryOut)
async def summary(ledger: SqlLedger = Depends(get_ledger)):
    return SummaryOut(**get_summary(_ledger_df(ledger)))


@app.post("/exports", response_model=ExportOut, status_code=201)
async def export(ledger: SqlLedger = Depends(get_ledger)):
    df = _ledger_df(ledger)
    return ExportOut(file_name=storage.export_transactions(df, utc_today()), rows=len(df))


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("fintrack.api:app", host="0.0.0.0", port=8001, reload=True)
