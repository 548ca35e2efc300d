from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from fintrack.api import app, get_ledger


@pytest.fixture
def client(ledger):
    app.dependency_overrides[get_ledger] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()


CERTIFICATE = {
    "date": "2024-01-15",
    "description": "One-year CD",
    "amount": "12000",
    "certificate_name": "Bank CD",
    "initial_rate": "6.0",
    "term_years": 1,
}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_accounts(client):
    r = client.post("/accounts", json={"name": "  Checking "})
    assert r.status_code == 201
    account = r.json()
    assert account["name"] == "Checking"
    assert client.get(f"/accounts/{account['id']}").json() == account
    assert client.get("/accounts").json() == [account]


def test_blank_account_name_rejected(client):
    assert client.post("/accounts", json={"name": "   "}).status_code == 422


def test_unknown_account_is_404(client):
    assert client.get("/accounts/nope").status_code == 404
    r = client.post("/incomes", json={"date": "2024-01-01", "amount": "10", "source": "Job", "account_id": "nope"})
    assert r.status_code == 404


def test_income_and_expense_crud(client):
    r = client.post("/incomes", json={"date": "2024-01-05", "description": "Salary", "amount": "100", "source": "Job"})
    assert r.status_code == 201
    income_id = r.json()["id"]
    r = client.post("/expenses", json={"date": "2024-01-06", "description": "Food", "amount": "40", "category": "Groceries"})
    assert r.status_code == 201

    assert [i["source"] for i in client.get("/incomes").json()] == ["Job"]
    assert [e["category"] for e in client.get("/expenses").json()] == ["Groceries"]

    assert client.delete(f"/incomes/{income_id}").status_code == 204
    assert client.get("/incomes").json() == []
    assert client.delete(f"/incomes/{income_id}").status_code == 404


@pytest.mark.parametrize(
    "payload",
    [
        {"date": "2024-01-05", "amount": "0", "source": "Job"},
        {"date": "2024-01-05", "amount": "10", "source": " "},
        {"date": "2024-01-05", "amount": "10.005", "source": "Job"},
    ],
)
def test_bad_income_rejected(client, payload):
    assert client.post("/incomes", json=payload).status_code == 422


def test_create_and_list_investment(client):
    body = dict(CERTIFICATE, step_downs=[])
    r = client.post("/investments", json=body)
    assert r.status_code == 201
    inv = r.json()
    assert inv["term_end_date"] == "2025-01-15"
    assert inv["last_claimed_period"] is None
    assert [i["id"] for i in client.get("/investments").json()] == [inv["id"]]


@pytest.mark.parametrize(
    "overrides",
    [
        {"term_years": 0},
        {"initial_rate": "0"},
        {"certificate_name": ""},
        {"term_years": 3, "step_downs": [{"year_trigger": 1, "new_rate": "4"}]},
        {"term_years": 3, "step_downs": [{"year_trigger": 4, "new_rate": "4"}]},
        {"term_years": 3, "step_downs": [{"year_trigger": 2, "new_rate": "-1"}]},
        {"amount": "1000.555"},
        {"initial_rate": "4.12345"},
        {"term_years": 3, "step_downs": [{"year_trigger": 2, "new_rate": "4.00001"}]},
    ],
)
def test_invalid_investment_rejected(client, overrides):
    assert client.post("/investments", json=dict(CERTIFICATE, **overrides)).status_code == 422
    assert client.get("/investments").json() == []


def test_investment_reads_back_as_created(client):
    body = dict(
        CERTIFICATE,
        amount="1000.55",
        initial_rate="4.1235",
        term_years=3,
        step_downs=[{"year_trigger": 2, "new_rate": "3.9875"}],
    )
    created = client.post("/investments", json=body).json()
    [listed] = client.get("/investments").json()
    assert Decimal(created["amount"]) == Decimal(listed["amount"]) == Decimal("1000.55")
    assert Decimal(created["initial_rate"]) == Decimal(listed["initial_rate"]) == Decimal("4.1235")
    assert Decimal(listed["step_downs"][0]["new_rate"]) == Decimal("3.9875")


def test_claimable_claim_and_reclaim(client, monkeypatch):
    monkeypatch.setenv("FINTRACK_TODAY", "2024-02-15")
    inv_id = client.post("/investments", json=CERTIFICATE).json()["id"]

    items = client.get("/investments/claimable", params={"today": "2024-02-15"}).json()
    assert [(i["period_id"], i["status"]) for i in items] == [("2024-01", "due"), ("2024-02", "upcoming")]
    assert Decimal(items[0]["monthly_income"]) == Decimal("60.00")
    assert items[0]["period_label"] == "January 2024"
    assert items[1]["days_until_due"] == 29

    r = client.post(f"/investments/{inv_id}/claims", json={"period_id": "2024-01"})
    assert r.status_code == 201
    claim = r.json()
    assert claim["last_claimed_period"] == "2024-01"
    assert claim["income"]["date"] == "2024-02-15"
    assert Decimal(claim["income"]["amount"]) == Decimal("60.00")

    r = client.post(f"/investments/{inv_id}/claims", json={"period_id": "2024-01"})
    assert r.status_code == 409
    assert r.json()["reason"] == "AlreadyClaimedError"

    r = client.post(f"/investments/{inv_id}/claims", json={"period_id": "2024-02"})
    assert r.status_code == 409
    assert r.json()["reason"] == "ClaimNotDueError"

    items = client.get("/investments/claimable", params={"today": "2024-02-15"}).json()
    assert [i["period_id"] for i in items] == ["2024-02"]


def test_claim_uses_server_clock(client, monkeypatch):
    monkeypatch.setenv("FINTRACK_TODAY", "2024-02-01")
    inv_id = client.post("/investments", json=CERTIFICATE).json()["id"]

    # 2024-01 pays on 2024-02-15, after the pinned clock
    r = client.post(f"/investments/{inv_id}/claims", json={"period_id": "2024-01"})
    assert r.status_code == 409
    assert r.json()["reason"] == "ClaimNotDueError"

    r = client.post(f"/investments/{inv_id}/claims", json={"period_id": "2024-01", "today": "2024-02-15"})
    assert r.status_code == 422

    assert client.get("/incomes").json() == []
    assert client.get("/investments").json()[0]["last_claimed_period"] is None


def test_claim_with_malformed_period(client):
    inv_id = client.post("/investments", json=CERTIFICATE).json()["id"]
    r = client.post(f"/investments/{inv_id}/claims", json={"period_id": "2024-13"})
    assert r.status_code == 422


def test_claim_unknown_investment(client):
    r = client.post("/investments/nope/claims", json={"period_id": "2024-01"})
    assert r.status_code == 404


def test_monthly_income(client):
    client.post("/investments", json=CERTIFICATE)
    body = client.get("/investments/monthly-income", params={"today": "2024-06-01"}).json()
    assert body["as_of"] == "2024-06-01"
    assert Decimal(body["total"]) == Decimal("60")


def test_summary(client):
    client.post("/incomes", json={"date": "2024-01-05", "amount": "100", "source": "Job"})
    client.post("/expenses", json={"date": "2024-01-06", "amount": "40", "category": "Food"})
    client.post("/investments", json=CERTIFICATE)
    assert client.get("/summary").json() == {
        "total_income": 100.0,
        "total_expenses": 40.0,
        "total_investments": 12000.0,
        "net_balance": 60.0,
    }


def test_export(client, tmp_path, monkeypatch):
    from fintrack import config

    monkeypatch.setattr(config, "S3_BUCKET", None)
    monkeypatch.setattr(config, "EXPORT_DIR", str(tmp_path))
    monkeypatch.setenv("FINTRACK_TODAY", "2024-03-01")
    client.post("/incomes", json={"date": "2024-01-05", "amount": "100", "source": "Job"})

    r = client.post("/exports")
    assert r.status_code == 201
    assert r.json() == {"file_name": "transactions_2024-03-01.csv", "rows": 1}
    assert (tmp_path / "exports" / "transactions_2024-03-01.csv").exists()
