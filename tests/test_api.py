from datetime import date
from decimal import Decimal

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from jose import jwt

from app.core.config import OPENAI_KEY_PLACEHOLDER, settings
from app.db import dynamo
from app.main import app
from app.models.expense import Category, ExpenseDataset
from app.routers import analysis
from app.utils.narrative import RemoteNarrativeGenerator
from app.utils.report import ReportBuilder

client = TestClient(app)


def _auth_headers(user_id="user-1"):
    token = jwt.encode({"sub": user_id}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def stored_expenses(monkeypatch, make_record):
    records = (
        make_record(Category.FOOD, "120.00", date(2025, 1, 20)),
        make_record(Category.FOOD, "80.00", date(2025, 1, 10)),
        make_record(Category.TRANSPORTATION, "50.00", date(2025, 1, 2)),
    )
    seen = []

    def fake_load_dataset(user_id, start_date, end_date):
        seen.append((user_id, start_date, end_date))
        return ExpenseDataset(records=records, start_date=start_date, end_date=end_date)

    monkeypatch.setattr(dynamo, "load_dataset", fake_load_dataset)
    offline = ReportBuilder(remote=RemoteNarrativeGenerator(api_key=OPENAI_KEY_PLACEHOLDER))
    monkeypatch.setattr(analysis, "report_builder", offline)
    return seen


def test_root():
    response = client.get("/")
    assert response.status_code == 200
    assert settings.PROJECT_NAME in response.json()["message"]


def test_health():
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_analysis_requires_token():
    response = client.get("/api/analysis", params={"startDate": "2025-01-01", "endDate": "2025-01-31"})
    assert response.status_code == 401


def test_analysis_rejects_bad_token():
    response = client.get(
        "/api/analysis",
        params={"startDate": "2025-01-01", "endDate": "2025-01-31"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


def test_analysis_report(stored_expenses):
    response = client.get(
        "/api/analysis",
        params={"startDate": "2025-01-01", "endDate": "2025-01-31"},
        headers=_auth_headers(),
    )
    assert response.status_code == 200
    body = response.json()
    assert stored_expenses == [("user-1", date(2025, 1, 1), date(2025, 1, 31))]
    assert Decimal(str(body["totalExpenses"])) == Decimal("250.00")
    assert body["expenseCount"] == 3
    assert Decimal(str(body["averageExpense"])) == Decimal("83.33")
    assert body["topCategory"] == "FOOD"
    assert set(body["categoryBreakdown"]) == {"FOOD", "TRANSPORTATION"}
    assert body["startDate"] == "2025-01-01"
    assert body["endDate"] == "2025-01-31"
    assert body["narrativeSource"] == "fallback"
    assert "Alert: FOOD represents 80.00%" in body["aiInsights"]


def test_analysis_inverted_window_is_bad_request(stored_expenses):
    response = client.get(
        "/api/analysis",
        params={"startDate": "2025-02-01", "endDate": "2025-01-01"},
        headers=_auth_headers(),
    )
    assert response.status_code == 400


def test_analysis_requires_dates():
    response = client.get("/api/analysis", headers=_auth_headers())
    assert response.status_code == 422


def test_category_summary(stored_expenses):
    response = client.get(
        "/api/expenses/category-summary",
        params={"startDate": "2025-01-01", "endDate": "2025-01-31"},
        headers=_auth_headers(),
    )
    assert response.status_code == 200
    body = response.json()
    assert Decimal(str(body["FOOD"])) == Decimal("200.00")
    assert Decimal(str(body["TRANSPORTATION"])) == Decimal("50.00")


def test_total_by_date_range(stored_expenses):
    response = client.get(
        "/api/expenses/total/date-range",
        params={"startDate": "2025-01-01", "endDate": "2025-01-31"},
        headers=_auth_headers(),
    )
    assert response.status_code == 200
    assert Decimal(str(response.json()["total"])) == Decimal("250.00")


def test_expenses_by_date_range(stored_expenses):
    response = client.get(
        "/api/expenses/date-range",
        params={"startDate": "2025-01-01", "endDate": "2025-01-31"},
        headers=_auth_headers(),
    )
    assert response.status_code == 200
    body = response.json()
    assert [item["expenseDate"] for item in body] == ["2025-01-20", "2025-01-10", "2025-01-02"]
    assert body[0]["category"] == "FOOD"


def test_expenses_by_category(monkeypatch):
    item = {
        "expense_id": "x1",
        "title": "Taxi",
        "amount": Decimal("18.40"),
        "category": "TRANSPORTATION",
        "expense_date": "2025-01-03",
        "payment_method": "DIGITAL_WALLET",
    }
    calls = []

    def fake_by_category(user_id, category):
        calls.append((user_id, category))
        return [item]

    monkeypatch.setattr(dynamo, "get_expenses_by_category", fake_by_category)
    response = client.get("/api/expenses/category/TRANSPORTATION", headers=_auth_headers())
    assert response.status_code == 200
    assert calls == [("user-1", Category.TRANSPORTATION)]
    assert response.json()[0]["title"] == "Taxi"


def test_unknown_category_is_rejected():
    response = client.get("/api/expenses/category/GAMBLING", headers=_auth_headers())
    assert response.status_code == 422


def test_total_of_all_expenses(monkeypatch):
    monkeypatch.setattr(dynamo, "get_all_expenses", lambda user_id: [])
    response = client.get("/api/expenses/total", headers=_auth_headers())
    assert response.status_code == 200
    total = response.json()["total"]
    assert isinstance(total, (int, float))
    assert total == 0


def test_analysis_money_values_are_json_numbers(stored_expenses):
    response = client.get(
        "/api/analysis",
        params={"startDate": "2025-01-01", "endDate": "2025-01-31"},
        headers=_auth_headers(),
    )
    body = response.json()
    assert isinstance(body["totalExpenses"], (int, float))
    assert isinstance(body["averageExpense"], (int, float))
    assert all(isinstance(value, (int, float)) for value in body["categoryBreakdown"].values())
    assert body["totalExpenses"] == 250.0
    assert body["averageExpense"] == 83.33
    assert body["categoryBreakdown"] == {"FOOD": 200.0, "TRANSPORTATION": 50.0}
    assert isinstance(body["expenseCount"], int)


def test_expense_money_values_are_json_numbers(stored_expenses):
    response = client.get(
        "/api/expenses/date-range",
        params={"startDate": "2025-01-01", "endDate": "2025-01-31"},
        headers=_auth_headers(),
    )
    amounts = [item["amount"] for item in response.json()]
    assert amounts == [120.0, 80.0, 50.0]
    assert all(isinstance(amount, float) for amount in amounts)

    summary = client.get(
        "/api/expenses/category-summary",
        params={"startDate": "2025-01-01", "endDate": "2025-01-31"},
        headers=_auth_headers(),
    ).json()
    assert summary == {"FOOD": 200.0, "TRANSPORTATION": 50.0}

    total = client.get(
        "/api/expenses/total/date-range",
        params={"startDate": "2025-01-01", "endDate": "2025-01-31"},
        headers=_auth_headers(),
    ).json()
    assert total == {"total": 250.0}


def test_expense_by_id(monkeypatch):
    item = {
        "expense_id": "x1",
        "title": "Taxi",
        "amount": Decimal("18.40"),
        "category": "TRANSPORTATION",
        "expense_date": "2025-01-03",
        "payment_method": "DIGITAL_WALLET",
        "vendor": "CityCab",
    }
    calls = []

    def fake_get_expense(user_id, expense_id):
        calls.append((user_id, expense_id))
        return item

    monkeypatch.setattr(dynamo, "get_expense", fake_get_expense)
    response = client.get("/api/expenses/x1", headers=_auth_headers())
    assert response.status_code == 200
    assert calls == [("user-1", "x1")]
    assert response.json() == {
        "id": "x1",
        "title": "Taxi",
        "description": None,
        "amount": 18.4,
        "category": "TRANSPORTATION",
        "expenseDate": "2025-01-03",
        "paymentMethod": "DIGITAL_WALLET",
        "vendor": "CityCab",
    }


def test_expense_by_id_not_found(monkeypatch):
    monkeypatch.setattr(dynamo, "get_expense", lambda user_id, expense_id: None)
    response = client.get("/api/expenses/missing", headers=_auth_headers())
    assert response.status_code == 404


def test_fixed_expense_paths_are_not_taken_as_ids(monkeypatch):
    def fail_get_expense(user_id, expense_id):
        raise AssertionError(f"unexpected lookup of {expense_id}")

    monkeypatch.setattr(dynamo, "get_expense", fail_get_expense)
    monkeypatch.setattr(dynamo, "get_all_expenses", lambda user_id: [])
    response = client.get("/api/expenses/total", headers=_auth_headers())
    assert response.status_code == 200


class BrokenTable:
    def __init__(self):
        self.error = ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "table missing"}}, "Query")

    def query(self, **kwargs):
        raise self.error

    def scan(self, **kwargs):
        raise self.error


class HealthyTable:
    def scan(self, **kwargs):
        return {"Items": []}


def test_analysis_storage_error_is_server_error(monkeypatch):
    monkeypatch.setattr(dynamo, "expenses_table", BrokenTable())
    response = client.get(
        "/api/analysis",
        params={"startDate": "2025-01-01", "endDate": "2025-01-31"},
        headers=_auth_headers(),
    )
    assert response.status_code == 500


def test_expense_window_storage_error_is_server_error(monkeypatch):
    monkeypatch.setattr(dynamo, "expenses_table", BrokenTable())
    response = client.get(
        "/api/expenses/total/date-range",
        params={"startDate": "2025-01-01", "endDate": "2025-01-31"},
        headers=_auth_headers(),
    )
    assert response.status_code == 500
    assert "table missing" in response.json()["detail"]


def test_status_degraded_when_table_unreachable(monkeypatch):
    monkeypatch.setattr(dynamo, "expenses_table", BrokenTable())
    monkeypatch.setattr(settings, "OPENAI_API_KEY", OPENAI_KEY_PLACEHOLDER)
    body = client.get("/api/status").json()
    assert body["overall_status"] == "degraded"
    assert body["services"]["dynamodb"]["connected"] is False
    assert body["services"]["dynamodb"]["status"] == "error"
    assert body["services"]["narrative"]["remote_configured"] is False
    assert body["services"]["narrative"]["mode"] == "fallback_only"


def test_status_healthy_with_remote_configured(monkeypatch):
    monkeypatch.setattr(dynamo, "expenses_table", HealthyTable())
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-live")
    body = client.get("/api/status").json()
    assert body["overall_status"] == "healthy"
    assert body["services"]["dynamodb"]["connected"] is True
    assert body["services"]["narrative"]["mode"] == "remote_with_fallback"
