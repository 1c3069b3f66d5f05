"""Integration tests for API endpoints"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from insight_engine.api.dependencies import get_oracle_client
from insight_engine.domain.exceptions import CategorizationOracleError
from insight_engine.domain.models import CategorySuggestion
from insight_engine.infrastructure.clients.oracle import CategorizationOracleClient


@pytest.fixture
def transaction_history():
    """Ten weeks of groceries and a large purchase entered twice"""
    base_date = datetime(2024, 1, 1)
    history = [
        {
            "id": f"grocery_{week}",
            "name": "Whole Foods Market",
            "amount": 80.0,
            "type": "expense",
            "date": (base_date + timedelta(days=week * 7)).isoformat(),
            "category": "Groceries",
        }
        for week in range(10)
    ]
    history.append(
        {"id": "tv", "name": "Best Buy", "amount": 1299.0, "type": "expense", "date": "2024-02-20", "category": "Shopping"}
    )
    history.append(
        {"id": "tv_dup", "name": "BEST BUY", "amount": 1299.0, "type": "expense", "date": "2024-02-20", "category": "Shopping"}
    )
    return history


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "insight-engine"}


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "insights_generated_total" in response.text
    assert "notifications_created_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_categorize_endpoint(client: TestClient):
    """Test POST /v1/categories/categorize with a known merchant"""
    response = client.post("/v1/categories/categorize", json={"name": "Uber *Trip", "amount": 23.4, "type": "expense"})

    assert response.status_code == 200
    data = response.json()
    assert data["category"] == "Transportation"
    assert data["confidence"] == 0.95
    assert data["suggestions"][0]["category"] == "Transportation"


def test_categorize_unknown_name(client: TestClient):
    response = client.post("/v1/categories/categorize", json={"name": "Qzxv Wkjy", "type": "expense"})

    assert response.status_code == 200
    assert response.json() == {"category": None, "confidence": 0.0, "suggestions": []}


def test_categorize_rejects_empty_name(client: TestClient):
    response = client.post("/v1/categories/categorize", json={"name": ""})
    assert response.status_code == 422


def test_learn_then_categorize(client: TestClient):
    """Test a user correction overrides the built-in tables"""
    response = client.post("/v1/categories/learn", json={"transaction_name": "Starbucks", "category": "Coffee"})
    assert response.status_code == 204

    response = client.post("/v1/categories/categorize", json={"name": "starbucks", "type": "expense"})
    assert response.json()["category"] == "Coffee"
    assert response.json()["confidence"] == 1.0


def test_suggest_uses_local_classifier_when_unconfigured(client: TestClient):
    response = client.post("/v1/categories/suggest", json={"name": "Netflix", "type": "expense"})

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "local"
    assert data["suggestions"][0]["category"] == "Entertainment"


@patch("insight_engine.infrastructure.clients.oracle.CategorizationOracleClient.suggest_categories")
def test_suggest_prefers_hosted_service(mock_oracle: AsyncMock, client: TestClient):
    """Test POST /v1/categories/suggest answered by the hosted service"""
    mock_oracle.return_value = [CategorySuggestion(category="Streaming", confidence=0.97)]
    client.app.dependency_overrides[get_oracle_client] = lambda: CategorizationOracleClient(base_url="http://oracle.test")

    response = client.post(
        "/v1/categories/suggest",
        json={"name": "Netflix", "type": "expense", "existing_categories": ["Streaming"]},
    )

    assert response.status_code == 200
    assert response.json() == {"source": "oracle", "suggestions": [{"category": "Streaming", "confidence": 0.97}]}
    mock_oracle.assert_awaited_once_with("Netflix", "expense", ["Streaming"])


@patch("insight_engine.infrastructure.clients.oracle.CategorizationOracleClient.suggest_categories")
def test_suggest_falls_back_when_hosted_service_fails(mock_oracle: AsyncMock, client: TestClient):
    mock_oracle.side_effect = CategorizationOracleError("Categorization service timeout after 5.0s")
    client.app.dependency_overrides[get_oracle_client] = lambda: CategorizationOracleClient(base_url="http://oracle.test")

    response = client.post("/v1/categories/suggest", json={"name": "Netflix", "type": "expense"})

    assert response.status_code == 200
    assert response.json()["source"] == "local"
    assert response.json()["suggestions"][0]["category"] == "Entertainment"


def test_detect_duplicate_endpoint(client: TestClient):
    """Test POST /v1/duplicates/detect with camelCase fields and a Firestore timestamp"""
    response = client.post(
        "/v1/duplicates/detect",
        json={
            "candidate": {"name": "Starbucks", "amount": 5.5, "type": "expense", "date": "2024-01-15T08:00:00Z"},
            "existing": [
                {
                    "id": "t1",
                    "name": "Starbucks",
                    "amount": 5.5,
                    "type": "expense",
                    "date": {"seconds": 1705334400, "nanoseconds": 0},
                    "accountId": "acct_1",
                }
            ],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["is_duplicate"] is True
    assert data["confidence"] >= 0.9
    assert data["similar_transaction_id"] == "t1"


def test_detect_duplicate_without_history(client: TestClient):
    response = client.post(
        "/v1/duplicates/detect",
        json={"candidate": {"name": "Starbucks", "amount": 5.5, "type": "expense"}},
    )

    assert response.status_code == 200
    assert response.json()["is_duplicate"] is False
    assert response.json()["reason"] == "no prior transactions"


def test_scan_duplicates_endpoint(client: TestClient, transaction_history):
    response = client.post("/v1/duplicates/scan", json={"transactions": transaction_history})

    assert response.status_code == 200
    groups = response.json()["groups"]
    assert {"transaction_id": "tv", "duplicate_ids": ["tv_dup"], "confidence": 1.0} in groups
    assert all(g["transaction_id"] != "tv_dup" for g in groups)


def test_patterns_endpoint(client: TestClient, transaction_history):
    response = client.post("/v1/insights/patterns", json={"transactions": transaction_history})

    assert response.status_code == 200
    data = response.json()
    categories = {p["category"]: p for p in data["patterns"]}
    assert categories["Groceries"]["transaction_count"] == 10
    assert categories["Groceries"]["trend"] == "stable"
    assert categories["Shopping"]["total_spent"] == 2598.0
    assert set(data["outlier_ids"]) == {"tv", "tv_dup"}


def test_insights_endpoint_with_budgets(client: TestClient, transaction_history):
    """Test POST /v1/insights ranks the exceeded budget first"""
    response = client.post(
        "/v1/insights",
        json={
            "transactions": transaction_history,
            "budgets": [{"category": "Shopping", "limit": 1000, "spent": 2598}],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["insights"][0]["title"] == "Budget Exceeded"
    assert "$1,598.00" in data["insights"][0]["message"]
    assert data["published_ids"] == []


def test_insights_empty_history(client: TestClient):
    response = client.post("/v1/insights", json={"transactions": []})

    assert response.status_code == 200
    assert response.json() == {"insights": [], "published_ids": []}


def test_published_insights_reach_the_feed(client: TestClient, transaction_history):
    response = client.post("/v1/insights", json={"transactions": transaction_history, "publish": True})
    published_ids = response.json()["published_ids"]

    assert len(published_ids) == len(response.json()["insights"]) > 0

    feed = client.get("/v1/notifications").json()
    assert {n["id"] for n in feed["notifications"]} == set(published_ids)
    assert feed["unread_count"] == len(published_ids)
    assert all(n["expires_at"] is not None for n in feed["notifications"])


def test_notification_feed_flow(client: TestClient):
    """Test create, read, count and dismiss through the API"""
    response = client.post(
        "/v1/notifications/transaction",
        json={
            "transaction": {"id": "n1", "name": "Best Buy", "amount": 899.0, "type": "expense", "date": "2024-03-01"},
            "existing": [],
        },
    )
    assert response.status_code == 200
    created = response.json()["notifications"]
    assert [n["title"] for n in created] == ["Large Transaction", "Category Suggestion"]

    assert client.get("/v1/notifications/count").json() == {"unread_count": 2}

    first_id = created[0]["id"]
    assert client.post(f"/v1/notifications/{first_id}/read").status_code == 204
    unread = client.get("/v1/notifications", params={"unread_only": True}).json()
    assert [n["id"] for n in unread["notifications"]] == [created[1]["id"]]

    assert client.post("/v1/notifications/read-all").status_code == 204
    assert client.get("/v1/notifications/count").json() == {"unread_count": 0}

    assert client.delete(f"/v1/notifications/{first_id}").status_code == 204
    assert client.delete("/v1/notifications/unknown").status_code == 204
    assert len(client.get("/v1/notifications").json()["notifications"]) == 1


def test_transaction_notifications_require_valid_transaction(client: TestClient):
    response = client.post(
        "/v1/notifications/transaction",
        json={"transaction": {"name": "Refund", "amount": 20.0, "type": "transfer"}, "existing": []},
    )

    assert response.status_code == 200
    assert response.json()["notifications"] == []


def test_daily_summary_endpoint(client: TestClient):
    response = client.post(
        "/v1/notifications/daily-summary",
        json={
            "transactions": [
                {"name": "Lunch", "amount": 14.0, "type": "expense", "date": "2024-03-01T12:30:00"},
                {"name": "Coffee", "amount": 4.0, "type": "expense", "date": "2024-03-01T08:00:00"},
            ],
            "accounts": [{"name": "Checking", "balance": 25.0}],
            "day": "2024-03-01T00:00:00",
        },
    )

    assert response.status_code == 200
    titles = [n["title"] for n in response.json()["notifications"]]
    assert titles == ["Daily Spending Summary", "Low Account Balance"]
    assert "$18.00" in response.json()["notifications"][0]["message"]


def test_weekly_endpoint(client: TestClient):
    response = client.post(
        "/v1/notifications/weekly",
        json={
            "current_week": [{"name": "Shop", "amount": 300.0, "type": "expense"}],
            "previous_week": [{"name": "Shop", "amount": 200.0, "type": "expense"}],
        },
    )

    assert response.status_code == 200
    notifications = response.json()["notifications"]
    assert len(notifications) == 1
    assert notifications[0]["type"] == "warning"
    assert "50.0% higher" in notifications[0]["message"]


@patch("insight_engine.infrastructure.clients.oracle.CategorizationOracleClient.suggest_categories")
def test_suggest_accepts_camel_case_fields(mock_oracle: AsyncMock, client: TestClient):
    """Test UI-style camelCase keys reach the hosted service"""
    mock_oracle.return_value = []
    client.app.dependency_overrides[get_oracle_client] = lambda: CategorizationOracleClient(base_url="http://oracle.test")

    response = client.post(
        "/v1/categories/suggest",
        json={"name": "Netflix", "type": "expense", "existingCategories": ["Streaming", "Bills"]},
    )

    assert response.status_code == 200
    mock_oracle.assert_awaited_once_with("Netflix", "expense", ["Streaming", "Bills"])


def test_camel_case_learn_and_weekly_payloads(client: TestClient):
    response = client.post("/v1/categories/learn", json={"transactionName": "Corner Store", "category": "Groceries"})
    assert response.status_code == 204
    assert client.post("/v1/categories/categorize", json={"name": "corner store"}).json()["category"] == "Groceries"

    response = client.post(
        "/v1/notifications/weekly",
        json={
            "currentWeek": [{"name": "Shop", "amount": 50.0, "type": "expense"}],
            "previousWeek": [{"name": "Shop", "amount": 100.0, "type": "expense"}],
        },
    )
    assert response.json()["notifications"][0]["type"] == "success"
