"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def grocery_history():
    """Four 10.00 grocery runs at the same shop, early June 2025"""
    return [
        {
            "id": f"tx_{day}",
            "timestamp": f"2025-06-0{day}T18:00:00",
            "amount": 1000,
            "category_id": "groceries",
            "merchant": "Biedronka",
        }
        for day in range(1, 5)
    ]


@pytest.fixture
def june_budgets():
    return [
        {"category_id": "groceries", "monthly_limit": 100000, "period_start": "2025-06-01", "period_end": "2025-06-30"},
        {"category_id": "restaurants", "monthly_limit": None, "period_start": "2025-06-01", "period_end": "2025-06-30"},
    ]


def candidate(amount, **overrides):
    body = {
        "id": "candidate",
        "timestamp": "2025-06-10T12:00:00",
        "amount": amount,
        "category_id": "groceries",
        "merchant": "BIEDRONKA sp. z o.o.",
    }
    body.update(overrides)
    return body


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["service"] == "spendcast"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "spendcast_anomaly_total" in response.text
    assert "spendcast_weather_total" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/health")
    assert response.headers["X-Request-ID"]


def test_request_id_is_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


def test_anomaly_endpoint_high(client: TestClient, grocery_history, june_budgets):
    """Test POST /v1/anomaly against constant merchant history"""
    response = client.post(
        "/v1/anomaly",
        json={"candidate": candidate(5000), "history": grocery_history, "budgets": june_budgets},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["transaction_id"] == "candidate"
    assert data["severity"] == "high"
    assert data["baseline"] == "merchant"
    assert data["budget_escalated"] is False
    assert data["z_score"] == 4.0
    assert data["comparison"] == {"current": 5000, "average": 1000.0, "multiplier": 5.0}
    assert data["flags"] == []


def test_anomaly_endpoint_accepts_timezone_aware_candidate(client: TestClient, grocery_history):
    """Naive history and a UTC-stamped candidate compare on one clock"""
    response = client.post(
        "/v1/anomaly",
        json={"candidate": candidate(5000, timestamp="2025-06-10T12:00:00Z"), "history": grocery_history},
    )

    assert response.status_code == 200
    assert response.json()["severity"] == "high"
    assert response.json()["baseline"] == "merchant"


def test_anomaly_endpoint_without_history(client: TestClient):
    """Test POST /v1/anomaly with no history"""
    response = client.post("/v1/anomaly", json={"candidate": candidate(5000)})

    assert response.status_code == 200
    data = response.json()
    assert data["severity"] == "low"
    assert data["baseline"] == "none"
    assert data["comparison"] is None


def test_anomaly_endpoint_validation_error(client: TestClient):
    """Negative amounts never reach the detector"""
    response = client.post("/v1/anomaly", json={"candidate": candidate(-5)})
    assert response.status_code == 422

    response = client.post("/v1/anomaly", json={"candidate": candidate(100, category_id="gambling")})
    assert response.status_code == 422


def test_anomaly_endpoint_blank_merchant(client: TestClient):
    """Merchant that normalizes to nothing is a domain validation error"""
    response = client.post("/v1/anomaly", json={"candidate": candidate(100, merchant="...")})

    assert response.status_code == 422
    assert "merchant" in response.json()["detail"]


def test_forecast_endpoint(client: TestClient, june_budgets):
    """Test POST /v1/forecast with the groceries budget running hot"""
    transactions = [
        {"id": "a", "timestamp": "2025-06-03T10:00:00", "amount": 50000, "category_id": "groceries", "merchant": "Lidl"},
        {"id": "b", "timestamp": "2025-06-09T10:00:00", "amount": 30000, "category_id": "groceries", "merchant": "Lidl"},
    ]

    response = client.post(
        "/v1/forecast",
        json={"transactions": transactions, "budgets": june_budgets, "as_of": "2025-06-10"},
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["predictions"]) == 1
    prediction = data["predictions"][0]
    assert prediction["category_id"] == "groceries"
    assert prediction["predicted_total"] == 240000
    assert prediction["trend"] == "up"
    assert prediction["days_until_overspend"] == 2
    assert data["projection"]["limit"] == 100000
    assert data["projection"]["days_remaining"] == 20


def test_forecast_endpoint_overlapping_budgets(client: TestClient, june_budgets):
    budgets = june_budgets + [
        {"category_id": "groceries", "monthly_limit": 5000, "period_start": "2025-06-05", "period_end": "2025-06-30"}
    ]

    response = client.post("/v1/forecast", json={"budgets": budgets, "as_of": "2025-06-10"})

    assert response.status_code == 422


def test_weather_classify_endpoint(client: TestClient):
    """Test POST /v1/weather/classify with exhausted safe-to-spend"""
    response = client.post(
        "/v1/weather/classify",
        json={"expected_spending": 100, "safe_to_spend": 0, "day_of_week": 2},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["condition"] == "stormy"
    assert data["risk_level"] == "high"
    assert data["title"] == "Stormy"


def test_weather_classify_truncates_upcoming(client: TestClient):
    upcoming = [{"name": f"Bill {i}", "amount": 100, "kind": "bill"} for i in range(5)]

    response = client.post(
        "/v1/weather/classify",
        json={"expected_spending": 0, "safe_to_spend": 10000, "upcoming_expenses": upcoming, "day_of_week": 0},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["condition"] == "rainy"
    assert [u["name"] for u in data["upcoming_expenses"]] == ["Bill 0", "Bill 1", "Bill 2"]


def test_weather_classify_rejects_bad_day(client: TestClient):
    response = client.post(
        "/v1/weather/classify",
        json={"expected_spending": 0, "safe_to_spend": 0, "day_of_week": 7},
    )
    assert response.status_code == 422


def test_weather_endpoint(client: TestClient, grocery_history, june_budgets):
    """Test POST /v1/weather from raw history"""
    response = client.post(
        "/v1/weather",
        json={
            "transactions": grocery_history,
            "budgets": june_budgets,
            "upcoming_expenses": [{"name": "Netflix", "amount": 4300, "kind": "subscription", "due_date": "2025-06-11"}],
            "as_of": "2025-06-10",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["condition"] in {"sunny", "partly_cloudy", "cloudy", "rainy", "stormy"}
    assert data["condition"] != "sunny"
    assert data["upcoming_expenses"][0]["kind"] == "subscription"
    assert data["safe_to_spend"] == round((100000 - 4000) / 21)


def test_insights_endpoint(client: TestClient, grocery_history, june_budgets):
    """Test POST /v1/insights end to end"""
    response = client.post(
        "/v1/insights",
        json={
            "transactions": grocery_history,
            "budgets": june_budgets,
            "candidates": [candidate(5000)],
            "as_of": "2025-06-10",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["anomalies"][0]["severity"] == "high"
    assert data["insights"][0]["kind"] == "anomaly"
    assert data["insights"][0]["transaction_id"] == "candidate"
    assert data["projection"]["current_spent"] == 4000
    assert "weather" in data


def test_insights_endpoint_zero_items(client: TestClient, grocery_history):
    response = client.post(
        "/v1/insights",
        json={"transactions": grocery_history, "candidates": [candidate(5000)], "as_of": "2025-06-10", "max_items": 0},
    )

    assert response.status_code == 200
    assert response.json()["insights"] == []


def test_insights_endpoint_missing_as_of(client: TestClient):
    response = client.post("/v1/insights", json={"transactions": []})
    assert response.status_code == 422
