"""API tests using FastAPI's TestClient with the unit of work bound to SQLite."""
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from srag_dp.domain.domain import MetricSnapshot
from srag_dp.entrypoints import srag_api
from srag_dp.entrypoints.srag_api import app, get_uow


@pytest.fixture
def client(uow):
    app.dependency_overrides[get_uow] = lambda: uow
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["timestamp"]


def test_metrics_live_on_empty_store(client):
    response = client.get("/api/metrics")

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "live"
    assert body["caseRate"] == {"value": 0.0}
    assert body["mortalityRate"] == {"value": 0.0}
    assert body["icuRate"] == {"value": 0.0}
    assert body["vaccinationRate"] == {"value": 0.0}


def test_metrics_from_snapshots(client, uow):
    with uow:
        uow.snapshots.add(MetricSnapshot("mortality_rate", 4.5, "weekly", date(2024, 5, 20), region="RJ"))
        uow.commit()

    response = client.get("/api/metrics", params={"period": "weekly", "estado": "RJ"})

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "snapshot"
    assert body["mortalityRate"] == {"value": 4.5, "period": "weekly", "referenceDate": "2024-05-20"}
    assert body["caseRate"] == {"value": 0.0}


def test_metrics_rejects_unknown_period(client):
    assert client.get("/api/metrics", params={"period": "hourly"}).status_code == 422


def test_cases_series(client, add_cases, make_case):
    today = datetime.now(timezone.utc).date()
    add_cases(
        make_case(today - timedelta(days=3), "SP"),
        make_case(today - timedelta(days=2), "SP"),
        make_case(today - timedelta(days=2), "RJ"),
        make_case(today - timedelta(days=500), "SP"),
    )

    response = client.get("/api/cases", params={"groupBy": "daily", "estado": "SP"})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [bucket["count"] for bucket in body["data"]] == [1, 1]
    assert body["data"][0]["date"] == (today - timedelta(days=3)).isoformat()


def test_cases_with_explicit_range(client, add_cases, make_case):
    add_cases(
        make_case(date(2023, 1, 15)),
        make_case(date(2023, 6, 15)),
        make_case(date(2024, 1, 15)),
    )

    response = client.get(
        "/api/cases",
        params={"groupBy": "yearly", "startDate": "2023-01-01", "endDate": "2023-12-31"},
    )

    assert response.json() == {"data": [{"date": "2023", "count": 2}], "total": 2}


def test_cases_rejects_inverted_range(client):
    response = client.get("/api/cases", params={"startDate": "2024-05-01", "endDate": "2024-04-01"})

    assert response.status_code == 400


def test_cases_rejects_range_with_one_end(client):
    assert client.get("/api/cases", params={"endDate": "2024-04-01"}).status_code == 400
    assert client.get("/api/cases", params={"startDate": "2024-04-01"}).status_code == 400


def test_cases_rejects_unknown_grouping(client):
    assert client.get("/api/cases", params={"groupBy": "weekly"}).status_code == 422


def test_regions(client, add_cases, make_case):
    add_cases(
        make_case(date(2024, 1, 1), "SP", "A"),
        make_case(date(2024, 1, 2), "SP", "B"),
        make_case(date(2024, 1, 3), "RJ", "A"),
    )

    response = client.get("/api/regions")

    assert response.status_code == 200
    assert response.json() == [
        {"estado": "RJ", "municipios": ["A"]},
        {"estado": "SP", "municipios": ["A", "B"]},
    ]


def test_runner_binds_configured_address(monkeypatch):
    calls = []
    monkeypatch.setenv("API_HOST", "127.0.0.1")
    monkeypatch.setenv("API_PORT", "8081")
    monkeypatch.setenv("LOG_LEVEL", "info")
    monkeypatch.setattr(srag_api.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    srag_api.main()

    assert calls == [(app, {"log_level": "info", "host": "127.0.0.1", "port": 8081})]
