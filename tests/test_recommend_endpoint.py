# tests/test_recommend_endpoint.py

import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from app.db.repo import SubmissionRepository, get_repository, init_db


@pytest.fixture
def client():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    init_db(engine)

    from app.main import app
    app.dependency_overrides[get_repository] = lambda: SubmissionRepository(engine)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_recommendation_is_computed_and_returned(client):
    payload = {"age": 25, "annualIncome": 50000, "dependents": 0, "riskTolerance": "Medium"}
    r = client.post("/recommendation", json=payload, headers={"X-User-Id": "u42"})
    assert r.status_code == 201
    data = r.json()
    assert data["recommendation"] == "Term Life – $7,200,000 for 20 years"
    assert data["policyType"] == "TermLife"
    assert data["coverageAmount"] == 7_200_000
    assert data["termYears"] == 20
    assert data["explanation"].startswith("Based on your age of 25")


def test_submission_is_stored_for_owner(client):
    payload = {"age": 45, "income": 80000, "dependents": 2, "riskTolerance": "High"}
    assert client.post("/recommendation", json=payload, headers={"X-User-Id": "u7"}).status_code == 201

    rows = client.get("/recommendation", headers={"X-User-Id": "u7"}).json()
    assert len(rows) == 1
    row = rows[0]
    assert row["userId"] == "u7"
    assert row["annualIncome"] == 80000
    assert row["policyType"] == "WholeLife"
    assert row["coverageAmount"] == 13_440_000
    assert row["termYears"] == 10
    assert "createdAt" in row


def test_history_is_newest_first_and_scoped_to_owner(client):
    for age in (30, 31, 32):
        client.post(
            "/recommendation",
            json={"age": age, "annualIncome": 1000, "dependents": 0, "riskTolerance": "Low"},
            headers={"X-User-Id": "owner"},
        )
    client.post(
        "/recommendation",
        json={"age": 50, "annualIncome": 1000, "dependents": 0, "riskTolerance": "Low"},
        headers={"X-User-Id": "someone-else"},
    )

    history = client.get("/recommendation/history", headers={"X-User-Id": "owner"}).json()
    assert [h["age"] for h in history] == [32, 31, 30]

    everything = client.get("/recommendation/all").json()
    assert len(everything) == 4
    assert everything[0]["age"] == 50


def test_anonymous_submission_is_stored_without_owner(client):
    r = client.post(
        "/recommendation",
        json={"age": 60, "annualIncome": 0, "dependents": 0, "riskTolerance": "Medium"},
    )
    assert r.status_code == 201
    assert r.json()["coverageAmount"] == 0
    rows = client.get("/recommendation/all").json()
    assert rows[0]["userId"] is None


def test_owner_scoped_reads_require_identifier(client):
    assert client.get("/recommendation").status_code == 401
    assert client.get("/recommendation/history", headers={"X-User-Id": "  "}).status_code == 401


@pytest.mark.parametrize(
    "payload",
    [
        {"age": 17, "annualIncome": 50000, "dependents": 0, "riskTolerance": "Medium"},
        {"age": 30, "annualIncome": 50000, "dependents": 0, "riskTolerance": "medium"},
        {"age": 30, "annualIncome": 50000, "dependents": 0},
        {"age": 30, "annualIncome": 50000, "dependents": 0, "riskTolerance": "Low", "smoker": True},
    ],
)
def test_invalid_payload_is_rejected(client, payload):
    r = client.post("/recommendation", json=payload)
    assert r.status_code == 422
    assert client.get("/recommendation/all").json() == []


def test_storage_failure_maps_to_500(client, monkeypatch):
    def _boom(self, submission):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(SubmissionRepository, "create", _boom)
    r = client.post(
        "/recommendation",
        json={"age": 30, "annualIncome": 1000, "dependents": 0, "riskTolerance": "Low"},
    )
    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to store submission."


def test_income_at_the_cap_is_stored(client):
    r = client.post(
        "/recommendation",
        json={"age": 25, "annualIncome": 1_000_000_000_000, "dependents": 0, "riskTolerance": "Medium"},
    )
    assert r.status_code == 201
    assert r.json()["coverageAmount"] == 144_000_000_000_000
    assert client.get("/recommendation/all").json()[0]["coverageAmount"] == 144_000_000_000_000


@pytest.mark.parametrize("income", [1_000_000_000_001, 1e17])
def test_income_beyond_the_cap_is_a_validation_error(client, income):
    r = client.post(
        "/recommendation",
        json={"age": 30, "annualIncome": income, "dependents": 0, "riskTolerance": "Medium"},
    )
    assert r.status_code == 422
    assert client.get("/recommendation/all").json() == []
