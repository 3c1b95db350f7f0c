from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from pto_workflow.api.deps import get_service
from pto_workflow.api.main import app
from pto_workflow.models import EmployeeBalance
from pto_workflow.notifications import LogDispatcher
from pto_workflow.service import PTOWorkflowService
from pto_workflow.storage import DataStore

NOW = datetime(2026, 3, 2, 9, 0)


@pytest.fixture
def service():
    store = DataStore()
    store.save_employee(EmployeeBalance("e1", email="ann@example.com", remaining_hours=40, name="Ann Lee"))
    service = PTOWorkflowService(store, LogDispatcher(), "manager@example.com", clock=lambda: NOW)
    app.dependency_overrides[get_service] = lambda: service
    yield service
    app.dependency_overrides.clear()


def submission(days_out: int = 20) -> dict:
    start = NOW.date() + timedelta(days=days_out)
    return {
        "request_id": "r1",
        "employee_id": "e1",
        "employee_name": "Ann Lee",
        "absence_type": "Vacation",
        "start_date": start.isoformat(),
        "hours_requested": 16,
    }


def test_health_reports_store_counts(service):
    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "requests": 0, "employees": 1}


def test_submit_and_approve_through_triggers(service):
    with TestClient(app) as client:
        submitted = client.post("/requests", json=submission())
        approved = client.post("/requests/r1/status", json={"status": "Approved"})
        balance = client.get("/employees/e1/balance")

    assert submitted.status_code == 200
    assert submitted.json()["status"] == "Pending"
    assert submitted.json()["notifications_sent"] == 2
    assert approved.json()["status"] == "Approved"
    assert approved.json()["completed"] is True
    assert balance.json() == {"employee_id": "e1", "used_hours": 16, "remaining_hours": 24, "known": True}


def test_late_submission_reports_validation_failure(service):
    with TestClient(app) as client:
        response = client.post("/requests", json=submission(days_out=3))

    body = response.json()
    assert body["status"] == "Late Submission"
    assert [issue["kind"] for issue in body["issues"]] == ["validation_failure"]


def test_status_edit_for_unknown_request_does_not_fail_the_trigger(service):
    with TestClient(app) as client:
        response = client.post("/requests/nope/status", json={"status": "Denied"})

    assert response.status_code == 200
    assert response.json()["completed"] is False
    assert response.json()["issues"][0]["kind"] == "lookup_miss"


def test_get_and_list_requests(service):
    with TestClient(app) as client:
        client.post("/requests", json=submission())
        found = client.get("/requests/r1")
        missing = client.get("/requests/nope")
        pending = client.get("/requests", params={"status": "pending"})
        bad_filter = client.get("/requests", params={"status": "someday"})

    assert found.status_code == 200
    assert found.json()["end_date"] == found.json()["start_date"]
    assert found.json()["submitted_at"] == NOW.isoformat()
    assert missing.status_code == 404
    assert [r["request_id"] for r in pending.json()] == ["r1"]
    assert bad_filter.status_code == 422


def test_unknown_employee_balance_reads_as_zero(service):
    with TestClient(app) as client:
        response = client.get("/employees/ghost/balance")

    assert response.json() == {"employee_id": "ghost", "used_hours": 0, "remaining_hours": 0, "known": False}
