from datetime import datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient

from clinic_console.dependencies.services import (
    get_appointment_gateway,
    get_customer_gateway,
    get_session,
)
from clinic_console.main import app
from clinic_console.services.exceptions import UnauthorizedError
from clinic_console.services.mock_store import reset_mock_store


@pytest.fixture(autouse=True)
def _reset_store() -> None:
    reset_mock_store()
    get_session().clear()
    yield
    reset_mock_store()
    get_session().clear()
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _next_weekday_at(hour: int) -> str:
    day = datetime.now().date() + timedelta(days=1)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return datetime.combine(day, time(hour, 0)).isoformat()


def _next_saturday_at(hour: int) -> str:
    day = datetime.now().date() + timedelta(days=1)
    while day.weekday() != 5:
        day += timedelta(days=1)
    return datetime.combine(day, time(hour, 0)).isoformat()


def test_health_reports_mock_mode(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "mockData": True, "authenticated": False}


def test_list_appointments_returns_collection_state(client: TestClient) -> None:
    response = client.get("/appointments")

    assert response.status_code == 200
    body = response.json()
    assert body["loading"] is False
    assert body["error"] is None
    assert [item["id"] for item in body["appointments"]] == [1, 2]
    assert body["appointments"][0]["procedureType"] == "Cleaning"


def test_list_appointments_filters_by_status(client: TestClient) -> None:
    response = client.get("/appointments", params={"status": "Completed"})

    assert response.status_code == 200
    assert response.json()["appointments"] == []


def test_create_appointment_prepends_new_record(client: TestClient) -> None:
    payload = {
        "customerId": 3,
        "dentistId": 2,
        "appointmentDateTime": _next_weekday_at(11),
        "procedureType": "Whitening",
    }

    response = client.post("/appointments", json=payload)

    assert response.status_code == 201
    appointments = response.json()["appointments"]
    assert len(appointments) == 3
    assert appointments[0]["procedureType"] == "Whitening"
    assert appointments[0]["status"] == "Scheduled"
    assert appointments[0]["customerName"] == "Ana Costa"


def test_weekend_appointment_is_rejected_with_field_error(client: TestClient) -> None:
    payload = {
        "customerId": 1,
        "dentistId": 1,
        "appointmentDateTime": _next_saturday_at(10),
        "procedureType": "Cleaning",
    }

    response = client.post("/appointments", json=payload)

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["fieldErrors"] == {
        "appointmentDateTime": "Date and time cannot be scheduled on weekends"
    }


def test_completed_appointment_cannot_be_cancelled(client: TestClient) -> None:
    completed = client.put("/appointments/1/complete", json={"notes": "All good"})
    assert completed.status_code == 200
    first = completed.json()["appointments"][0]
    assert first["status"] == "Completed"
    assert first["notes"] == "All good"

    cancelled = client.put("/appointments/1/cancel", json={"reason": "Too late"})
    assert cancelled.status_code == 409
    assert "Completed" in cancelled.json()["detail"]["message"]


def test_cancellation_request_flow(client: TestClient) -> None:
    requested = client.put("/appointments/2/request-cancellation")
    assert requested.status_code == 200

    approved = client.put("/appointments/2/status", json={"status": "Cancelled"})
    assert approved.status_code == 200
    statuses = {item["id"]: item["status"] for item in approved.json()["appointments"]}
    assert statuses == {1: "Scheduled", 2: "Cancelled"}


def test_cancel_without_body(client: TestClient) -> None:
    response = client.put("/appointments/1/cancel")

    assert response.status_code == 200
    assert response.json()["appointments"][0]["status"] == "Cancelled"


def test_delete_unknown_appointment_is_not_found(client: TestClient) -> None:
    response = client.delete("/appointments/999")

    assert response.status_code == 404
    assert "not found" in response.json()["detail"]["message"]


def test_delete_appointment_removes_it(client: TestClient) -> None:
    response = client.delete("/appointments/1")

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["appointments"]] == [2]
    assert client.get("/appointments/1").status_code == 404


def test_customer_directory_paging_and_conflict(client: TestClient) -> None:
    page = client.get("/customers", params={"page": 1, "pageSize": 2})
    assert page.status_code == 200
    assert page.json()["total"] == 3
    assert len(page.json()["items"]) == 2

    duplicate = client.post(
        "/customers",
        json={"name": "Maria", "email": "maria.silva@email.com", "phone": "1"},
    )
    assert duplicate.status_code == 409
    assert "email" in duplicate.json()["detail"]["fieldErrors"]


def test_dentist_can_be_deactivated(client: TestClient) -> None:
    response = client.put("/dentists/1/active", params={"active": "false"})

    assert response.status_code == 200
    assert response.json()["isActive"] is False

    summary = client.get("/dashboard").json()
    assert summary["active_dentists"] == 2
    assert summary["customers_registered"] == 3


def test_login_and_logout_update_session(client: TestClient) -> None:
    login = client.post("/session/login", json={"email": "admin@clinic.test", "password": "pw"})
    assert login.status_code == 200
    assert login.json()["token"].startswith("mock-")

    status = client.get("/session").json()
    assert status["authenticated"] is True
    assert status["user"]["email"] == "admin@clinic.test"

    client.post("/session/logout")
    assert client.get("/session").json() == {"authenticated": False, "user": None}


def test_empty_credentials_are_rejected(client: TestClient) -> None:
    response = client.post("/session/login", json={"email": "", "password": ""})

    assert response.status_code == 422


def test_expired_session_points_to_login(client: TestClient) -> None:
    class ExpiredGateway:
        async def list(self, filters=None):
            raise UnauthorizedError()

    app.dependency_overrides[get_appointment_gateway] = lambda: ExpiredGateway()

    response = client.get("/appointments")

    assert response.status_code == 401
    assert response.json()["detail"]["login"] == "/session/login"


class RejectingGateway:
    """Every remote call fails as if the token had expired."""

    async def get_by_id(self, record_id):
        raise UnauthorizedError()

    async def list(self, *args, **kwargs):
        raise UnauthorizedError()


@pytest.mark.parametrize(
    "dependency, path",
    [
        (get_customer_gateway, "/customers/1"),
        (get_customer_gateway, "/customers"),
        (get_appointment_gateway, "/appointments/1"),
    ],
)
def test_every_expired_session_response_has_login_pointer(client: TestClient, dependency, path) -> None:
    app.dependency_overrides[dependency] = lambda: RejectingGateway()

    response = client.get(path)

    assert response.status_code == 401
    assert response.json() == {
        "detail": {"message": "Session expired, please log in again", "login": "/session/login"}
    }


def test_appointments_per_customer_and_dentist(client: TestClient) -> None:
    by_customer = client.get("/customers/2/appointments")
    by_dentist = client.get("/dentists/1/appointments")

    assert by_customer.status_code == 200
    assert [item["id"] for item in by_customer.json()] == [2]
    assert [item["id"] for item in by_dentist.json()] == [1]
    assert client.get("/customers/3/appointments").json() == []
