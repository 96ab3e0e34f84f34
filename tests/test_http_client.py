import asyncio
import json

import httpx
import pytest

from clinic_console.clients.http import ServiceClient
from clinic_console.services.exceptions import (
    ConflictError,
    DownstreamServiceError,
    NotFoundError,
    TransportError,
    UnauthorizedError,
)
from clinic_console.session import SessionContext

BASE_URL = "http://manager.test"


def _client(handler, session: SessionContext | None = None) -> ServiceClient:
    return ServiceClient(
        BASE_URL,
        session or SessionContext(token="token-123"),
        transport=httpx.MockTransport(handler),
    )


def _run(client: ServiceClient, call):
    async def scenario():
        try:
            return await call(client)
        finally:
            await client.close()

    return asyncio.run(scenario())


def test_requests_carry_bearer_token_and_query() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[])

    result = _run(_client(handler), lambda c: c.get("/appointments", params={"status": "Scheduled"}))

    assert result == []
    assert seen == {
        "auth": "Bearer token-123",
        "path": "/appointments",
        "params": {"status": "Scheduled"},
    }


def test_token_is_read_from_session_on_each_request() -> None:
    session = SessionContext()
    headers = []

    def handler(request: httpx.Request) -> httpx.Response:
        headers.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={})

    async def calls(client: ServiceClient):
        await client.get("/customers")
        session.authenticate("fresh-token")
        await client.get("/customers")

    _run(_client(handler, session), calls)

    assert headers == [None, "Bearer fresh-token"]


def test_json_body_is_sent() -> None:
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": 7})

    result = _run(_client(handler), lambda c: c.post("/appointments", {"procedureType": "Cleaning"}))

    assert result == {"id": 7}
    assert bodies == [{"procedureType": "Cleaning"}]


def test_unauthorized_invalidates_session() -> None:
    session = SessionContext(token="expired")
    redirects = []
    session.on_invalidate(lambda: redirects.append("login"))

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401)

    with pytest.raises(UnauthorizedError):
        _run(_client(handler, session), lambda c: c.get("/appointments"))

    assert session.token is None
    assert session.is_authenticated is False
    assert redirects == ["login"]


def test_not_found_uses_server_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Appointment not found"})

    with pytest.raises(NotFoundError) as excinfo:
        _run(_client(handler), lambda c: c.get("/appointments/999"))

    assert excinfo.value.message == "Appointment not found"
    assert excinfo.value.status_code == 404


def test_conflict_carries_field_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            409,
            json={
                "title": "Scheduling conflict",
                "errors": {"AppointmentDateTime": ["Dentist is already booked"]},
            },
        )

    with pytest.raises(ConflictError) as excinfo:
        _run(_client(handler), lambda c: c.post("/appointments", {}))

    assert excinfo.value.message == "Scheduling conflict"
    assert excinfo.value.field_errors == {"appointmentDateTime": "Dentist is already booked"}


def test_server_error_without_body_gets_generic_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    with pytest.raises(DownstreamServiceError) as excinfo:
        _run(_client(handler), lambda c: c.get("/appointments"))

    assert excinfo.value.status_code == 500
    assert "500" in excinfo.value.message
    assert not isinstance(excinfo.value, (NotFoundError, ConflictError))


def test_plain_text_error_body_becomes_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="Invalid dentist")

    with pytest.raises(DownstreamServiceError) as excinfo:
        _run(_client(handler), lambda c: c.put("/appointments/1", {}))

    assert excinfo.value.message == "Invalid dentist"
    assert excinfo.value.status_code == 400


def test_network_failure_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as excinfo:
        _run(_client(handler), lambda c: c.get("/appointments"))

    assert "Unable to reach" in excinfo.value.message


def test_empty_success_body_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    assert _run(_client(handler), lambda c: c.delete("/appointments/1")) is None


def test_unparseable_success_body_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(TransportError):
        _run(_client(handler), lambda c: c.get("/appointments"))


def test_missing_base_url_falls_back_to_mock_mode() -> None:
    client = ServiceClient(None, SessionContext())

    assert client.use_mock_data is True
