from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from clinic_console.services.exceptions import (
    ConflictError,
    DownstreamServiceError,
    NotFoundError,
    TransportError,
    UnauthorizedError,
)
from clinic_console.session import SessionContext

logger = logging.getLogger(__name__)

_MESSAGE_KEYS = ("message", "detail", "title", "error")


class ServiceClient:
    """Async HTTP client for one of the clinic's remote services.

    Every request carries the bearer token held by ``session``. A 401 answer
    invalidates the session before the error is raised to the caller.
    """

    def __init__(
        self,
        base_url: str | None,
        session: SessionContext,
        *,
        service_name: str = "practice-management service",
        timeout: float = 10.0,
        use_mock_data: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = str(base_url).rstrip("/") if base_url else None
        self._session = session
        self._service_name = service_name
        self._timeout = timeout
        self._transport = transport
        self.use_mock_data = use_mock_data or not self._base_url
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def session(self) -> SessionContext:
        return self._session

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self.use_mock_data:
            raise RuntimeError("HTTP client requested while running in mock mode")
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, payload: Dict[str, Any] | None = None) -> Any:
        return await self._request("POST", path, json=payload)

    async def put(self, path: str, payload: Dict[str, Any] | None = None) -> Any:
        return await self._request("PUT", path, json=payload)

    async def delete(self, path: str) -> Any:
        return await self._request("DELETE", path)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> Any:
        if self.use_mock_data:
            raise RuntimeError("Real HTTP call requested while mock mode is enabled")
        client = await self._ensure_client()
        try:
            response = await client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._session.authorization_header(),
            )
        except httpx.RequestError as exc:
            logger.exception("Unable to reach %s: %s", self._service_name, exc)
            raise TransportError(f"Unable to reach {self._service_name}", cause=exc) from exc

        if response.status_code == 401:
            self._session.invalidate()
            raise UnauthorizedError()
        if response.is_error:
            raise self._error_for(response)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.exception("%s returned an unparseable body", self._service_name)
            raise TransportError(
                f"Unparseable response from {self._service_name}", cause=exc
            ) from exc

    def _error_for(self, response: httpx.Response) -> DownstreamServiceError:
        status_code = response.status_code
        body = _safe_json(response)
        message = _extract_message(body) or (
            f"{self._service_name.capitalize()} returned an error response ({status_code})"
        )
        field_errors = _extract_field_errors(body)
        logger.warning(
            "%s returned error %s for %s %s: %s",
            self._service_name,
            status_code,
            response.request.method,
            response.request.url.path,
            message,
        )
        if status_code == 404:
            return NotFoundError(message)
        if status_code == 409:
            return ConflictError(message, field_errors=field_errors)
        return DownstreamServiceError(message, status_code=status_code, field_errors=field_errors)

    async def simulate_latency(self) -> None:
        """Allow services to await for latency even when mocking responses."""

        await asyncio.sleep(0)


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _extract_message(body: Any) -> str | None:
    if isinstance(body, str) and body.strip():
        return body.strip()
    if not isinstance(body, dict):
        return None
    for key in _MESSAGE_KEYS:
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _extract_field_errors(body: Any) -> Dict[str, str]:
    if not isinstance(body, dict):
        return {}
    errors = body.get("errors")
    if not isinstance(errors, dict):
        return {}
    field_errors: Dict[str, str] = {}
    for field, messages in errors.items():
        if isinstance(messages, list) and messages:
            field_errors[_camel_field(field)] = str(messages[0])
        elif isinstance(messages, str):
            field_errors[_camel_field(field)] = messages
    return field_errors


def _camel_field(name: str) -> str:
    # ASP.NET style "AppointmentDateTime" becomes "appointmentDateTime"
    return name[:1].lower() + name[1:] if name else name
