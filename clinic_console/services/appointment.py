from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import TypeAdapter, ValidationError

from clinic_console.clients.http import ServiceClient
from clinic_console.schemas.appointment import (
    Appointment,
    AppointmentFilters,
    AppointmentStatus,
    AppointmentStatusRequest,
    CancelAppointmentRequest,
    CompleteAppointmentRequest,
    CreateAppointmentRequest,
    UpdateAppointmentRequest,
)
from clinic_console.services.exceptions import TransportError
from clinic_console.services.mock_store import AppointmentRepository, get_mock_store

logger = logging.getLogger(__name__)

_APPOINTMENT_LIST = TypeAdapter(List[Appointment])


class AppointmentGateway:
    """Stateless translator between appointment operations and the remote API."""

    def __init__(
        self,
        client: ServiceClient,
        *,
        repository: AppointmentRepository | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().appointments

    async def _mock(self) -> AppointmentRepository:
        await self._client.simulate_latency()
        if not self._repository:
            raise RuntimeError("Mock appointment repository not configured")
        return self._repository

    async def list(self, filters: AppointmentFilters | None = None) -> List[Appointment]:
        filters = filters or AppointmentFilters()
        params = filters.to_query_params()
        logger.info("Listing appointments with filters %s", params)
        if self._client.use_mock_data:
            return await (await self._mock()).list(filters)

        data = await self._client.get("/appointments", params=params or None)
        return _decode_list(data)

    async def list_by_customer(self, customer_id: int) -> List[Appointment]:
        logger.info("Listing appointments for customer %s", customer_id)
        if self._client.use_mock_data:
            return await (await self._mock()).list(AppointmentFilters(customer_id=customer_id))

        data = await self._client.get(f"/appointments/customer/{customer_id}")
        return _decode_list(data)

    async def list_by_dentist(self, dentist_id: int) -> List[Appointment]:
        logger.info("Listing appointments for dentist %s", dentist_id)
        if self._client.use_mock_data:
            return await (await self._mock()).list(AppointmentFilters(dentist_id=dentist_id))

        data = await self._client.get(f"/appointments/dentist/{dentist_id}")
        return _decode_list(data)

    async def get_by_id(self, appointment_id: int) -> Appointment:
        logger.info("Fetching appointment %s", appointment_id)
        if self._client.use_mock_data:
            return await (await self._mock()).get(appointment_id)

        data = await self._client.get(f"/appointments/{appointment_id}")
        return _decode(data)

    async def create(self, request: CreateAppointmentRequest) -> Appointment:
        logger.info(
            "Creating appointment for customer %s with dentist %s at %s",
            request.customer_id,
            request.dentist_id,
            request.appointment_date_time,
        )
        if self._client.use_mock_data:
            return await (await self._mock()).create(request)

        data = await self._client.post("/appointments", request.to_payload())
        return _decode(data)

    async def update(self, request: UpdateAppointmentRequest) -> Appointment:
        logger.info("Updating appointment %s", request.id)
        if self._client.use_mock_data:
            return await (await self._mock()).update(request)

        data = await self._client.put(f"/appointments/{request.id}", request.to_payload())
        return _decode(data)

    async def update_status(self, appointment_id: int, status: AppointmentStatus) -> Appointment:
        status = AppointmentStatus(status)
        logger.info("Setting appointment %s status to %s", appointment_id, status.value)
        if self._client.use_mock_data:
            return await (await self._mock()).set_status(appointment_id, status)

        payload = AppointmentStatusRequest(status=status).to_payload()
        data = await self._client.put(f"/appointments/{appointment_id}/status", payload)
        return _decode(data)

    async def cancel(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        logger.info("Cancelling appointment %s", appointment_id)
        if self._client.use_mock_data:
            return await (await self._mock()).cancel(appointment_id, reason)

        payload = CancelAppointmentRequest(reason=reason).to_payload()
        data = await self._client.put(f"/appointments/{appointment_id}/cancel", payload)
        return _decode(data)

    async def complete(self, appointment_id: int, notes: Optional[str] = None) -> Appointment:
        logger.info("Completing appointment %s", appointment_id)
        if self._client.use_mock_data:
            return await (await self._mock()).complete(appointment_id, notes)

        payload = CompleteAppointmentRequest(notes=notes).to_payload()
        data = await self._client.put(f"/appointments/{appointment_id}/complete", payload)
        return _decode(data)

    async def delete(self, appointment_id: int) -> None:
        logger.info("Deleting appointment %s", appointment_id)
        if self._client.use_mock_data:
            await (await self._mock()).delete(appointment_id)
            return

        await self._client.delete(f"/appointments/{appointment_id}")


def _decode(data: Any) -> Appointment:
    try:
        return Appointment.model_validate(data)
    except ValidationError as exc:
        logger.exception("Appointment payload could not be decoded")
        raise TransportError("Unparseable appointment response", cause=exc) from exc


def _decode_list(data: Any) -> List[Appointment]:
    if isinstance(data, dict):
        # Some deployments wrap the list in a paging envelope
        data = data.get("items", data.get("data", []))
    try:
        return _APPOINTMENT_LIST.validate_python(data or [])
    except ValidationError as exc:
        logger.exception("Appointment list payload could not be decoded")
        raise TransportError("Unparseable appointment list response", cause=exc) from exc
