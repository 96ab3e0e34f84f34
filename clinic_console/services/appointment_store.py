"""Client-side cache of the appointment list.

One store is created per consuming view and discarded with it. Every method
awaits a single gateway call and folds the server's answer into the local
collection before returning; failures land in ``error`` and leave the
collection untouched.

Overlapping calls are not serialized. Each mutation of an existing
appointment takes a ticket, and a response is only applied when no newer
ticket for the same appointment has already been applied, so the local copy
always reflects the most recently issued change. A fetch takes a ticket too
and keeps any local record changed after it was issued. Deleted ids are never
re-added.

A status change that is still in flight counts as the appointment's status
for any later transition, so two overlapping changes cannot both leave the
same state.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple, TypeVar

from clinic_console.schemas.appointment import (
    Appointment,
    AppointmentCollectionState,
    AppointmentFilters,
    AppointmentStatus,
    CreateAppointmentRequest,
    UpdateAppointmentRequest,
)
from clinic_console.services.appointment import AppointmentGateway
from clinic_console.services.exceptions import (
    AppointmentValidationError,
    ServiceError,
    TransportError,
    UnauthorizedError,
)
from clinic_console.services.scheduling import (
    CLOSING_HOUR,
    OPENING_HOUR,
    validate_appointment_form,
)
from clinic_console.services.status import ensure_transition

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AppointmentStore:
    def __init__(
        self,
        gateway: AppointmentGateway,
        *,
        operation_timeout: float = 30.0,
        opening_hour: int = OPENING_HOUR,
        closing_hour: int = CLOSING_HOUR,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._gateway = gateway
        self._operation_timeout = operation_timeout
        self._opening_hour = opening_hour
        self._closing_hour = closing_hour
        self._clock = clock

        self._appointments: List[Appointment] = []
        self._in_flight = 0
        self._tasks: Set[asyncio.Future] = set()
        self._tickets = itertools.count(1)
        self._applied: Dict[int, int] = {}
        self._deleted: Set[int] = set()
        self._pending: Dict[int, Tuple[int, AppointmentStatus]] = {}

        self.error: Optional[str] = None
        self.field_errors: Dict[str, str] = {}
        self.failure: Optional[ServiceError] = None

    async def __aenter__(self) -> "AppointmentStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def appointments(self) -> List[Appointment]:
        return list(self._appointments)

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def state(self) -> AppointmentCollectionState:
        return AppointmentCollectionState(
            appointments=self.appointments,
            loading=self.loading,
            error=self.error,
            field_errors=dict(self.field_errors),
        )

    def find(self, appointment_id: int) -> Optional[Appointment]:
        for appointment in self._appointments:
            if appointment.id == appointment_id:
                return appointment
        return None

    def clear_error(self) -> None:
        self.error = None
        self.field_errors = {}
        self.failure = None

    async def close(self) -> None:
        """Cancel every call still waiting on the remote service."""

        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()

    # -- reads -----------------------------------------------------------

    async def fetch(self, filters: AppointmentFilters | None = None) -> List[Appointment]:
        ticket = self._next_ticket()
        self._begin()
        try:
            records = await self._call(self._gateway.list(filters))
        except UnauthorizedError:
            raise
        except ServiceError as exc:
            self._fail(exc, "Error loading appointments")
            return self.appointments
        finally:
            self._end()

        self._appointments = self._merge(records, ticket)
        return self.appointments

    # -- writes ----------------------------------------------------------

    def validate(self, request: CreateAppointmentRequest) -> Dict[str, str]:
        return validate_appointment_form(
            customer_id=request.customer_id,
            dentist_id=request.dentist_id,
            appointment_date_time=request.appointment_date_time,
            procedure_type=request.procedure_type,
            now=self._clock(),
            opening_hour=self._opening_hour,
            closing_hour=self._closing_hour,
        )

    async def create(self, request: CreateAppointmentRequest) -> Optional[Appointment]:
        if not self._passes_validation(request):
            return None

        self._begin()
        try:
            created = await self._call(self._gateway.create(request))
        except UnauthorizedError:
            raise
        except ServiceError as exc:
            self._fail(exc, "Error creating appointment")
            return None
        finally:
            self._end()

        self._applied[created.id] = self._next_ticket()
        if self.find(created.id) is not None:
            self._replace(created)
        else:
            self._appointments.insert(0, created)
        return created

    async def update(self, request: UpdateAppointmentRequest) -> Optional[Appointment]:
        if not self._passes_validation(request):
            return None

        ticket = self._next_ticket()
        self._begin()
        try:
            updated = await self._call(self._gateway.update(request))
        except UnauthorizedError:
            raise
        except ServiceError as exc:
            self._fail(exc, "Error updating appointment")
            return None
        finally:
            self._end()

        self._apply(updated, ticket)
        return updated

    async def update_status(self, appointment_id: int, status: AppointmentStatus) -> bool:
        status = AppointmentStatus(status)
        return await self._transition(
            appointment_id,
            status,
            lambda: self._gateway.update_status(appointment_id, status),
            "Error updating appointment status",
        )

    async def cancel(self, appointment_id: int, reason: Optional[str] = None) -> bool:
        return await self._transition(
            appointment_id,
            AppointmentStatus.CANCELLED,
            lambda: self._gateway.cancel(appointment_id, reason),
            "Error cancelling appointment",
        )

    async def complete(self, appointment_id: int, notes: Optional[str] = None) -> bool:
        return await self._transition(
            appointment_id,
            AppointmentStatus.COMPLETED,
            lambda: self._gateway.complete(appointment_id, notes),
            "Error completing appointment",
        )

    async def request_cancellation(self, appointment_id: int) -> bool:
        return await self.update_status(appointment_id, AppointmentStatus.CANCELLATION_REQUESTED)

    async def delete(self, appointment_id: int) -> bool:
        ticket = self._next_ticket()
        self._begin()
        try:
            await self._call(self._gateway.delete(appointment_id))
        except UnauthorizedError:
            raise
        except ServiceError as exc:
            self._fail(exc, "Error deleting appointment")
            return False
        finally:
            self._end()

        self._deleted.add(appointment_id)
        self._applied[appointment_id] = ticket
        self._appointments = [item for item in self._appointments if item.id != appointment_id]
        return True

    # -- internals -------------------------------------------------------

    async def _transition(
        self,
        appointment_id: int,
        requested: AppointmentStatus,
        operation: Callable[[], Awaitable[Appointment]],
        failure_message: str,
    ) -> bool:
        ticket = self._next_ticket()
        self._begin()
        try:
            current = await self._current_status(appointment_id)
            ensure_transition(current, requested)
            self._pending[appointment_id] = (ticket, requested)
            try:
                updated = await self._call(operation())
            finally:
                if self._pending.get(appointment_id, (None, None))[0] == ticket:
                    del self._pending[appointment_id]
        except UnauthorizedError:
            raise
        except ServiceError as exc:
            self._fail(exc, failure_message)
            return False
        finally:
            self._end()

        self._apply(updated, ticket)
        return True

    async def _current_status(self, appointment_id: int) -> AppointmentStatus:
        local = self.find(appointment_id)
        if local is None:
            remote = await self._call(self._gateway.get_by_id(appointment_id))
            status = remote.status
        else:
            status = local.status
        # Checked after the lookup: another change may have started meanwhile
        if appointment_id in self._pending:
            return self._pending[appointment_id][1]
        return status

    async def _call(self, operation: Awaitable[T]) -> T:
        task = asyncio.ensure_future(asyncio.wait_for(operation, self._operation_timeout))
        self._tasks.add(task)
        try:
            return await task
        except asyncio.TimeoutError as exc:
            raise TransportError(
                "The practice-management service did not respond in time", cause=exc
            ) from exc
        finally:
            self._tasks.discard(task)

    def _passes_validation(self, request: CreateAppointmentRequest) -> bool:
        errors = self.validate(request)
        if not errors:
            return True
        self.failure = AppointmentValidationError(errors)
        self.field_errors = errors
        self.error = "Please correct the highlighted fields"
        return False

    def _next_ticket(self) -> int:
        return next(self._tickets)

    def _apply(self, record: Appointment, ticket: int) -> None:
        if record.id in self._deleted or ticket < self._applied.get(record.id, 0):
            logger.debug("Discarding stale response for appointment %s", record.id)
            return
        self._applied[record.id] = ticket
        self._replace(record)

    def _merge(self, records: List[Appointment], ticket: int) -> List[Appointment]:
        """Fold a list response issued at ``ticket`` into the collection."""

        def newer(appointment_id: int) -> bool:
            return self._applied.get(appointment_id, 0) > ticket

        received = {item.id for item in records}
        merged = []
        for item in records:
            if item.id in self._deleted:
                continue
            if newer(item.id):
                item = self.find(item.id) or item
            merged.append(item)
        # Created or changed after the list was requested
        kept = [
            item
            for item in self._appointments
            if item.id not in received and newer(item.id)
        ]
        return kept + merged

    def _replace(self, record: Appointment) -> None:
        self._appointments = [
            record if item.id == record.id else item for item in self._appointments
        ]

    def _begin(self) -> None:
        self._in_flight += 1
        self.clear_error()

    def _end(self) -> None:
        self._in_flight -= 1

    def _fail(self, exc: ServiceError, fallback: str) -> None:
        logger.warning("%s: %s", fallback, exc)
        self.failure = exc
        self.error = str(exc) or fallback
        self.field_errors = dict(getattr(exc, "field_errors", {}) or {})
