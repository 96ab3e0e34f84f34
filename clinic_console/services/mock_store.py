"""In-memory stand-in for the practice-management service.

Used by the gateways when ``use_mock_data`` is enabled. Records are kept as
models and copied on the way out so callers never share state with the store.
Like the real service, it accepts any status change; transition rules are
enforced client side.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Dict, List, Optional

from clinic_console.schemas.appointment import (
    Appointment,
    AppointmentFilters,
    AppointmentStatus,
    CreateAppointmentRequest,
    UpdateAppointmentRequest,
)
from clinic_console.schemas.common import Page
from clinic_console.schemas.customer import Customer, CustomerRequest
from clinic_console.schemas.dentist import Dentist, DentistRequest
from clinic_console.services.exceptions import ConflictError, NotFoundError
from clinic_console.services.scheduling import parse_datetime
from clinic_console.services.status import INITIAL_STATUS


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


def _next_weekday(start: datetime) -> datetime:
    candidate = start + timedelta(days=1)
    while candidate.weekday() >= 5:
        candidate += timedelta(days=1)
    return candidate


def _paginate(items: List, page: Optional[int], page_size: Optional[int]) -> List:
    if not page_size:
        return items
    start = ((page or 1) - 1) * page_size
    return items[start:start + page_size]


def _matches_search(search: str, *values: Optional[str]) -> bool:
    needle = search.strip().lower()
    if not needle:
        return True
    return any(needle in (value or "").lower() for value in values)


class _BaseRepository:
    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def _next_id(self) -> int:
        return next(self._counter)


class CustomerRepository(_BaseRepository):
    def __init__(self) -> None:
        super().__init__()
        self._customers: Dict[int, Customer] = {}
        self._seed_defaults()

    def _seed_defaults(self) -> None:
        seeds = [
            CustomerRequest(name="Maria Silva", email="maria.silva@email.com", phone="11 98765-4321"),
            CustomerRequest(name="João Santos", email="joao.santos@email.com", phone="11 91234-5678"),
            CustomerRequest(name="Ana Costa", email="ana.costa@email.com", phone="11 99876-5432"),
        ]
        for request in seeds:
            self._insert(request)

    def _insert(self, request: CustomerRequest) -> Customer:
        if any(item.email.lower() == request.email.lower() for item in self._customers.values()):
            raise ConflictError(
                f"A customer with email {request.email} already exists",
                field_errors={"email": "Email is already registered"},
            )
        timestamp = _now()
        customer = Customer(
            id=self._next_id(),
            created_at=timestamp,
            updated_at=timestamp,
            **request.model_dump(),
        )
        self._customers[customer.id] = customer
        return customer.model_copy()

    def _require(self, customer_id: int) -> Customer:
        customer = self._customers.get(customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found")
        return customer

    async def list(self, page: int = 1, page_size: int = 10, search: str = "") -> Page[Customer]:
        matches = [
            item.model_copy()
            for item in self._customers.values()
            if _matches_search(search, item.name, item.email, item.phone)
        ]
        return Page[Customer](total=len(matches), items=_paginate(matches, page, page_size))

    async def get(self, customer_id: int) -> Customer:
        return self._require(customer_id).model_copy()

    async def create(self, request: CustomerRequest) -> Customer:
        return self._insert(request)

    async def update(self, customer_id: int, request: CustomerRequest) -> Customer:
        current = self._require(customer_id)
        updated = current.model_copy(update={**request.model_dump(), "updated_at": _now()})
        self._customers[customer_id] = updated
        return updated.model_copy()

    async def delete(self, customer_id: int) -> None:
        self._require(customer_id)
        del self._customers[customer_id]

    def name_of(self, customer_id: int) -> Optional[str]:
        customer = self._customers.get(customer_id)
        return customer.name if customer else None


class DentistRepository(_BaseRepository):
    def __init__(self) -> None:
        super().__init__()
        self._dentists: Dict[int, Dentist] = {}
        self._seed_defaults()

    def _seed_defaults(self) -> None:
        seeds = [
            DentistRequest(
                name="Dr. Carlos Oliveira",
                email="carlos.oliveira@nicedentist.com",
                phone="11 3456-7890",
                license_number="CRO-SP 12345",
                specialization="Orthodontics",
            ),
            DentistRequest(
                name="Dra. Fernanda Lima",
                email="fernanda.lima@nicedentist.com",
                phone="11 3456-7891",
                license_number="CRO-SP 23456",
                specialization="Endodontics",
            ),
            DentistRequest(
                name="Dr. Roberto Dias",
                email="roberto.dias@nicedentist.com",
                phone="11 3456-7892",
                license_number="CRO-SP 34567",
                specialization="Implantology",
            ),
        ]
        for request in seeds:
            self._insert(request)

    def _insert(self, request: DentistRequest) -> Dentist:
        if any(item.license_number == request.license_number for item in self._dentists.values()):
            raise ConflictError(
                f"A dentist with license {request.license_number} already exists",
                field_errors={"licenseNumber": "License number is already registered"},
            )
        timestamp = _now()
        data = request.model_dump(exclude_none=True)
        dentist = Dentist(
            id=self._next_id(),
            created_at=timestamp,
            updated_at=timestamp,
            **data,
        )
        self._dentists[dentist.id] = dentist
        return dentist.model_copy()

    def _require(self, dentist_id: int) -> Dentist:
        dentist = self._dentists.get(dentist_id)
        if dentist is None:
            raise NotFoundError(f"Dentist {dentist_id} not found")
        return dentist

    async def list(self, page: int = 1, page_size: int = 10, search: str = "") -> Page[Dentist]:
        matches = [
            item.model_copy()
            for item in self._dentists.values()
            if _matches_search(search, item.name, item.email, item.specialization, item.license_number)
        ]
        return Page[Dentist](total=len(matches), items=_paginate(matches, page, page_size))

    async def get(self, dentist_id: int) -> Dentist:
        return self._require(dentist_id).model_copy()

    async def create(self, request: DentistRequest) -> Dentist:
        return self._insert(request)

    async def update(self, dentist_id: int, request: DentistRequest) -> Dentist:
        current = self._require(dentist_id)
        changes = request.model_dump(exclude_none=True)
        updated = current.model_copy(update={**changes, "updated_at": _now()})
        self._dentists[dentist_id] = updated
        return updated.model_copy()

    async def delete(self, dentist_id: int) -> None:
        self._require(dentist_id)
        del self._dentists[dentist_id]

    def name_of(self, dentist_id: int) -> Optional[str]:
        dentist = self._dentists.get(dentist_id)
        return dentist.name if dentist else None


class AppointmentRepository(_BaseRepository):
    def __init__(
        self,
        customers: CustomerRepository,
        dentists: DentistRepository,
        *,
        seed: bool = True,
    ) -> None:
        super().__init__()
        self._customers = customers
        self._dentists = dentists
        self._appointments: Dict[int, Appointment] = {}
        if seed:
            self._seed_defaults()

    def _seed_defaults(self) -> None:
        first_day = _next_weekday(_now())
        second_day = _next_weekday(first_day)
        seeds = [
            CreateAppointmentRequest(
                customer_id=1,
                dentist_id=1,
                appointment_date_time=datetime.combine(first_day.date(), time(9, 0)),
                procedure_type="Cleaning",
            ),
            CreateAppointmentRequest(
                customer_id=2,
                dentist_id=2,
                appointment_date_time=datetime.combine(second_day.date(), time(14, 30)),
                procedure_type="Root Canal",
                notes="Second session",
            ),
        ]
        for request in seeds:
            self._insert(request)

    def _insert(self, request: CreateAppointmentRequest) -> Appointment:
        customer_name, dentist_name = self._resolve_names(request.customer_id, request.dentist_id)
        timestamp = _now()
        appointment = Appointment(
            id=self._next_id(),
            customer_id=request.customer_id,
            dentist_id=request.dentist_id,
            appointment_date_time=request.appointment_date_time,
            procedure_type=request.procedure_type,
            notes=request.notes,
            status=INITIAL_STATUS,
            created_at=timestamp,
            updated_at=timestamp,
            customer_name=customer_name,
            dentist_name=dentist_name,
        )
        self._appointments[appointment.id] = appointment
        return appointment.model_copy()

    def _resolve_names(self, customer_id: int, dentist_id: int) -> tuple[str, str]:
        customer_name = self._customers.name_of(customer_id)
        if customer_name is None:
            raise NotFoundError(f"Customer {customer_id} not found")
        dentist_name = self._dentists.name_of(dentist_id)
        if dentist_name is None:
            raise NotFoundError(f"Dentist {dentist_id} not found")
        return customer_name, dentist_name

    def _require(self, appointment_id: int) -> Appointment:
        appointment = self._appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    def _replace(self, appointment_id: int, **changes) -> Appointment:
        current = self._require(appointment_id)
        updated = current.model_copy(update={**changes, "updated_at": _now()})
        self._appointments[appointment_id] = updated
        return updated.model_copy()

    async def list(self, filters: AppointmentFilters) -> List[Appointment]:
        start = parse_datetime(filters.start_date) if filters.start_date else None
        end = parse_datetime(filters.end_date) if filters.end_date else None

        def keep(item: Appointment) -> bool:
            if filters.customer_id and item.customer_id != filters.customer_id:
                return False
            if filters.dentist_id and item.dentist_id != filters.dentist_id:
                return False
            if filters.status and item.status != filters.status:
                return False
            if start and item.appointment_date_time.date() < start.date():
                return False
            if end and item.appointment_date_time.date() > end.date():
                return False
            return True

        matches = sorted(
            (item for item in self._appointments.values() if keep(item)),
            key=lambda item: (item.appointment_date_time, item.id),
        )
        return [item.model_copy() for item in _paginate(matches, filters.page, filters.page_size)]

    async def get(self, appointment_id: int) -> Appointment:
        return self._require(appointment_id).model_copy()

    async def create(self, request: CreateAppointmentRequest) -> Appointment:
        return self._insert(request)

    async def update(self, request: UpdateAppointmentRequest) -> Appointment:
        self._require(request.id)
        customer_name, dentist_name = self._resolve_names(request.customer_id, request.dentist_id)
        return self._replace(
            request.id,
            customer_id=request.customer_id,
            dentist_id=request.dentist_id,
            appointment_date_time=request.appointment_date_time,
            procedure_type=request.procedure_type,
            notes=request.notes,
            customer_name=customer_name,
            dentist_name=dentist_name,
        )

    async def set_status(self, appointment_id: int, status: AppointmentStatus) -> Appointment:
        return self._replace(appointment_id, status=AppointmentStatus(status))

    async def cancel(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        changes = {"status": AppointmentStatus.CANCELLED}
        if reason is not None:
            changes["notes"] = _append_note(self._require(appointment_id).notes, f"Cancelled: {reason}")
        return self._replace(appointment_id, **changes)

    async def complete(self, appointment_id: int, notes: Optional[str] = None) -> Appointment:
        changes = {"status": AppointmentStatus.COMPLETED}
        if notes is not None:
            changes["notes"] = _append_note(self._require(appointment_id).notes, notes)
        return self._replace(appointment_id, **changes)

    async def delete(self, appointment_id: int) -> None:
        self._require(appointment_id)
        del self._appointments[appointment_id]


def _append_note(existing: Optional[str], addition: str) -> str:
    if not existing:
        return addition
    return f"{existing}\n{addition}"


@dataclass
class MockDataStore:
    customers: CustomerRepository
    dentists: DentistRepository
    appointments: AppointmentRepository


_mock_store: Optional[MockDataStore] = None


def get_mock_store() -> MockDataStore:
    global _mock_store
    if _mock_store is None:
        customers = CustomerRepository()
        dentists = DentistRepository()
        appointments = AppointmentRepository(customers, dentists)
        _mock_store = MockDataStore(
            customers=customers,
            dentists=dentists,
            appointments=appointments,
        )
    return _mock_store


def reset_mock_store() -> None:
    global _mock_store
    _mock_store = None
