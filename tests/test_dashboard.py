import asyncio
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from clinic_console.schemas.appointment import CreateAppointmentRequest
from clinic_console.schemas.dashboard import DashboardSummary
from clinic_console.schemas.dentist import DentistRequest
from clinic_console.services.appointment import AppointmentGateway
from clinic_console.services.dashboard import DashboardService
from clinic_console.services.directory import CustomerGateway, DentistGateway
from clinic_console.services.exceptions import DownstreamServiceError, UnauthorizedError
from clinic_console.services.mock_store import (
    AppointmentRepository,
    CustomerRepository,
    DentistRepository,
    reset_mock_store,
)

NOW = datetime(2026, 3, 2, 9, 0)


@pytest.fixture(autouse=True)
def _reset_store() -> None:
    reset_mock_store()
    yield
    reset_mock_store()


class MockLatencyClient:
    def __init__(self) -> None:
        self.use_mock_data = True

    async def simulate_latency(self) -> None:
        await asyncio.sleep(0)


def _service(upcoming_limit: int = 5):
    client = MockLatencyClient()
    customers = CustomerRepository()
    dentists = DentistRepository()
    appointments = AppointmentRepository(customers, dentists, seed=False)
    service = DashboardService(
        CustomerGateway(client, repository=customers),
        DentistGateway(client, repository=dentists),
        AppointmentGateway(client, repository=appointments),
        upcoming_limit=upcoming_limit,
    )
    return service, appointments, dentists


def _book(repository: AppointmentRepository, when: datetime):
    request = CreateAppointmentRequest(
        customer_id=1,
        dentist_id=1,
        appointment_date_time=when,
        procedure_type="Checkup",
    )
    return asyncio.run(repository.create(request))


def _deactivate(dentists: DentistRepository, dentist_id: int) -> None:
    current = asyncio.run(dentists.get(dentist_id))
    request = DentistRequest(
        name=current.name,
        email=current.email,
        phone=current.phone,
        license_number=current.license_number,
        is_active=False,
    )
    asyncio.run(dentists.update(dentist_id, request))


def test_summary_counts_today_and_lists_upcoming() -> None:
    service, appointments, dentists = _service()
    earlier_today = _book(appointments, datetime(2026, 3, 2, 8, 30))
    later_today = _book(appointments, datetime(2026, 3, 2, 15, 0))
    wednesday = _book(appointments, datetime(2026, 3, 4, 10, 0))
    cancelled = _book(appointments, datetime(2026, 3, 3, 11, 0))
    asyncio.run(appointments.cancel(cancelled.id))
    _deactivate(dentists, 3)

    summary = asyncio.run(service.load(now=NOW))

    assert summary.customers_registered == 3
    assert summary.active_dentists == 2
    assert summary.todays_scheduled_appointments == 2
    assert [item.id for item in summary.upcoming_appointments] == [later_today.id, wednesday.id]
    assert earlier_today.id not in [item.id for item in summary.upcoming_appointments]


def test_upcoming_list_is_capped() -> None:
    service, appointments, _ = _service(upcoming_limit=2)
    for hour in (10, 11, 12, 13):
        _book(appointments, datetime(2026, 3, 3, hour, 0))

    summary = asyncio.run(service.load(now=NOW))

    assert len(summary.upcoming_appointments) == 2
    assert [item.appointment_date_time.hour for item in summary.upcoming_appointments] == [10, 11]


def test_any_failure_yields_empty_summary() -> None:
    failing = AsyncMock()
    failing.list.side_effect = DownstreamServiceError("Service unavailable", 503)
    healthy = AsyncMock()
    service = DashboardService(healthy, healthy, failing)

    summary = asyncio.run(service.load(now=NOW))

    assert summary == DashboardSummary()


def test_lists_are_requested_concurrently() -> None:
    started = []

    async def slow_list(*args, **kwargs):
        started.append(len(started))
        await asyncio.sleep(0.01)
        raise DownstreamServiceError("slow failure", 500)

    gateways = [AsyncMock() for _ in range(3)]
    for gateway in gateways:
        gateway.list.side_effect = slow_list
    service = DashboardService(*gateways)

    async def scenario():
        task = asyncio.ensure_future(service.load(now=NOW))
        await asyncio.sleep(0.005)
        in_flight = len(started)
        await task
        return in_flight

    assert asyncio.run(scenario()) == 3


def test_unauthorized_is_not_swallowed() -> None:
    failing = AsyncMock()
    failing.list.side_effect = UnauthorizedError()
    service = DashboardService(failing, AsyncMock(), AsyncMock())

    with pytest.raises(UnauthorizedError):
        asyncio.run(service.load(now=NOW))
