from __future__ import annotations

from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends

from clinic_console.clients.http import ServiceClient
from clinic_console.config import Settings, get_settings
from clinic_console.services import (
    AppointmentGateway,
    AppointmentStore,
    AuthService,
    CustomerGateway,
    DashboardService,
    DentistGateway,
)
from clinic_console.session import SessionContext


@lru_cache(maxsize=1)
def get_session() -> SessionContext:
    settings = get_settings()
    return SessionContext(token=settings.manager_service_token)


@lru_cache(maxsize=1)
def get_manager_client_cached() -> ServiceClient:
    settings = get_settings()
    return ServiceClient(
        settings.manager_service_base_url,
        get_session(),
        service_name="practice-management service",
        timeout=settings.service_timeout,
        use_mock_data=settings.use_mock_data,
    )


@lru_cache(maxsize=1)
def get_auth_client_cached() -> ServiceClient:
    settings = get_settings()
    return ServiceClient(
        settings.auth_service_base_url,
        get_session(),
        service_name="authentication service",
        timeout=settings.service_timeout,
        use_mock_data=settings.use_mock_data,
    )


def get_manager_client() -> ServiceClient:
    return get_manager_client_cached()


def get_auth_client() -> ServiceClient:
    return get_auth_client_cached()


def get_auth_service(
    client: ServiceClient = Depends(get_auth_client),
) -> AuthService:
    return AuthService(client)


def get_appointment_gateway(
    client: ServiceClient = Depends(get_manager_client),
) -> AppointmentGateway:
    return AppointmentGateway(client)


def get_customer_gateway(
    client: ServiceClient = Depends(get_manager_client),
) -> CustomerGateway:
    return CustomerGateway(client)


def get_dentist_gateway(
    client: ServiceClient = Depends(get_manager_client),
) -> DentistGateway:
    return DentistGateway(client)


async def get_appointment_store(
    gateway: AppointmentGateway = Depends(get_appointment_gateway),
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[AppointmentStore]:
    """One store per request; in-flight calls are cancelled when it ends."""

    async with AppointmentStore(
        gateway,
        operation_timeout=settings.operation_timeout,
        opening_hour=settings.business_opening_hour,
        closing_hour=settings.business_closing_hour,
    ) as store:
        yield store


def get_dashboard_service(
    customers: CustomerGateway = Depends(get_customer_gateway),
    dentists: DentistGateway = Depends(get_dentist_gateway),
    appointments: AppointmentGateway = Depends(get_appointment_gateway),
    settings: Settings = Depends(get_settings),
) -> DashboardService:
    return DashboardService(
        customers,
        dentists,
        appointments,
        upcoming_limit=settings.upcoming_appointments_limit,
    )
