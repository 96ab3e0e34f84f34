from typing import Optional

from fastapi import APIRouter, Depends, Query

from clinic_console.dependencies.services import get_appointment_gateway, get_appointment_store
from clinic_console.routes.errors import http_error
from clinic_console.schemas.appointment import (
    Appointment,
    AppointmentCollectionState,
    AppointmentFilters,
    AppointmentStatus,
    AppointmentStatusRequest,
    CancelAppointmentRequest,
    CompleteAppointmentRequest,
    CreateAppointmentRequest,
    UpdateAppointmentRequest,
)
from clinic_console.services import AppointmentGateway, AppointmentStore
from clinic_console.services.exceptions import ServiceError, UnauthorizedError

router = APIRouter()


def appointment_filters(
    page: Optional[int] = Query(default=None, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, alias="pageSize"),
    customer_id: Optional[int] = Query(default=None, alias="customerId"),
    dentist_id: Optional[int] = Query(default=None, alias="dentistId"),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    status: Optional[AppointmentStatus] = Query(default=None),
) -> AppointmentFilters:
    return AppointmentFilters(
        page=page,
        page_size=page_size,
        customer_id=customer_id,
        dentist_id=dentist_id,
        start_date=start_date,
        end_date=end_date,
        status=status,
    )


async def mounted_store(
    filters: AppointmentFilters = Depends(appointment_filters),
    store: AppointmentStore = Depends(get_appointment_store),
) -> AppointmentStore:
    """Load the list the way a view does when it mounts."""

    await store.fetch(filters)
    if store.failure is not None:
        raise http_error(store.failure, "Error loading appointments")
    return store


def _state_or_error(succeeded: bool, store: AppointmentStore) -> AppointmentCollectionState:
    if not succeeded:
        raise http_error(store.failure, store.error or "Request failed")
    return store.state


@router.get("", response_model=AppointmentCollectionState)
async def list_appointments(store: AppointmentStore = Depends(mounted_store)):
    return store.state


@router.get("/{appointment_id}", response_model=Appointment)
async def get_appointment(
    appointment_id: int,
    gateway: AppointmentGateway = Depends(get_appointment_gateway),
):
    try:
        return await gateway.get_by_id(appointment_id)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.post("", response_model=AppointmentCollectionState, status_code=201)
async def create_appointment(
    req: CreateAppointmentRequest,
    store: AppointmentStore = Depends(mounted_store),
):
    created = await store.create(req)
    return _state_or_error(created is not None, store)


@router.put("/{appointment_id}", response_model=AppointmentCollectionState)
async def update_appointment(
    appointment_id: int,
    req: CreateAppointmentRequest,
    store: AppointmentStore = Depends(mounted_store),
):
    request = UpdateAppointmentRequest(id=appointment_id, **req.model_dump())
    updated = await store.update(request)
    return _state_or_error(updated is not None, store)


@router.put("/{appointment_id}/status", response_model=AppointmentCollectionState)
async def update_appointment_status(
    appointment_id: int,
    req: AppointmentStatusRequest,
    store: AppointmentStore = Depends(mounted_store),
):
    return _state_or_error(await store.update_status(appointment_id, req.status), store)


@router.put("/{appointment_id}/cancel", response_model=AppointmentCollectionState)
async def cancel_appointment(
    appointment_id: int,
    req: Optional[CancelAppointmentRequest] = None,
    store: AppointmentStore = Depends(mounted_store),
):
    return _state_or_error(await store.cancel(appointment_id, req.reason if req else None), store)


@router.put("/{appointment_id}/complete", response_model=AppointmentCollectionState)
async def complete_appointment(
    appointment_id: int,
    req: Optional[CompleteAppointmentRequest] = None,
    store: AppointmentStore = Depends(mounted_store),
):
    return _state_or_error(await store.complete(appointment_id, req.notes if req else None), store)


@router.put("/{appointment_id}/request-cancellation", response_model=AppointmentCollectionState)
async def request_cancellation(
    appointment_id: int,
    store: AppointmentStore = Depends(mounted_store),
):
    return _state_or_error(await store.request_cancellation(appointment_id), store)


@router.delete("/{appointment_id}", response_model=AppointmentCollectionState)
async def delete_appointment(
    appointment_id: int,
    store: AppointmentStore = Depends(mounted_store),
):
    return _state_or_error(await store.delete(appointment_id), store)
