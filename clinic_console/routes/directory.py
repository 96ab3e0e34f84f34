from typing import List

from fastapi import APIRouter, Depends, Query

from clinic_console.dependencies.services import (
    get_appointment_gateway,
    get_customer_gateway,
    get_dentist_gateway,
)
from clinic_console.routes.errors import http_error
from clinic_console.schemas.appointment import Appointment
from clinic_console.schemas.common import Page
from clinic_console.schemas.customer import Customer, CustomerRequest
from clinic_console.schemas.dentist import Dentist, DentistRequest
from clinic_console.services import AppointmentGateway, CustomerGateway, DentistGateway
from clinic_console.services.exceptions import ServiceError, UnauthorizedError

customers_router = APIRouter()
dentists_router = APIRouter()


@customers_router.get("", response_model=Page[Customer])
async def list_customers(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, alias="pageSize"),
    search: str = Query(default=""),
    gateway: CustomerGateway = Depends(get_customer_gateway),
):
    try:
        return await gateway.list(page, page_size, search)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@customers_router.get("/{customer_id}", response_model=Customer)
async def get_customer(customer_id: int, gateway: CustomerGateway = Depends(get_customer_gateway)):
    try:
        return await gateway.get_by_id(customer_id)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@customers_router.get("/{customer_id}/appointments", response_model=List[Appointment])
async def customer_appointments(
    customer_id: int,
    gateway: AppointmentGateway = Depends(get_appointment_gateway),
):
    try:
        return await gateway.list_by_customer(customer_id)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@customers_router.post("", response_model=Customer, status_code=201)
async def create_customer(req: CustomerRequest, gateway: CustomerGateway = Depends(get_customer_gateway)):
    try:
        return await gateway.create(req)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@customers_router.put("/{customer_id}", response_model=Customer)
async def update_customer(
    customer_id: int,
    req: CustomerRequest,
    gateway: CustomerGateway = Depends(get_customer_gateway),
):
    try:
        return await gateway.update(customer_id, req)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@customers_router.delete("/{customer_id}", status_code=204)
async def delete_customer(customer_id: int, gateway: CustomerGateway = Depends(get_customer_gateway)):
    try:
        await gateway.delete(customer_id)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@dentists_router.get("", response_model=Page[Dentist])
async def list_dentists(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, alias="pageSize"),
    search: str = Query(default=""),
    gateway: DentistGateway = Depends(get_dentist_gateway),
):
    try:
        return await gateway.list(page, page_size, search)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@dentists_router.get("/{dentist_id}", response_model=Dentist)
async def get_dentist(dentist_id: int, gateway: DentistGateway = Depends(get_dentist_gateway)):
    try:
        return await gateway.get_by_id(dentist_id)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@dentists_router.get("/{dentist_id}/appointments", response_model=List[Appointment])
async def dentist_appointments(
    dentist_id: int,
    gateway: AppointmentGateway = Depends(get_appointment_gateway),
):
    try:
        return await gateway.list_by_dentist(dentist_id)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@dentists_router.post("", response_model=Dentist, status_code=201)
async def create_dentist(req: DentistRequest, gateway: DentistGateway = Depends(get_dentist_gateway)):
    try:
        return await gateway.create(req)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@dentists_router.put("/{dentist_id}", response_model=Dentist)
async def update_dentist(
    dentist_id: int,
    req: DentistRequest,
    gateway: DentistGateway = Depends(get_dentist_gateway),
):
    try:
        return await gateway.update(dentist_id, req)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@dentists_router.put("/{dentist_id}/active", response_model=Dentist)
async def set_dentist_active(
    dentist_id: int,
    active: bool = Query(...),
    gateway: DentistGateway = Depends(get_dentist_gateway),
):
    try:
        return await gateway.set_active(dentist_id, active)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@dentists_router.delete("/{dentist_id}", status_code=204)
async def delete_dentist(dentist_id: int, gateway: DentistGateway = Depends(get_dentist_gateway)):
    try:
        await gateway.delete(dentist_id)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc
