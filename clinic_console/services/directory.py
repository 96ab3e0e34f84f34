"""Gateways for the customer and dentist registries."""

from __future__ import annotations

import logging
from typing import Any, Generic, List, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from clinic_console.clients.http import ServiceClient
from clinic_console.schemas.common import Page
from clinic_console.schemas.customer import Customer, CustomerRequest
from clinic_console.schemas.dentist import Dentist, DentistRequest
from clinic_console.services.exceptions import TransportError
from clinic_console.services.mock_store import (
    CustomerRepository,
    DentistRepository,
    get_mock_store,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class _DirectoryGateway(Generic[ModelT]):
    resource: str = ""
    path: str = ""
    model: Type[BaseModel] = BaseModel

    def __init__(self, client: ServiceClient, *, repository=None) -> None:
        self._client = client
        self._repository = repository

    async def _mock(self):
        await self._client.simulate_latency()
        if not self._repository:
            raise RuntimeError(f"Mock {self.resource} repository not configured")
        return self._repository

    async def list(self, page: int = 1, page_size: int = 10, search: str = "") -> Page[ModelT]:
        logger.info("Listing %s page %s (search=%r)", self.resource, page, search)
        if self._client.use_mock_data:
            return await (await self._mock()).list(page, page_size, search)

        params = {"page": page, "pageSize": page_size}
        if search:
            params["search"] = search
        data = await self._client.get(self.path, params=params)
        return self._decode_page(data)

    async def get_by_id(self, record_id: int) -> ModelT:
        if self._client.use_mock_data:
            return await (await self._mock()).get(record_id)

        data = await self._client.get(f"{self.path}/{record_id}")
        return self._decode(data)

    async def _create(self, request: BaseModel) -> ModelT:
        logger.info("Creating %s record", self.resource)
        if self._client.use_mock_data:
            return await (await self._mock()).create(request)

        data = await self._client.post(self.path, request.to_payload())
        return self._decode(data)

    async def _update(self, record_id: int, request: BaseModel) -> ModelT:
        logger.info("Updating %s record %s", self.resource, record_id)
        if self._client.use_mock_data:
            return await (await self._mock()).update(record_id, request)

        data = await self._client.put(f"{self.path}/{record_id}", request.to_payload())
        return self._decode(data)

    async def delete(self, record_id: int) -> None:
        logger.info("Deleting %s record %s", self.resource, record_id)
        if self._client.use_mock_data:
            await (await self._mock()).delete(record_id)
            return

        await self._client.delete(f"{self.path}/{record_id}")

    def _decode(self, data: Any) -> ModelT:
        try:
            return self.model.model_validate(data)
        except ValidationError as exc:
            logger.exception("Unparseable %s payload", self.resource)
            raise TransportError(f"Unparseable {self.resource} response", cause=exc) from exc

    def _decode_page(self, data: Any) -> Page[ModelT]:
        """Accept a bare list or a ``{data|items, total|totalCount}`` envelope."""

        if isinstance(data, dict):
            raw_items = data.get("data") or data.get("items") or []
            total = data.get("total", data.get("totalCount"))
        else:
            raw_items = data or []
            total = None
        try:
            items = TypeAdapter(List[self.model]).validate_python(raw_items)
        except ValidationError as exc:
            logger.exception("Unparseable %s list payload", self.resource)
            raise TransportError(f"Unparseable {self.resource} list response", cause=exc) from exc
        return Page(total=total if total is not None else len(items), items=items)


class CustomerGateway(_DirectoryGateway[Customer]):
    resource = "customers"
    path = "/api/customers"
    model = Customer

    def __init__(
        self,
        client: ServiceClient,
        *,
        repository: CustomerRepository | None = None,
    ) -> None:
        super().__init__(client, repository=repository)
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().customers

    async def create(self, request: CustomerRequest) -> Customer:
        return await self._create(request)

    async def update(self, customer_id: int, request: CustomerRequest) -> Customer:
        return await self._update(customer_id, request)


class DentistGateway(_DirectoryGateway[Dentist]):
    resource = "dentists"
    path = "/api/dentists"
    model = Dentist

    def __init__(
        self,
        client: ServiceClient,
        *,
        repository: DentistRepository | None = None,
    ) -> None:
        super().__init__(client, repository=repository)
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().dentists

    async def create(self, request: DentistRequest) -> Dentist:
        return await self._create(request)

    async def update(self, dentist_id: int, request: DentistRequest) -> Dentist:
        return await self._update(dentist_id, request)

    async def set_active(self, dentist_id: int, active: bool) -> Dentist:
        """Activate or deactivate a dentist (soft delete)."""

        current = await self.get_by_id(dentist_id)
        request = DentistRequest(
            name=current.name,
            email=current.email,
            phone=current.phone,
            license_number=current.license_number,
            specialization=current.specialization,
            is_active=active,
        )
        return await self._update(dentist_id, request)
