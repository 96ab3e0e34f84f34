from __future__ import annotations

from datetime import datetime
from typing import Optional

from clinic_console.schemas.common import CamelModel


class Customer(CamelModel):
    id: int
    name: str
    email: str
    phone: str
    date_of_birth: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_active: bool = True


class CustomerRequest(CamelModel):
    name: str
    email: str
    phone: str
    date_of_birth: Optional[str] = None
    address: Optional[str] = None
