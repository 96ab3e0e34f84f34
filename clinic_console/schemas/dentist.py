from __future__ import annotations

from datetime import datetime
from typing import Optional

from clinic_console.schemas.common import CamelModel


class Dentist(CamelModel):
    id: int
    name: str
    email: str
    phone: str
    license_number: str
    specialization: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_active: bool = True


class DentistRequest(CamelModel):
    name: str
    email: str
    phone: str
    license_number: str
    specialization: Optional[str] = None
    is_active: Optional[bool] = None
