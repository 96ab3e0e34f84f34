from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from clinic_console.schemas.appointment import Appointment


class DashboardSummary(BaseModel):
    customers_registered: int = 0
    active_dentists: int = 0
    todays_scheduled_appointments: int = 0
    upcoming_appointments: List[Appointment] = Field(default_factory=list)
