from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from clinic_console.schemas.common import CamelModel


class AppointmentStatus(str, Enum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    CANCELLATION_REQUESTED = "CancellationRequested"


class Appointment(CamelModel):
    id: int
    customer_id: int
    dentist_id: int
    appointment_date_time: datetime
    procedure_type: str
    notes: Optional[str] = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Display only, not authoritative
    customer_name: Optional[str] = None
    dentist_name: Optional[str] = None


class CreateAppointmentRequest(CamelModel):
    customer_id: int
    dentist_id: int
    appointment_date_time: datetime
    procedure_type: str
    notes: Optional[str] = None


class UpdateAppointmentRequest(CreateAppointmentRequest):
    id: int


class AppointmentStatusRequest(CamelModel):
    status: AppointmentStatus


class CancelAppointmentRequest(CamelModel):
    reason: Optional[str] = None


class CompleteAppointmentRequest(CamelModel):
    notes: Optional[str] = None


class AppointmentCollectionState(CamelModel):
    appointments: List[Appointment] = Field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    field_errors: Dict[str, str] = Field(default_factory=dict)


class AppointmentFilters(CamelModel):
    page: Optional[int] = Field(default=None, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1)
    customer_id: Optional[int] = None
    dentist_id: Optional[int] = None
    start_date: Optional[str] = None  # ISO date
    end_date: Optional[str] = None  # ISO date
    status: Optional[AppointmentStatus] = None

    def to_query_params(self) -> Dict[str, Any]:
        """Return only the filters that were supplied, keyed by wire name.

        Zero and empty values count as absent so they never reach the query.
        """

        params = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        return {key: value for key, value in params.items() if value not in ("", 0)}
