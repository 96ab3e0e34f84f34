from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import List

from clinic_console.schemas.appointment import (
    Appointment,
    AppointmentFilters,
    AppointmentStatus,
)
from clinic_console.schemas.dashboard import DashboardSummary
from clinic_console.services.appointment import AppointmentGateway
from clinic_console.services.directory import CustomerGateway, DentistGateway
from clinic_console.services.exceptions import ServiceError, UnauthorizedError
from clinic_console.services.scheduling import parse_datetime

logger = logging.getLogger(__name__)

# Large enough to count every active dentist in a single page
_DIRECTORY_PAGE_SIZE = 1000


class DashboardService:
    def __init__(
        self,
        customers: CustomerGateway,
        dentists: DentistGateway,
        appointments: AppointmentGateway,
        *,
        upcoming_limit: int = 5,
    ) -> None:
        self._customers = customers
        self._dentists = dentists
        self._appointments = appointments
        self._upcoming_limit = upcoming_limit

    async def load(self, now: datetime | None = None) -> DashboardSummary:
        """Load all three lists concurrently; any failure yields an empty summary."""

        now = now or datetime.now()
        try:
            customers, dentists, appointments = await asyncio.gather(
                self._customers.list(page=1, page_size=1),
                self._dentists.list(page=1, page_size=_DIRECTORY_PAGE_SIZE),
                self._appointments.list(AppointmentFilters(status=AppointmentStatus.SCHEDULED)),
            )
        except UnauthorizedError:
            raise
        except ServiceError as exc:
            logger.warning("Dashboard load failed, showing empty summary: %s", exc)
            return DashboardSummary()

        return DashboardSummary(
            customers_registered=customers.total,
            active_dentists=sum(1 for dentist in dentists.items if dentist.is_active),
            todays_scheduled_appointments=sum(
                1 for item in appointments if _local(item).date() == now.date()
            ),
            upcoming_appointments=self._upcoming(appointments, now),
        )

    def _upcoming(self, appointments: List[Appointment], now: datetime) -> List[Appointment]:
        future = [
            item
            for item in appointments
            if item.status == AppointmentStatus.SCHEDULED and _local(item) >= now
        ]
        future.sort(key=_local)
        return future[: self._upcoming_limit]


def _local(item: Appointment) -> datetime:
    return parse_datetime(item.appointment_date_time)
