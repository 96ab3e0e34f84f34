"""Allowed appointment status transitions.

``Completed`` and ``Cancelled`` are terminal. A ``CancellationRequested``
appointment waits for an operator to approve (``Cancelled``) or reject
(``Scheduled``) the request.
"""

from __future__ import annotations

from typing import Dict, FrozenSet

from clinic_console.schemas.appointment import AppointmentStatus
from clinic_console.services.exceptions import StatusTransitionError

INITIAL_STATUS = AppointmentStatus.SCHEDULED

TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.CANCELLATION_REQUESTED,
        }
    ),
    AppointmentStatus.CANCELLATION_REQUESTED: frozenset(
        {
            AppointmentStatus.CANCELLED,
            AppointmentStatus.SCHEDULED,
        }
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


def allowed_transitions(current: AppointmentStatus) -> FrozenSet[AppointmentStatus]:
    return TRANSITIONS[AppointmentStatus(current)]


def can_transition(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    return AppointmentStatus(requested) in allowed_transitions(current)


def ensure_transition(current: AppointmentStatus, requested: AppointmentStatus) -> None:
    """Raise StatusTransitionError unless ``current -> requested`` is allowed."""

    if not can_transition(current, requested):
        raise StatusTransitionError(AppointmentStatus(current), AppointmentStatus(requested))
