"""Client-side rules for when an appointment may be booked.

Checks run in a fixed order and the first failing rule is reported, so a
single date/time message is surfaced per validation pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional

REASON_REQUIRED = "required"
REASON_PAST = "must be in the future"
REASON_WEEKEND = "cannot be scheduled on weekends"

OPENING_HOUR = 8
CLOSING_HOUR = 18

_SATURDAY = 5


@dataclass(frozen=True)
class ValidationResult:
    reason: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.reason is None

    @classmethod
    def invalid(cls, reason: str) -> "ValidationResult":
        return cls(reason=reason)


VALID = ValidationResult()


def business_hours_reason(opening_hour: int = OPENING_HOUR, closing_hour: int = CLOSING_HOUR) -> str:
    return f"must be within business hours {opening_hour}:00–{closing_hour}:00"


def parse_datetime(value: Any) -> Optional[datetime]:
    """Return a local, timezone-naive datetime or None when unparseable."""

    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def validate(
    candidate: Any,
    *,
    now: datetime | None = None,
    opening_hour: int = OPENING_HOUR,
    closing_hour: int = CLOSING_HOUR,
) -> ValidationResult:
    moment = parse_datetime(candidate)
    if moment is None:
        return ValidationResult.invalid(REASON_REQUIRED)

    reference = parse_datetime(now) if now is not None else datetime.now()
    if moment <= reference:
        return ValidationResult.invalid(REASON_PAST)

    if not opening_hour <= moment.hour < closing_hour:
        return ValidationResult.invalid(business_hours_reason(opening_hour, closing_hour))

    if moment.weekday() >= _SATURDAY:
        return ValidationResult.invalid(REASON_WEEKEND)

    return VALID


def validate_appointment_form(
    *,
    customer_id: Any,
    dentist_id: Any,
    appointment_date_time: Any,
    procedure_type: Any,
    now: datetime | None = None,
    opening_hour: int = OPENING_HOUR,
    closing_hour: int = CLOSING_HOUR,
) -> Dict[str, str]:
    """Return a field name -> message mapping; empty when the form is valid.

    Field names use the wire (camelCase) spelling so server-side field errors
    and client-side ones share keys.
    """

    errors: Dict[str, str] = {}
    if not customer_id:
        errors["customerId"] = "Customer is required"
    if not dentist_id:
        errors["dentistId"] = "Dentist is required"

    result = validate(
        appointment_date_time,
        now=now,
        opening_hour=opening_hour,
        closing_hour=closing_hour,
    )
    if not result.is_valid:
        errors["appointmentDateTime"] = f"Date and time {result.reason}"

    if not isinstance(procedure_type, str) or not procedure_type.strip():
        errors["procedureType"] = "Procedure type is required"
    return errors
