from datetime import datetime, timedelta, timezone

import pytest

from clinic_console.services.scheduling import (
    REASON_PAST,
    REASON_REQUIRED,
    REASON_WEEKEND,
    business_hours_reason,
    validate,
    validate_appointment_form,
)

# Monday 2 March 2026, 09:00
NOW = datetime(2026, 3, 2, 9, 0)
TUESDAY = datetime(2026, 3, 3)
SATURDAY = datetime(2026, 3, 7)
SUNDAY = datetime(2026, 3, 8)


@pytest.mark.parametrize(
    "candidate",
    [
        NOW - timedelta(minutes=1),
        NOW - timedelta(days=30),
        datetime(2026, 2, 28, 10, 0),  # past Saturday
        datetime(2026, 3, 1, 20, 0),  # past Sunday evening
        NOW,
    ],
)
def test_instants_not_after_now_are_rejected(candidate) -> None:
    result = validate(candidate, now=NOW)

    assert result.is_valid is False
    assert result.reason == REASON_PAST


@pytest.mark.parametrize("hour", [0, 5, 7, 18, 19, 23])
def test_hours_outside_business_window_are_rejected(hour: int) -> None:
    weekday = validate(TUESDAY.replace(hour=hour), now=NOW)
    weekend = validate(SATURDAY.replace(hour=hour), now=NOW)

    assert weekday.reason == business_hours_reason()
    assert weekend.reason == business_hours_reason()


@pytest.mark.parametrize("day", [SATURDAY, SUNDAY])
def test_weekends_are_rejected_within_business_hours(day: datetime) -> None:
    result = validate(day.replace(hour=10), now=NOW)

    assert result.reason == REASON_WEEKEND


def test_business_hour_boundaries() -> None:
    assert validate(TUESDAY.replace(hour=8), now=NOW).is_valid
    assert validate(TUESDAY.replace(hour=17, minute=59), now=NOW).is_valid

    closing = validate(TUESDAY.replace(hour=18), now=NOW)
    assert closing.is_valid is False
    assert closing.reason == "must be within business hours 8:00–18:00"


@pytest.mark.parametrize("candidate", [None, "", "   ", "next tuesday", 42])
def test_unparseable_candidates_are_required(candidate) -> None:
    assert validate(candidate, now=NOW).reason == REASON_REQUIRED


def test_iso_strings_are_accepted() -> None:
    assert validate("2026-03-03T10:30:00", now=NOW).is_valid
    assert validate("2026-03-03T10:30", now=NOW).is_valid


def test_aware_instants_are_checked_in_local_time() -> None:
    local_ten = TUESDAY.replace(hour=10).astimezone()
    as_utc = local_ten.astimezone(timezone.utc)

    assert validate(as_utc, now=NOW).is_valid


def test_custom_business_hours() -> None:
    result = validate(TUESDAY.replace(hour=8, minute=30), now=NOW, opening_hour=9, closing_hour=17)

    assert result.reason == "must be within business hours 9:00–17:00"


def test_form_reports_one_message_per_field() -> None:
    errors = validate_appointment_form(
        customer_id=0,
        dentist_id=None,
        appointment_date_time=SATURDAY.replace(hour=20),
        procedure_type="   ",
        now=NOW,
    )

    assert set(errors) == {"customerId", "dentistId", "appointmentDateTime", "procedureType"}
    assert errors["appointmentDateTime"] == f"Date and time {business_hours_reason()}"


def test_valid_form_has_no_errors() -> None:
    errors = validate_appointment_form(
        customer_id=1,
        dentist_id=2,
        appointment_date_time=TUESDAY.replace(hour=11),
        procedure_type="Cleaning",
        now=NOW,
    )

    assert errors == {}
