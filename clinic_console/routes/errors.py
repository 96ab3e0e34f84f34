from __future__ import annotations

from fastapi import HTTPException

from clinic_console.services.exceptions import (
    AppointmentValidationError,
    ConflictError,
    DownstreamServiceError,
    NotFoundError,
    ServiceError,
    StatusTransitionError,
)


def http_error(exc: ServiceError | None, fallback: str = "Request failed") -> HTTPException:
    """Translate a service failure into the HTTP error shown to the console."""

    if exc is None:
        return HTTPException(status_code=502, detail=fallback)

    detail = {"message": str(exc) or fallback}
    field_errors = getattr(exc, "field_errors", None)
    if field_errors:
        detail["fieldErrors"] = field_errors

    if isinstance(exc, AppointmentValidationError):
        return HTTPException(status_code=422, detail=detail)
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(exc, (StatusTransitionError, ConflictError)):
        return HTTPException(status_code=409, detail=detail)
    if isinstance(exc, DownstreamServiceError) and exc.status_code and 400 <= exc.status_code < 500:
        return HTTPException(status_code=exc.status_code, detail=detail)
    return HTTPException(status_code=502, detail=detail)
