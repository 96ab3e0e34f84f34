from typing import Dict, Optional


class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class DownstreamServiceError(ServiceError):
    """Raised when an external service returns an error response."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        field_errors: Optional[Dict[str, str]] = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.status_code = status_code
        self.field_errors = field_errors or {}


class NotFoundError(DownstreamServiceError):
    """The requested record does not exist at the remote service."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message, status_code=404, cause=cause)


class ConflictError(DownstreamServiceError):
    """The remote service rejected a duplicate unique field."""

    def __init__(
        self,
        message: str,
        *,
        field_errors: Optional[Dict[str, str]] = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, status_code=409, field_errors=field_errors, cause=cause)


class UnauthorizedError(DownstreamServiceError):
    """The session token was rejected; the session has been invalidated."""

    def __init__(self, message: str = "Session expired, please log in again", *, cause: Exception | None = None):
        super().__init__(message, status_code=401, cause=cause)


class TransportError(ServiceError):
    """Network failure, timeout or an unparseable response body."""


class StatusTransitionError(ServiceError):
    """Raised when an appointment status change is not allowed."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot change appointment status from {_status_name(current)} "
            f"to {_status_name(requested)}"
        )


class AppointmentValidationError(ServiceError):
    """Client-side form validation failed; holds one message per field."""

    def __init__(self, field_errors: Dict[str, str]):
        self.field_errors = dict(field_errors)
        summary = "; ".join(f"{field}: {message}" for field, message in self.field_errors.items())
        super().__init__(f"Invalid appointment: {summary}")


def _status_name(status) -> str:
    return getattr(status, "value", str(status))
