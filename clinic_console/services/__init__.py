"""Service package public API definitions.

Implementations are imported lazily: the HTTP client imports
``clinic_console.services.exceptions``, which runs this module first, and the
service modules import the HTTP client in turn.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "AppointmentGateway",
    "AppointmentStore",
    "AuthService",
    "CustomerGateway",
    "DashboardService",
    "DentistGateway",
]

_SERVICE_MODULES = {
    "AppointmentGateway": "appointment",
    "AppointmentStore": "appointment_store",
    "AuthService": "auth",
    "CustomerGateway": "directory",
    "DashboardService": "dashboard",
    "DentistGateway": "directory",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .appointment import AppointmentGateway as AppointmentGateway
    from .appointment_store import AppointmentStore as AppointmentStore
    from .auth import AuthService as AuthService
    from .dashboard import DashboardService as DashboardService
    from .directory import CustomerGateway as CustomerGateway
    from .directory import DentistGateway as DentistGateway
