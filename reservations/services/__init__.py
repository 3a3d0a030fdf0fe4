"""Remote gateway, notifications and the action orchestrator."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .action_orchestrator import ActionOrchestrator, ActionResult
    from .booking_gateway import BookingGateway, RemoteResult
    from .http_gateway import HttpBookingGateway
    from .notifications import LoggingNotifier, NotificationBuilder, Notifier

__all__ = [
    "ActionOrchestrator",
    "ActionResult",
    "BookingGateway",
    "HttpBookingGateway",
    "LoggingNotifier",
    "NotificationBuilder",
    "Notifier",
    "RemoteResult",
]

_EXPORTS = {
    "ActionOrchestrator": "reservations.services.action_orchestrator",
    "ActionResult": "reservations.services.action_orchestrator",
    "BookingGateway": "reservations.services.booking_gateway",
    "RemoteResult": "reservations.services.booking_gateway",
    "HttpBookingGateway": "reservations.services.http_gateway",
    "LoggingNotifier": "reservations.services.notifications",
    "NotificationBuilder": "reservations.services.notifications",
    "Notifier": "reservations.services.notifications",
}


def __getattr__(name: str):
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(name)
    return getattr(import_module(module_name), name)
