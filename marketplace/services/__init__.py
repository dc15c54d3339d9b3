"""Marketplace services built on the workflow engine and the entity store."""

from marketplace.services.auth_provider import AuthProvider, PendingConfirmation, SessionEvent
from marketplace.services.auth_state import AuthState
from marketplace.services.profiles import ProfileService
from marketplace.services.catalog import CatalogService, OrganizerEventSummary
from marketplace.services.tickets import TicketService
from marketplace.services.dashboard import DashboardService
from marketplace.services.storage import LocalImageStorage
from marketplace.services.notifications import NotificationService, NotificationType

__all__ = [
    "AuthProvider",
    "PendingConfirmation",
    "SessionEvent",
    "AuthState",
    "ProfileService",
    "CatalogService",
    "OrganizerEventSummary",
    "TicketService",
    "DashboardService",
    "LocalImageStorage",
    "NotificationService",
    "NotificationType",
]
