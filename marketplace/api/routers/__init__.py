"""API routers for the marketplace."""

from . import auth
from . import applications
from . import events
from . import tickets
from . import dashboard
from . import access
from . import uploads
from . import inquiries
from . import health

__all__ = [
    "auth",
    "applications",
    "events",
    "tickets",
    "dashboard",
    "access",
    "uploads",
    "inquiries",
    "health",
]
