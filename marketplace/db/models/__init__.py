"""Database models for the marketplace."""

from marketplace.db.models.account import Account
from marketplace.db.models.auth_session import AuthSessionRecord
from marketplace.db.models.auth_token import AuthToken, TokenPurpose
from marketplace.db.models.user import User
from marketplace.db.models.seller_application import SellerApplication
from marketplace.db.models.event import Event
from marketplace.db.models.ticket import Ticket
from marketplace.db.models.review_history import ReviewHistory

__all__ = [
    "Account",
    "AuthSessionRecord",
    "AuthToken",
    "TokenPurpose",
    "User",
    "SellerApplication",
    "Event",
    "Ticket",
    "ReviewHistory",
]
