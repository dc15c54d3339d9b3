"""Domain error taxonomy for the marketplace.

Domain code raises these; the API layer translates them into structured
error responses (see ``marketplace.api.errors``).
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Stable, user-safe error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    AUTH_ERROR = "AUTH_ERROR"
    PROVIDER_ERROR = "PROVIDER_ERROR"


class MarketplaceError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.PROVIDER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(MarketplaceError):
    """Malformed or missing required input."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str = "Invalid input", fields: Optional[dict[str, str]] = None) -> None:
        super().__init__(message)
        self.fields = fields or {}


class NotAuthenticatedError(MarketplaceError):
    """Raised when an operation needs a session that is absent."""

    code = ErrorCode.NOT_AUTHENTICATED

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class NotAuthorizedError(MarketplaceError):
    """Raised when the caller's role does not permit the operation."""

    code = ErrorCode.NOT_AUTHORIZED

    def __init__(self, required_permission: Optional[str] = None) -> None:
        message = "Not authorized"
        if required_permission:
            message = f"Not authorized: requires {required_permission}"
        super().__init__(message)
        self.required_permission = required_permission


class NotFoundError(MarketplaceError):
    """Raised when a referenced entity does not exist."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(MarketplaceError):
    """Raised when a status change is attempted from the wrong source state."""

    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, message: str, from_state: Optional[str] = None, decision: Optional[str] = None) -> None:
        super().__init__(message)
        self.from_state = from_state
        self.decision = decision


class PartialFailureError(MarketplaceError):
    """The entity decision was stored but the dependent user update was not."""

    code = ErrorCode.PARTIAL_FAILURE

    def __init__(self, application_id: object, decision: str) -> None:
        super().__init__(
            f"Application marked {decision} but user role update failed. "
            "Please retry the role update."
        )
        self.application_id = application_id
        self.decision = decision


class AuthError(MarketplaceError):
    """Raised by the authentication provider (bad credentials, expired token, ...)."""

    code = ErrorCode.AUTH_ERROR

    def __init__(self, message: str, reason: str = "invalid_credentials") -> None:
        super().__init__(message)
        self.reason = reason


class ProviderError(MarketplaceError):
    """The entity store or auth provider failed unexpectedly."""

    code = ErrorCode.PROVIDER_ERROR

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(message)
