"""Translation of domain errors into HTTP responses.

Every failure leaves the API as an ``ErrorResponse`` body. Internal details
(tracebacks, SQL, required permissions) are logged, never returned.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from marketplace.api.schemas.common import ErrorResponse
from marketplace.core.access.policy import DASHBOARD_PATH, SIGN_IN_PATH
from marketplace.core.errors import (
    AuthError,
    ErrorCode,
    MarketplaceError,
    NotAuthorizedError,
    PartialFailureError,
)

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.PARTIAL_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.AUTH_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PROVIDER_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Auth failures that mean "who are you?" rather than "bad request"
UNAUTHORIZED_AUTH_REASONS = {"invalid_credentials", "invalid_token", "email_not_confirmed", "inactive"}

ERROR_TITLES = {
    ErrorCode.VALIDATION_ERROR: "Validation failed",
    ErrorCode.NOT_AUTHENTICATED: "Not authenticated",
    ErrorCode.NOT_AUTHORIZED: "Not authorized",
    ErrorCode.NOT_FOUND: "Not found",
    ErrorCode.INVALID_TRANSITION: "Invalid transition",
    ErrorCode.PARTIAL_FAILURE: "Partial failure",
    ErrorCode.AUTH_ERROR: "Authentication failed",
    ErrorCode.PROVIDER_ERROR: "Internal error",
}


def error_response(exc: MarketplaceError) -> JSONResponse:
    """Build the HTTP response for a domain error."""
    status_code = STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    body = ErrorResponse(error=ERROR_TITLES.get(exc.code, "Error"), detail=exc.message, code=exc.code.value)
    headers = None

    if exc.code == ErrorCode.VALIDATION_ERROR:
        body.fields = getattr(exc, "fields", None) or None
    elif exc.code == ErrorCode.NOT_AUTHENTICATED:
        body.redirect_to = SIGN_IN_PATH
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(exc, NotAuthorizedError):
        body.detail = "You do not have access to this resource"
        body.redirect_to = DASHBOARD_PATH
    elif isinstance(exc, PartialFailureError):
        body.retry = f"/api/applications/{exc.application_id}/complete"
    elif isinstance(exc, AuthError) and exc.reason in UNAUTHORIZED_AUTH_REASONS:
        status_code = status.HTTP_401_UNAUTHORIZED

    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    if isinstance(exc, NotAuthorizedError):
        logger.info("Denied %s %s: %s", request.method, request.url.path, exc.message)
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        fields.setdefault(".".join(loc) or "__root__", error.get("msg", "Invalid value"))
    body = ErrorResponse(
        error=ERROR_TITLES[ErrorCode.VALIDATION_ERROR],
        detail="Please correct the highlighted fields",
        code=ErrorCode.VALIDATION_ERROR.value,
        fields=fields,
    )
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=body.model_dump(exclude_none=True))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = ErrorResponse(
        error=ERROR_TITLES[ErrorCode.PROVIDER_ERROR],
        detail="An unexpected error occurred",
        code=ErrorCode.PROVIDER_ERROR.value,
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
