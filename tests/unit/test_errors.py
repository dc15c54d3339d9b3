"""Tests for the domain errors and their HTTP translation."""

import json
import uuid

import pytest

from marketplace.api.errors import error_response
from marketplace.core.errors import (
    AuthError,
    ErrorCode,
    InvalidTransitionError,
    NotAuthenticatedError,
    NotAuthorizedError,
    NotFoundError,
    PartialFailureError,
    ProviderError,
    ValidationError,
)


def _body(response):
    return json.loads(response.body)


def test_error_string_carries_code():
    assert str(NotFoundError("Event", 1)) == "NOT_FOUND: Event not found"


@pytest.mark.parametrize(
    "exc,status_code",
    [
        (ValidationError("bad"), 422),
        (NotAuthenticatedError(), 401),
        (NotAuthorizedError("events:approve"), 403),
        (NotFoundError("Event", 1), 404),
        (InvalidTransitionError("already approved", from_state="approved"), 409),
        (PartialFailureError(uuid.uuid4(), "approved"), 500),
        (AuthError("User already registered", reason="email_taken"), 400),
        (AuthError("Invalid login credentials"), 401),
        (ProviderError(), 500),
    ],
)
def test_status_codes(exc, status_code):
    assert error_response(exc).status_code == status_code


def test_validation_error_lists_fields():
    body = _body(error_response(ValidationError("bad", fields={"price": "must be positive"})))
    assert body["code"] == ErrorCode.VALIDATION_ERROR.value
    assert body["fields"] == {"price": "must be positive"}


def test_not_authenticated_points_to_sign_in():
    response = error_response(NotAuthenticatedError())
    assert response.headers["www-authenticate"] == "Bearer"
    assert _body(response)["redirect_to"] == "/sign-in"


def test_not_authorized_hides_required_permission():
    body = _body(error_response(NotAuthorizedError("seller_applications:approve")))
    assert "seller_applications" not in body["detail"]
    assert body["redirect_to"] == "/dashboard"


def test_partial_failure_names_retry_endpoint():
    application_id = uuid.uuid4()
    body = _body(error_response(PartialFailureError(application_id, "approved")))
    assert body["code"] == "PARTIAL_FAILURE"
    assert body["retry"] == f"/api/applications/{application_id}/complete"
    assert "marked approved" in body["detail"]


def test_provider_error_is_generic():
    body = _body(error_response(ProviderError()))
    assert body == {
        "error": "Internal error",
        "detail": "An unexpected error occurred",
        "code": "PROVIDER_ERROR",
    }
