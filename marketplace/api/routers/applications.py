"""Seller application endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from marketplace.api.deps import get_notifications, get_session_context, get_workflow, require_roles
from marketplace.api.schemas.auth import ProfileResponse
from marketplace.api.schemas.common import PaginatedResponse
from marketplace.api.schemas.workflow import (
    DecisionRequest,
    ReviewHistoryResponse,
    SellerApplicationResponse,
)
from marketplace.core.access.roles import Role
from marketplace.core.session import SessionContext
from marketplace.core.workflow import ReviewState, ReviewSubject, SellerApplicationInput, WorkflowService
from marketplace.services import NotificationService

router = APIRouter(prefix="/applications", tags=["seller applications"])

admin_only = require_roles(Role.ADMIN)


@router.post("", response_model=SellerApplicationResponse, status_code=status.HTTP_201_CREATED)
def submit_application(
    body: SellerApplicationInput,
    context: SessionContext = Depends(get_session_context),
    workflow: WorkflowService = Depends(get_workflow),
):
    """Apply to become a seller."""
    return workflow.submit_seller_application(context, body)


@router.get("/mine", response_model=List[SellerApplicationResponse])
def list_my_applications(
    context: SessionContext = Depends(get_session_context),
    workflow: WorkflowService = Depends(get_workflow),
):
    """The caller's applications, newest first."""
    return workflow.list_own_applications(context)


@router.get("", response_model=PaginatedResponse[SellerApplicationResponse])
def list_applications(
    status_filter: ReviewState = Query(ReviewState.PENDING, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    context: SessionContext = Depends(admin_only),
    workflow: WorkflowService = Depends(get_workflow),
):
    """Review queue for seller applications."""
    listing = workflow.list_by_status(context, ReviewSubject.SELLER_APPLICATION, status_filter)
    return PaginatedResponse.create(
        items=[SellerApplicationResponse.model_validate(a) for a in listing.page(page, per_page)],
        total=listing.count(),
        page=page,
        per_page=per_page,
    )


@router.get("/{application_id}", response_model=SellerApplicationResponse)
def get_application(
    application_id: UUID,
    context: SessionContext = Depends(get_session_context),
    workflow: WorkflowService = Depends(get_workflow),
):
    return workflow.get_seller_application(context, application_id)


@router.post("/{application_id}/decision", response_model=SellerApplicationResponse)
def decide_application(
    application_id: UUID,
    body: DecisionRequest,
    background_tasks: BackgroundTasks,
    context: SessionContext = Depends(admin_only),
    workflow: WorkflowService = Depends(get_workflow),
    notifications: NotificationService = Depends(get_notifications),
):
    """
    Approve or reject a pending application.

    Responds 500 with code PARTIAL_FAILURE when the decision was stored but
    the applicant's role could not be updated; retry via ``/complete``.
    """
    application = workflow.decide_seller_application(context, application_id, body.decision)
    if application.user is not None:
        background_tasks.add_task(
            notifications.notify_application_decided,
            application.user.email,
            application.business_name,
            application.status,
        )
    return application


@router.post("/{application_id}/complete", response_model=ProfileResponse)
def complete_application_side_effect(
    application_id: UUID,
    context: SessionContext = Depends(admin_only),
    workflow: WorkflowService = Depends(get_workflow),
):
    """Re-apply the applicant's role update after a partial failure."""
    return workflow.complete_approval_side_effect(context, application_id)


@router.get("/{application_id}/history", response_model=List[ReviewHistoryResponse])
def get_application_history(
    application_id: UUID,
    context: SessionContext = Depends(admin_only),
    workflow: WorkflowService = Depends(get_workflow),
):
    """Decision history for an application."""
    return workflow.get_history(context, ReviewSubject.SELLER_APPLICATION, application_id)
