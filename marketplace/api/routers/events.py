"""Event catalog and event request endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from marketplace.api.deps import (
    get_catalog,
    get_notifications,
    get_session_context,
    get_workflow,
    require_roles,
)
from marketplace.api.schemas.common import PaginatedResponse
from marketplace.api.schemas.workflow import (
    CategoryListResponse,
    DecisionRequest,
    EventResponse,
    OrganizerEventResponse,
    ReviewHistoryResponse,
)
from marketplace.core.access.roles import Role
from marketplace.core.session import SessionContext
from marketplace.core.workflow import EventRequestInput, ReviewState, ReviewSubject, WorkflowService
from marketplace.services import CatalogService, NotificationService

router = APIRouter(prefix="/events", tags=["events"])

admin_only = require_roles(Role.ADMIN)


@router.get("", response_model=List[EventResponse])
def list_events(
    category: Optional[str] = None,
    search: Optional[str] = None,
    catalog: CatalogService = Depends(get_catalog),
):
    """Public listing of approved events, soonest first."""
    return catalog.list_events(category=category, search=search)


@router.get("/categories", response_model=CategoryListResponse)
def list_categories(catalog: CatalogService = Depends(get_catalog)):
    return CategoryListResponse(categories=catalog.categories())


@router.get("/mine", response_model=List[OrganizerEventResponse])
def list_my_events(
    context: SessionContext = Depends(get_session_context),
    catalog: CatalogService = Depends(get_catalog),
):
    """The organizer's own events in every state, with sales totals."""
    return [
        OrganizerEventResponse(
            event=EventResponse.model_validate(summary.event),
            tickets_sold=summary.tickets_sold,
            revenue=summary.revenue,
        )
        for summary in catalog.organizer_events(context)
    ]


@router.post("/requests", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def submit_event_request(
    body: EventRequestInput,
    context: SessionContext = Depends(get_session_context),
    workflow: WorkflowService = Depends(get_workflow),
):
    """Submit an event for admin approval."""
    return workflow.submit_event_request(context, body)


@router.get("/requests", response_model=PaginatedResponse[EventResponse])
def list_event_requests(
    status_filter: ReviewState = Query(ReviewState.PENDING, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    context: SessionContext = Depends(admin_only),
    workflow: WorkflowService = Depends(get_workflow),
):
    """Review queue for event requests."""
    listing = workflow.list_by_status(context, ReviewSubject.EVENT, status_filter)
    return PaginatedResponse.create(
        items=[EventResponse.model_validate(e) for e in listing.page(page, per_page)],
        total=listing.count(),
        page=page,
        per_page=per_page,
    )


@router.get("/requests/{event_id}", response_model=EventResponse)
def get_event_request(
    event_id: UUID,
    context: SessionContext = Depends(get_session_context),
    workflow: WorkflowService = Depends(get_workflow),
):
    return workflow.get_event_request(context, event_id)


@router.post("/requests/{event_id}/decision", response_model=EventResponse)
def decide_event_request(
    event_id: UUID,
    body: DecisionRequest,
    background_tasks: BackgroundTasks,
    context: SessionContext = Depends(admin_only),
    workflow: WorkflowService = Depends(get_workflow),
    notifications: NotificationService = Depends(get_notifications),
):
    """Approve or reject a pending event request."""
    event = workflow.decide_event_request(context, event_id, body.decision)
    if event.organizer is not None:
        background_tasks.add_task(
            notifications.notify_event_decided,
            event.organizer.email,
            event.title,
            event.date,
            event.status,
        )
    return event


@router.get("/requests/{event_id}/history", response_model=List[ReviewHistoryResponse])
def get_event_history(
    event_id: UUID,
    context: SessionContext = Depends(admin_only),
    workflow: WorkflowService = Depends(get_workflow),
):
    return workflow.get_history(context, ReviewSubject.EVENT, event_id)


@router.get("/{event_id}", response_model=EventResponse)
def get_event(event_id: UUID, catalog: CatalogService = Depends(get_catalog)):
    """Public detail of an approved event."""
    return catalog.get_event(event_id)
