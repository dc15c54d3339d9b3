from typing import List

from fastapi import APIRouter, Depends

from marketplace.api.deps import get_dashboard, get_session_context
from marketplace.api.schemas.dashboard import ActivityResponse, StatsResponse, UpcomingEventResponse
from marketplace.core.session import SessionContext
from marketplace.services import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    context: SessionContext = Depends(get_session_context),
    dashboard: DashboardService = Depends(get_dashboard),
):
    """Headline numbers for the caller's role."""
    stats = dashboard.stats(context)
    return StatsResponse(role=stats.role.value, stats=stats.values)


@router.get("/activity", response_model=List[ActivityResponse])
def get_recent_activity(
    context: SessionContext = Depends(get_session_context),
    dashboard: DashboardService = Depends(get_dashboard),
):
    return dashboard.recent_activity(context)


@router.get("/upcoming", response_model=List[UpcomingEventResponse])
def get_upcoming_events(
    context: SessionContext = Depends(get_session_context),
    dashboard: DashboardService = Depends(get_dashboard),
):
    return dashboard.upcoming_events(context)
