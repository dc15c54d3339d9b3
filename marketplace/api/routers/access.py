"""View access decisions for the web client."""

from fastapi import APIRouter, Depends, Query

from marketplace.api.deps import get_session_context
from marketplace.api.schemas.misc import AccessDecisionResponse
from marketplace.core.access import resolve_view
from marketplace.core.session import SessionContext

router = APIRouter(prefix="/access", tags=["access"])


@router.get("", response_model=AccessDecisionResponse)
def check_access(
    path: str = Query(..., min_length=1),
    context: SessionContext = Depends(get_session_context),
):
    """Whether the caller may render ``path``, or where to redirect."""
    decision, redirect_to = resolve_view(path, context)
    return AccessDecisionResponse(path=path, decision=decision.value, redirect_to=redirect_to)
