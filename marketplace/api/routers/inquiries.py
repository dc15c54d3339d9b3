import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from marketplace.api.deps import get_notifications
from marketplace.api.schemas.common import SuccessResponse
from marketplace.api.schemas.misc import BusinessInquiry
from marketplace.services import NotificationService

router = APIRouter(tags=["business"])
logger = logging.getLogger(__name__)


@router.post("/business-inquiry", response_model=SuccessResponse, status_code=status.HTTP_202_ACCEPTED)
def submit_business_inquiry(
    body: BusinessInquiry,
    background_tasks: BackgroundTasks,
    notifications: NotificationService = Depends(get_notifications),
):
    """Accept a partnership/sponsorship inquiry and forward it to the team."""
    logger.info("Business inquiry (%s) from %s", body.inquiry_type.value, body.company or body.name)
    background_tasks.add_task(notifications.forward_business_inquiry, body.model_dump(mode="json"))
    return SuccessResponse(message="Inquiry submitted successfully")
