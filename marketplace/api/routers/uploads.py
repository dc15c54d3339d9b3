from fastapi import APIRouter, Depends, File, UploadFile, status

from marketplace.api.deps import PermissionDependency, get_storage
from marketplace.api.schemas.misc import UploadResponse
from marketplace.core.access.permissions import Permission, Resource, Action
from marketplace.services import LocalImageStorage

router = APIRouter(prefix="/uploads", tags=["uploads"])

can_upload = PermissionDependency(Permission(Resource.UPLOADS, Action.CREATE))


@router.post(
    "/event-image",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(can_upload)],
)
async def upload_event_image(
    file: UploadFile = File(...),
    storage: LocalImageStorage = Depends(get_storage),
):
    """Store an event image and return its public URL."""
    # Read one byte past the limit so oversized files are rejected without reading them whole
    data = await file.read(storage.max_bytes + 1)
    return UploadResponse(url=storage.upload(file.filename, data, file.content_type))
