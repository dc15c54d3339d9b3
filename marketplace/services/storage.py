"""Local file storage for event images."""

import logging
import secrets
import time
from pathlib import Path
from typing import Optional

from marketplace.core.config import Settings, get_settings
from marketplace.core.errors import ValidationError

logger = logging.getLogger(__name__)

EVENT_IMAGES_FOLDER = "event-images"

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


class LocalImageStorage:
    """Stores uploaded images under ``media_root`` and serves them from ``media_base_url``."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.root = Path(settings.media_root)
        self.base_url = settings.media_base_url.rstrip("/")
        self.max_bytes = settings.max_upload_bytes

    def upload(self, filename: str, data: bytes, content_type: Optional[str]) -> str:
        """
        Store an image and return its public URL.

        Raises:
            ValidationError: Unsupported image type, empty, or larger than the upload limit
        """
        content_type = (content_type or "").split(";")[0].strip().lower()
        extension = _EXTENSIONS.get(content_type)
        if extension is None:
            raise ValidationError(
                "Only JPEG, PNG, GIF and WebP images can be uploaded",
                fields={"file": "Please select a JPEG, PNG, GIF or WebP image"},
            )
        if not data:
            raise ValidationError("Uploaded file is empty", fields={"file": "File is empty"})
        if len(data) > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise ValidationError(
                "Uploaded file is too large", fields={"file": f"Images must be smaller than {limit_mb}MB"}
            )

        name = f"{int(time.time() * 1000)}-{secrets.token_hex(8)}.{extension}"
        relative = Path(EVENT_IMAGES_FOLDER) / name

        target = self.root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

        logger.info("Stored image %s from %s (%d bytes)", relative, filename, len(data))
        return f"{self.base_url}/{relative.as_posix()}"
