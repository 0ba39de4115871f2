"""Banner image storage on local disk, served by the /static mount."""
import logging
import uuid
from pathlib import Path

from fastapi import HTTPException, UploadFile, status

from eventhub.config import settings

logger = logging.getLogger(__name__)

_EXTENSIONS = {"image/jpeg": ".jpg", "image/png": ".png", "image/webp": ".webp"}


async def save_banner(file: UploadFile, event_id: str) -> str:
    """Validate and store an uploaded banner; returns its public URL."""
    if file.content_type not in settings.ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported image type: {file.content_type}",
        )

    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please upload a file")
    if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File exceeds {settings.MAX_UPLOAD_SIZE_MB} MB",
        )

    folder = Path(settings.MEDIA_ROOT) / "banners"
    folder.mkdir(parents=True, exist_ok=True)
    filename = f"{event_id}-{uuid.uuid4().hex[:8]}{_EXTENSIONS.get(file.content_type, '')}"
    (folder / filename).write_bytes(content)
    logger.info("Stored banner %s (%d bytes) for event %s", filename, len(content), event_id)
    return f"{settings.MEDIA_URL}/banners/{filename}"
