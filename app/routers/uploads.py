from fastapi import APIRouter, Depends, UploadFile, File, Form
from pydantic import BaseModel
from typing import Optional
from app.core.dependencies import CurrentUser, require_admin, get_uploader
from app.core.exceptions import ValidationError

router = APIRouter()

# Max file size: 5MB for images, 25MB for highlight videos
MAX_IMAGE_SIZE = 5 * 1024 * 1024
MAX_VIDEO_SIZE = 25 * 1024 * 1024

# Allowed content types
IMAGE_TYPES = ["image/jpeg", "image/png", "image/webp", "image/gif"]
VIDEO_TYPES = ["video/mp4", "video/webm"]

FOLDERS = ["images", "events", "venues", "promos", "partners", "galleries", "highlights"]


class UploadResponse(BaseModel):
    """Upload response"""
    success: bool
    url: Optional[str] = None
    key: Optional[str] = None


@router.post("/image", response_model=UploadResponse)
async def upload_image(
    file: UploadFile = File(...),
    folder: str = Form("images"),
    user: CurrentUser = Depends(require_admin),
    uploader=Depends(get_uploader)
):
    """
    Upload a media file for the content editors.

    Accepts JPEG, PNG, WebP and GIF up to 5MB, and MP4/WebM up to 25MB.
    Returns the public URL to put in the uploader field.
    """
    if file.content_type not in IMAGE_TYPES + VIDEO_TYPES:
        raise ValidationError(
            f"File type not allowed. Allowed: {', '.join(IMAGE_TYPES + VIDEO_TYPES)}"
        )

    if folder not in FOLDERS:
        raise ValidationError(f"Unknown folder '{folder}'")

    content = await file.read()

    max_size = MAX_VIDEO_SIZE if file.content_type in VIDEO_TYPES else MAX_IMAGE_SIZE
    if len(content) > max_size:
        raise ValidationError(f"File too large. Max: {max_size // (1024 * 1024)}MB")
    if not content:
        raise ValidationError("File is empty")

    result = await uploader.upload_image(content, file.filename or "upload", file.content_type, folder=folder)
    return UploadResponse(success=True, url=result["url"], key=result["key"])
