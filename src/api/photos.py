"""Bottle photo upload endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from src.api.dependencies import get_current_user, get_photo_storage
from src.config import get_settings
from src.models.user import User
from src.schemas.collection import PhotoUploadResponse
from src.services.storage import PhotoStorage, StorageError

router = APIRouter(prefix="/api/v1/photos", tags=["photos"])

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/heic",
    "image/heif",
}


@router.post("", response_model=PhotoUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_photo(
    file: Annotated[UploadFile, File(description="Bottle photo (JPEG, PNG, WebP, GIF or HEIC)")],
    current_user: Annotated[User, Depends(get_current_user)],
    storage: Annotated[PhotoStorage, Depends(get_photo_storage)],
):
    """Upload a bottle photo and return its public URL.

    Note: This endpoint must remain async because UploadFile.read() is async.
    """
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed types: {', '.join(sorted(ALLOWED_IMAGE_TYPES))}",
        )

    data = await file.read()
    max_bytes = get_settings().max_photo_bytes
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.",
        )

    try:
        photo_url = storage.upload(current_user.id, data, file.filename)
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        ) from e

    return PhotoUploadResponse(photo_url=photo_url)
