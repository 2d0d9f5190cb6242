"""Stateless enhancement and save-to-library routes"""

import base64
import logging
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from photo_restore.api.dependencies import (
    enhance_rate_limit,
    get_current_user_id,
    get_photo_library_service,
)
from photo_restore.api.forms import optional_text, parse_date, parse_folder_id, read_upload
from photo_restore.api.photos import build_photo_response
from photo_restore.schemas import PhotoDetailResponse, StatelessEnhanceResponse
from photo_restore.services.photo_library_service import PhotoLibraryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Enhance"])


@router.post(
    "/enhance",
    response_model=StatelessEnhanceResponse,
    dependencies=[Depends(enhance_rate_limit)],
)
async def enhance_image(
    image: Optional[UploadFile] = File(None),
    additionalInstructions: Optional[str] = Form(None),
    colorize: Optional[bool] = Form(None),
    modernize: Optional[bool] = Form(None),
    digitize: Optional[bool] = Form(None),
    user_id: UUID = Depends(get_current_user_id),
    library: PhotoLibraryService = Depends(get_photo_library_service),
) -> StatelessEnhanceResponse:
    """
    Restore an image without saving anything.

    Returns the restored image base64-encoded so the client can preview it
    and later call /api/save-to-library.

    Raises:
        400: Missing file, unsupported type, empty or oversized file
        422: Model refused
        429: Rate limit exceeded
    """
    data = await read_upload(image, "No image file provided.")

    result = await library.enhance_image(
        data,
        image.content_type,
        additional_instructions=optional_text(additionalInstructions),
        options={"colorize": colorize, "modernize": modernize, "digitize": digitize},
    )
    logger.info(f"Stateless enhancement for user {user_id} returned {len(result.image_bytes)} bytes")

    return StatelessEnhanceResponse(
        success=True,
        image=base64.b64encode(result.image_bytes).decode("ascii"),
        mime_type=result.mime_type,
    )


@router.post(
    "/save-to-library",
    response_model=PhotoDetailResponse,
    status_code=status.HTTP_201_CREATED,
)
async def save_to_library(
    original: Optional[UploadFile] = File(None),
    enhanced: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    assignedDate: Optional[str] = Form(None),
    folderId: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    additionalInstructions: Optional[str] = Form(None),
    user_id: UUID = Depends(get_current_user_id),
    library: PhotoLibraryService = Depends(get_photo_library_service),
) -> PhotoDetailResponse:
    """
    Save an original and its client-side enhanced result as a new photo.

    Raises:
        400: Either file missing or invalid
        404: folderId is not one of the user's folders
    """
    original_data = await read_upload(original, "Original image is required.")
    enhanced_data = await read_upload(enhanced, "Enhanced image is required.")

    photo = await library.save_to_library(
        user_id,
        original_data,
        original.content_type,
        enhanced_data,
        enhanced.content_type,
        title=optional_text(title),
        assigned_date=parse_date(assignedDate, "assignedDate"),
        folder_id=parse_folder_id(folderId),
        notes=optional_text(notes),
        additional_instructions=optional_text(additionalInstructions),
    )
    return build_photo_response(photo, library, PhotoDetailResponse)
