"""Photo library API routes"""

import logging
from typing import Optional, Type
from uuid import UUID
from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from photo_restore.api.dependencies import (
    enhance_rate_limit,
    get_current_user_id,
    get_photo_library_service,
)
from photo_restore.api.forms import optional_text, parse_date, parse_folder_id, read_upload
from photo_restore.models import Photo
from photo_restore.schemas import (
    EnhanceRequest,
    EnhanceResponse,
    EnhancementJobSummary,
    PhotoDetailResponse,
    PhotoListResponse,
    PhotoResponse,
    PhotoUpdate,
    PhotoVersionResponse,
)
from photo_restore.services.photo_library_service import PhotoLibraryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/photos", tags=["Photos"])

# Columns that cannot be cleared through PATCH
NON_NULLABLE_UPDATE_FIELDS = ("title", "favorite")


def build_photo_response(
    photo: Photo,
    library: PhotoLibraryService,
    schema: Type[PhotoResponse] = PhotoResponse,
    include_deleted: bool = False,
) -> PhotoResponse:
    """Serialize a photo with signed URLs on its visible versions"""
    versions = [v for v in photo.versions if include_deleted or v.deleted_at is None]
    library.attach_signed_urls(versions)

    response = schema.model_validate(photo)
    response.versions = [PhotoVersionResponse.model_validate(v) for v in versions]
    return response


@router.post("", response_model=PhotoDetailResponse, status_code=status.HTTP_201_CREATED)
async def upload_photo(
    image: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    folderId: Optional[str] = Form(None),
    capturedDate: Optional[str] = Form(None),
    assignedDate: Optional[str] = Form(None),
    user_id: UUID = Depends(get_current_user_id),
    library: PhotoLibraryService = Depends(get_photo_library_service),
) -> PhotoDetailResponse:
    """
    Upload a photo.

    Stores the image, then creates the photo and its original version.

    Raises:
        400: Missing file, unsupported type, empty or oversized file
        404: folderId is not one of the user's folders
        500: Storage or database failure
    """
    data = await read_upload(image, "No image file provided.")

    photo = await library.upload_photo(
        user_id,
        data,
        image.content_type,
        title=optional_text(title),
        description=optional_text(description),
        folder_id=parse_folder_id(folderId),
        captured_date=parse_date(capturedDate, "capturedDate"),
        assigned_date=parse_date(assignedDate, "assignedDate"),
    )
    return build_photo_response(photo, library, PhotoDetailResponse)


@router.get("", response_model=PhotoListResponse)
async def list_photos(
    folderId: Optional[str] = Query(None, description='Folder id, or "root" for photos outside any folder'),
    favorites: bool = Query(False, description="Only favorites"),
    limit: int = Query(50, ge=1, le=100, description="Items per page"),
    offset: int = Query(0, ge=0, description="Items to skip"),
    user_id: UUID = Depends(get_current_user_id),
    library: PhotoLibraryService = Depends(get_photo_library_service),
) -> PhotoListResponse:
    """
    List the user's photos, newest first.

    Every version carries a freshly issued signed URL.
    """
    folder_id = parse_folder_id(folderId)
    photos, total = await library.list_photos(
        user_id,
        folder_id=folder_id,
        root_only=folderId is not None and folder_id is None,
        favorites_only=favorites,
        limit=limit,
        offset=offset,
    )

    return PhotoListResponse(
        photos=[build_photo_response(photo, library) for photo in photos],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{photo_id}", response_model=PhotoDetailResponse)
async def get_photo(
    photo_id: UUID,
    include_deleted: bool = Query(False, description="Return the photo even if deleted"),
    user_id: UUID = Depends(get_current_user_id),
    library: PhotoLibraryService = Depends(get_photo_library_service),
) -> PhotoDetailResponse:
    """
    Get photo details by ID: versions, jobs, tags and folder.

    Raises:
        404: Photo not found (including other users' photos)
    """
    photo = await library.get_photo(user_id, photo_id, include_deleted=include_deleted)
    return build_photo_response(
        photo, library, PhotoDetailResponse, include_deleted=include_deleted
    )


@router.patch("/{photo_id}", response_model=PhotoDetailResponse)
async def update_photo(
    photo_id: UUID,
    request: PhotoUpdate,
    user_id: UUID = Depends(get_current_user_id),
    library: PhotoLibraryService = Depends(get_photo_library_service),
) -> PhotoDetailResponse:
    """
    Update photo metadata.

    Raises:
        404: Photo or target folder not found
    """
    changes = request.model_dump(exclude_unset=True)
    for field in NON_NULLABLE_UPDATE_FIELDS:
        if field in changes and changes[field] is None:
            del changes[field]

    photo = await library.update_photo(user_id, photo_id, changes)
    return build_photo_response(photo, library, PhotoDetailResponse)


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_photo(
    photo_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    library: PhotoLibraryService = Depends(get_photo_library_service),
) -> Response:
    """Soft-delete a photo and its versions"""
    await library.soft_delete_photo(user_id, photo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{photo_id}/enhance",
    response_model=EnhanceResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enhance_rate_limit)],
)
async def enhance_photo(
    photo_id: UUID,
    request: Optional[EnhanceRequest] = None,
    user_id: UUID = Depends(get_current_user_id),
    library: PhotoLibraryService = Depends(get_photo_library_service),
) -> EnhanceResponse:
    """
    Restore a version of a photo with the generative model.

    The input is versionId, or the original when omitted. The result is a new
    version parented to the input, and a succeeded job pointing at it.

    Raises:
        404: Photo or version not found
        422: Model refused (content restrictions, region, no image returned);
            the job is recorded as failed
        429: Rate limit exceeded
        500: Model, storage or database failure; the job is recorded as failed
    """
    request = request or EnhanceRequest()

    job, version = await library.enhance_photo(
        user_id,
        photo_id,
        version_id=request.version_id,
        additional_instructions=optional_text(request.additional_instructions),
        options=request.options(),
    )
    library.attach_signed_urls([version])

    return EnhanceResponse(
        job=EnhancementJobSummary.model_validate(job),
        version=PhotoVersionResponse.model_validate(version),
    )
