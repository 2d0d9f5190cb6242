"""Photo comment endpoints"""

from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from photo_restore.api.dependencies import get_current_user_id
from photo_restore.database import get_db
from photo_restore.schemas import CommentCreate, CommentListResponse, CommentResponse
from photo_restore.services.comment_service import CommentService

router = APIRouter(prefix="/api/photos/{photo_id}/comments", tags=["Comments"])


@router.get("", response_model=CommentListResponse)
async def list_comments(
    photo_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    comments = await CommentService.list_comments(db, user_id, photo_id)
    return CommentListResponse(comments=[CommentResponse.model_validate(c) for c in comments])


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    photo_id: UUID,
    request: CommentCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Comment on a photo, optionally about one of its versions

    Raises:
        404: Photo not found, or versionId is not a version of this photo
    """
    comment = await CommentService.add_comment(
        db, user_id, photo_id, request.body, version_id=request.version_id
    )
    return CommentResponse.model_validate(comment)
