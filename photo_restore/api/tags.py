"""Tag endpoints"""

from uuid import UUID
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from photo_restore.api.dependencies import get_current_user_id
from photo_restore.database import get_db
from photo_restore.schemas import TagCreate, TagListResponse, TagResponse
from photo_restore.services.tags_service import TagsService

router = APIRouter(tags=["Tags"])


@router.get("/api/tags", response_model=TagListResponse)
async def list_tags(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """All of the user's tags, by name"""
    tags = await TagsService(db).list_tags(user_id)
    return TagListResponse(tags=[TagResponse.model_validate(t) for t in tags])


@router.post("/api/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    request: TagCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a tag; an existing tag with the same name is returned instead"""
    tag = await TagsService(db).get_or_create_tag(user_id, request.name)
    return TagResponse.model_validate(tag)


@router.post("/api/photos/{photo_id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def attach_tag(
    photo_id: UUID,
    tag_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Tag a photo"""
    await TagsService(db).attach_tag(user_id, photo_id, tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/api/photos/{photo_id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def detach_tag(
    photo_id: UUID,
    tag_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Remove a tag from a photo"""
    await TagsService(db).detach_tag(user_id, photo_id, tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
