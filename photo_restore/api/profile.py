"""Profile endpoints"""

from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from photo_restore.api.dependencies import get_current_user_id
from photo_restore.api.forms import optional_text
from photo_restore.database import get_db
from photo_restore.schemas import ProfileResponse, ProfileUpdate
from photo_restore.services.profile_service import ProfileService

router = APIRouter(prefix="/api/profile", tags=["Profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """The caller's profile, created on first access"""
    profile = await ProfileService.get_or_create_profile(db, user_id)
    return ProfileResponse.model_validate(profile)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    request: ProfileUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    profile = await ProfileService.update_profile(
        db, user_id, optional_text(request.display_name)
    )
    return ProfileResponse.model_validate(profile)
