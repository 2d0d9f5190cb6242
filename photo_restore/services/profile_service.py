"""Profile service"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from photo_restore.models import Profile

logger = logging.getLogger(__name__)


class ProfileService:
    """Per-user profiles, created on first access"""

    @staticmethod
    async def get_or_create_profile(db: AsyncSession, user_id: UUID) -> Profile:
        result = await db.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one_or_none()
        if profile:
            return profile

        profile = Profile(id=user_id)
        db.add(profile)
        await db.commit()

        logger.info(f"Created profile for user {user_id}")
        return profile

    @staticmethod
    async def update_profile(
        db: AsyncSession, user_id: UUID, display_name: Optional[str]
    ) -> Profile:
        profile = await ProfileService.get_or_create_profile(db, user_id)
        profile.display_name = display_name
        profile.updated_at = datetime.utcnow()
        await db.commit()
        return profile
