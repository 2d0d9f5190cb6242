"""Tags service for user tag management"""

import logging
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select, delete, insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photo_restore.models import Photo, Tag, photo_tags
from photo_restore.services.errors import NotFoundError

logger = logging.getLogger(__name__)


class TagsService:
    """
    Service for managing a user's tags and attaching them to photos.
    Tag names are unique per user.
    """

    def __init__(self, db: AsyncSession):
        """Initialize with database session"""
        self.db = db

    async def list_tags(self, owner_id: UUID) -> List[Tag]:
        """
        Get all tags of a user, ordered by name.

        Args:
            owner_id: Owning user

        Returns:
            List of Tag objects
        """
        result = await self.db.execute(
            select(Tag).where(Tag.user_id == owner_id).order_by(Tag.name)
        )
        return list(result.scalars().all())

    async def _find_tag(self, owner_id: UUID, name: str) -> Optional[Tag]:
        result = await self.db.execute(
            select(Tag).where(Tag.user_id == owner_id, Tag.name == name)
        )
        return result.scalar_one_or_none()

    async def get_or_create_tag(self, owner_id: UUID, name: str) -> Tag:
        """
        Create a tag, or return the existing one with the same name.

        Args:
            owner_id: Owning user
            name: Tag text, surrounding whitespace ignored

        Returns:
            Tag object
        """
        name = name.strip()
        tag = await self._find_tag(owner_id, name)
        if tag:
            return tag

        tag = Tag(user_id=owner_id, name=name)
        self.db.add(tag)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create of the same name
            await self.db.rollback()
            existing = await self._find_tag(owner_id, name)
            if existing is None:
                raise
            return existing

        logger.info(f"Created tag {tag.id} ({name}) for user {owner_id}")
        return tag

    async def _require_photo_and_tag(self, owner_id: UUID, photo_id: UUID, tag_id: UUID):
        photo_result = await self.db.execute(
            select(Photo.id).where(
                Photo.id == photo_id,
                Photo.user_id == owner_id,
                Photo.deleted_at.is_(None),
            )
        )
        if photo_result.scalar_one_or_none() is None:
            raise NotFoundError("Photo", photo_id)

        tag_result = await self.db.execute(
            select(Tag.id).where(Tag.id == tag_id, Tag.user_id == owner_id)
        )
        if tag_result.scalar_one_or_none() is None:
            raise NotFoundError("Tag", tag_id)

    async def attach_tag(self, owner_id: UUID, photo_id: UUID, tag_id: UUID) -> None:
        """
        Attach a tag to a photo. Attaching twice is a no-op.

        Raises:
            NotFoundError: Photo or tag not found for this user
        """
        await self._require_photo_and_tag(owner_id, photo_id, tag_id)

        existing = await self.db.execute(
            select(photo_tags.c.photo_id).where(
                photo_tags.c.photo_id == photo_id, photo_tags.c.tag_id == tag_id
            )
        )
        if existing.first() is not None:
            return

        await self.db.execute(insert(photo_tags).values(photo_id=photo_id, tag_id=tag_id))
        await self.db.commit()
        logger.info(f"Attached tag {tag_id} to photo {photo_id}")

    async def detach_tag(self, owner_id: UUID, photo_id: UUID, tag_id: UUID) -> None:
        """
        Remove a tag from a photo. Detaching a tag that is not attached is a no-op.

        Raises:
            NotFoundError: Photo or tag not found for this user
        """
        await self._require_photo_and_tag(owner_id, photo_id, tag_id)

        await self.db.execute(
            delete(photo_tags).where(
                photo_tags.c.photo_id == photo_id, photo_tags.c.tag_id == tag_id
            )
        )
        await self.db.commit()
        logger.info(f"Detached tag {tag_id} from photo {photo_id}")
