"""Comment service"""

import logging
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from photo_restore.models import Comment, Photo, PhotoVersion
from photo_restore.services.errors import NotFoundError

logger = logging.getLogger(__name__)


class CommentService:
    """Service for notes left on photos"""

    @staticmethod
    async def _require_photo(db: AsyncSession, owner_id: UUID, photo_id: UUID) -> None:
        result = await db.execute(
            select(Photo.id).where(
                Photo.id == photo_id,
                Photo.user_id == owner_id,
                Photo.deleted_at.is_(None),
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Photo", photo_id)

    @staticmethod
    async def list_comments(db: AsyncSession, owner_id: UUID, photo_id: UUID) -> List[Comment]:
        """Live comments on a photo, oldest first"""
        await CommentService._require_photo(db, owner_id, photo_id)

        result = await db.execute(
            select(Comment)
            .where(
                Comment.photo_id == photo_id,
                Comment.user_id == owner_id,
                Comment.deleted_at.is_(None),
            )
            .order_by(Comment.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def add_comment(
        db: AsyncSession,
        owner_id: UUID,
        photo_id: UUID,
        body: str,
        version_id: Optional[UUID] = None,
    ) -> Comment:
        """
        Add a comment to a photo, optionally about one of its versions.

        Raises:
            NotFoundError: Photo not found, or version_id is not a live
                version of that photo
        """
        await CommentService._require_photo(db, owner_id, photo_id)

        if version_id:
            result = await db.execute(
                select(PhotoVersion.id).where(
                    PhotoVersion.id == version_id,
                    PhotoVersion.photo_id == photo_id,
                    PhotoVersion.deleted_at.is_(None),
                )
            )
            if result.scalar_one_or_none() is None:
                raise NotFoundError("Version", version_id)

        comment = Comment(
            user_id=owner_id,
            photo_id=photo_id,
            version_id=version_id,
            body=body,
        )
        db.add(comment)
        await db.commit()

        logger.info(f"Added comment {comment.id} to photo {photo_id}")
        return comment
