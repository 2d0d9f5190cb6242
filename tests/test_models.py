"""
Integration tests for database models and their constraints.
"""

import pytest
from datetime import datetime
from uuid import uuid4
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photo_restore.models import (
    EnhancementJob,
    JobStatus,
    Photo,
    PhotoVersion,
    StorageObject,
    Tag,
)


def make_storage_object(user_id, key: str) -> StorageObject:
    return StorageObject(
        user_id=user_id,
        bucket="test-photos",
        object_key=key,
        checksum_sha256="0" * 64,
        byte_size=1024,
        mime_type="image/jpeg",
    )


async def create_photo_with_original(db_session: AsyncSession, user_id):
    photo = Photo(user_id=user_id, title="Grandma, 1952")
    storage_object = make_storage_object(user_id, f"{user_id}/originals/{uuid4()}.jpeg")
    original = PhotoVersion(
        user_id=user_id,
        photo=photo,
        storage_object=storage_object,
        is_original=True,
        label="Original",
    )
    db_session.add_all([photo, storage_object, original])
    await db_session.commit()
    return photo, original


class TestPhotoModel:
    """Tests for Photo model"""

    @pytest.mark.asyncio
    async def test_create_photo_defaults(self, db_session: AsyncSession):
        """Test creating a photo fills defaults"""
        photo = Photo(user_id=uuid4())
        db_session.add(photo)
        await db_session.commit()
        await db_session.refresh(photo)

        assert photo.id is not None
        assert photo.title == "Untitled"
        assert photo.favorite is False
        assert photo.deleted_at is None
        assert photo.is_deleted is False
        assert photo.created_at is not None

    @pytest.mark.asyncio
    async def test_rating_out_of_range_rejected(self, db_session: AsyncSession):
        """Test ratings are limited to 0..5"""
        db_session.add(Photo(user_id=uuid4(), rating=6))

        with pytest.raises(IntegrityError):
            await db_session.commit()

    @pytest.mark.asyncio
    async def test_soft_delete_sets_deleted_at(self, db_session: AsyncSession):
        """Test soft_delete marks the row instead of removing it"""
        photo = Photo(user_id=uuid4())
        db_session.add(photo)
        await db_session.commit()

        photo.soft_delete()
        await db_session.commit()

        result = await db_session.execute(select(Photo).where(Photo.id == photo.id))
        stored = result.scalar_one()
        assert stored.is_deleted is True


class TestPhotoVersionModel:
    """Tests for PhotoVersion model"""

    @pytest.mark.asyncio
    async def test_second_live_original_rejected(self, db_session: AsyncSession):
        """Test a photo cannot have two live originals"""
        user_id = uuid4()
        photo, _ = await create_photo_with_original(db_session, user_id)

        duplicate = PhotoVersion(
            user_id=user_id,
            photo_id=photo.id,
            storage_object=make_storage_object(user_id, f"{user_id}/originals/dup.jpeg"),
            is_original=True,
            label="Original",
        )
        db_session.add(duplicate)

        with pytest.raises(IntegrityError):
            await db_session.commit()

    @pytest.mark.asyncio
    async def test_new_original_allowed_after_soft_delete(self, db_session: AsyncSession):
        """Test the one-original rule only counts live versions"""
        user_id = uuid4()
        photo, original = await create_photo_with_original(db_session, user_id)

        original.deleted_at = datetime.utcnow()
        await db_session.commit()

        replacement = PhotoVersion(
            user_id=user_id,
            photo_id=photo.id,
            storage_object=make_storage_object(user_id, f"{user_id}/originals/new.jpeg"),
            is_original=True,
            label="Original",
        )
        db_session.add(replacement)
        await db_session.commit()

        assert replacement.id is not None

    @pytest.mark.asyncio
    async def test_many_enhanced_versions_allowed(self, db_session: AsyncSession):
        """Test non-original versions are unrestricted"""
        user_id = uuid4()
        photo, original = await create_photo_with_original(db_session, user_id)

        for n in range(3):
            db_session.add(
                PhotoVersion(
                    user_id=user_id,
                    photo_id=photo.id,
                    storage_object=make_storage_object(user_id, f"{user_id}/enhanced/{n}.png"),
                    is_original=False,
                    parent_version_id=original.id,
                    label=f"Enhanced v{n + 1}",
                )
            )
        await db_session.commit()

        result = await db_session.execute(
            select(PhotoVersion).where(PhotoVersion.photo_id == photo.id)
        )
        assert len(result.unique().scalars().all()) == 4

    @pytest.mark.asyncio
    async def test_storage_key_unique_per_bucket(self, db_session: AsyncSession):
        """Test two storage objects cannot share a bucket and key"""
        user_id = uuid4()
        db_session.add(make_storage_object(user_id, "same/key.jpeg"))
        db_session.add(make_storage_object(user_id, "same/key.jpeg"))

        with pytest.raises(IntegrityError):
            await db_session.commit()


class TestEnhancementJobModel:
    """Tests for EnhancementJob check constraints"""

    def make_job(self, **overrides) -> EnhancementJob:
        values = {
            "user_id": uuid4(),
            "photo_id": uuid4(),
            "input_version_id": uuid4(),
            "model_name": "gemini-test-image",
            "status": JobStatus.QUEUED.value,
        }
        values.update(overrides)
        return EnhancementJob(**values)

    @pytest.mark.asyncio
    async def test_queued_job_defaults(self, db_session: AsyncSession):
        """Test a new job starts queued with empty parameters"""
        job = self.make_job()
        db_session.add(job)
        await db_session.commit()

        assert job.status == "queued"
        assert job.parameters == {}
        assert job.queued_at is not None
        assert job.is_terminal is False

    @pytest.mark.asyncio
    async def test_succeeded_job_requires_output(self, db_session: AsyncSession):
        """Test succeeded jobs must reference an output version"""
        db_session.add(self.make_job(status=JobStatus.SUCCEEDED.value))

        with pytest.raises(IntegrityError):
            await db_session.commit()

    @pytest.mark.asyncio
    async def test_failed_job_requires_error_message(self, db_session: AsyncSession):
        """Test failed jobs must carry an error message"""
        db_session.add(self.make_job(status=JobStatus.FAILED.value))

        with pytest.raises(IntegrityError):
            await db_session.commit()

    @pytest.mark.asyncio
    async def test_failed_job_cannot_have_output(self, db_session: AsyncSession):
        """Test failed jobs never point at an output version"""
        db_session.add(
            self.make_job(
                status=JobStatus.FAILED.value,
                error_message="Model refused",
                output_version_id=uuid4(),
            )
        )

        with pytest.raises(IntegrityError):
            await db_session.commit()

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, db_session: AsyncSession):
        """Test status is limited to the four lifecycle values"""
        db_session.add(self.make_job(status="cancelled"))

        with pytest.raises(IntegrityError):
            await db_session.commit()


class TestTagModel:
    """Tests for Tag model"""

    @pytest.mark.asyncio
    async def test_tag_name_unique_per_user(self, db_session: AsyncSession):
        """Test one user cannot have two tags with the same name"""
        user_id = uuid4()
        db_session.add(Tag(user_id=user_id, name="family"))
        db_session.add(Tag(user_id=user_id, name="family"))

        with pytest.raises(IntegrityError):
            await db_session.commit()

    @pytest.mark.asyncio
    async def test_same_tag_name_for_different_users(self, db_session: AsyncSession):
        """Test tag names are scoped per user"""
        db_session.add(Tag(user_id=uuid4(), name="family"))
        db_session.add(Tag(user_id=uuid4(), name="family"))
        await db_session.commit()

        result = await db_session.execute(select(Tag).where(Tag.name == "family"))
        assert len(result.scalars().all()) == 2
