"""Tests for the photo library service against SQLite and in-memory fakes"""

import pytest
import pytest_asyncio
from datetime import date, datetime
from unittest.mock import AsyncMock, patch
from uuid import uuid4
from prometheus_client import REGISTRY
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from photo_restore.models import EnhancementJob, Folder, JobStatus, PhotoVersion, StorageObject
from photo_restore.services.errors import NotFoundError
from photo_restore.services.photo_library_service import (
    PhotoLibraryService,
    enhanced_label,
    job_parameters,
)
from photo_restore.services.restoration_client import NoImageReturnedError
from photo_restore.services.s3_service import InvalidFileTypeError, S3ConnectionError, compute_checksum


@pytest.fixture
def library(db_session, fake_s3, fake_model):
    return PhotoLibraryService(db_session, fake_s3, fake_model)


@pytest_asyncio.fixture
async def uploaded_photo(library, user_id, jpeg_bytes):
    return await library.upload_photo(user_id, jpeg_bytes, "image/jpeg", title="cat.jpg")


def original_of(photo) -> PhotoVersion:
    return next(v for v in photo.versions if v.is_original)


def jobs_finished(status: str) -> float:
    return REGISTRY.get_sample_value("enhancement_jobs_total", {"status": status}) or 0.0


class TestHelpers:
    """Tests for module-level helpers"""

    def test_enhanced_label(self):
        """Test labels count up from v1"""
        assert enhanced_label(0) == "Enhanced v1"
        assert enhanced_label(4) == "Enhanced v5"

    def test_job_parameters_drops_unset_options(self):
        """Test None options are left out, False ones kept"""
        parameters = job_parameters(
            "Keep it subtle", {"colorize": True, "modernize": None, "digitize": False}
        )

        assert parameters == {
            "colorize": True,
            "digitize": False,
            "additional_instructions": "Keep it subtle",
        }

    def test_job_parameters_extra(self):
        """Test extra keys are stored as given"""
        assert job_parameters(source="client") == {"source": "client"}


@pytest.mark.asyncio
class TestUploadPhoto:
    """Tests for upload_photo"""

    async def test_upload_creates_photo_and_original(
        self, library, fake_s3, user_id, jpeg_bytes
    ):
        """Test an upload stores the blob, the photo and its original version"""
        photo = await library.upload_photo(
            user_id,
            jpeg_bytes,
            "image/jpeg",
            title="cat.jpg",
            captured_date=date(1962, 6, 1),
        )

        assert photo.user_id == user_id
        assert photo.title == "cat.jpg"
        assert photo.captured_date == date(1962, 6, 1)
        assert len(photo.versions) == 1

        original = photo.versions[0]
        assert original.is_original is True
        assert original.label == "Original"
        assert original.parent_version_id is None

        storage_object = original.storage_object
        assert storage_object.checksum_sha256 == compute_checksum(jpeg_bytes)
        assert storage_object.byte_size == len(jpeg_bytes)
        assert (storage_object.width, storage_object.height) == (16, 12)
        assert storage_object.object_key.startswith(f"{user_id}/originals/")
        assert fake_s3.objects[(storage_object.bucket, storage_object.object_key)] == jpeg_bytes

    async def test_identical_uploads_get_distinct_blobs(self, library, user_id, jpeg_bytes):
        """Test the same bytes uploaded twice are stored twice"""
        first = await library.upload_photo(user_id, jpeg_bytes, "image/jpeg")
        second = await library.upload_photo(user_id, jpeg_bytes, "image/jpeg")

        first_object = first.versions[0].storage_object
        second_object = second.versions[0].storage_object
        assert first_object.id != second_object.id
        assert first_object.object_key != second_object.object_key
        assert first_object.checksum_sha256 == second_object.checksum_sha256
        assert first.title == "Untitled"

    async def test_upload_rejects_unsupported_type(self, library, fake_s3, user_id):
        """Test a GIF is rejected before anything is stored"""
        with pytest.raises(InvalidFileTypeError):
            await library.upload_photo(user_id, b"GIF89a...", "image/gif")

        assert fake_s3.objects == {}

    async def test_upload_into_unknown_folder(self, library, fake_s3, user_id, jpeg_bytes):
        """Test a folder id that is not the user's is not found"""
        with pytest.raises(NotFoundError, match="Folder not found"):
            await library.upload_photo(user_id, jpeg_bytes, "image/jpeg", folder_id=uuid4())

        assert fake_s3.objects == {}

    async def test_failed_commit_removes_blob(self, library, db_session, fake_s3, user_id, jpeg_bytes):
        """Test the blob is deleted again when the rows cannot be written"""
        failure = OperationalError("INSERT INTO photos", {}, Exception("database is locked"))

        with patch.object(db_session, "commit", AsyncMock(side_effect=failure)):
            with pytest.raises(OperationalError):
                await library.upload_photo(user_id, jpeg_bytes, "image/jpeg")

        assert fake_s3.objects == {}
        assert len(fake_s3.deleted) == 1

        result = await db_session.execute(select(StorageObject))
        assert result.scalars().all() == []


@pytest.mark.asyncio
class TestEnhancePhoto:
    """Tests for enhance_photo"""

    async def test_enhance_original(self, library, fake_s3, fake_model, user_id, uploaded_photo, jpeg_bytes):
        """Test enhancing without a version id uses the original"""
        original = original_of(uploaded_photo)

        job, version = await library.enhance_photo(
            user_id,
            uploaded_photo.id,
            additional_instructions="Remove the crease",
            options={"colorize": True, "modernize": None, "digitize": None},
        )

        assert version.is_original is False
        assert version.parent_version_id == original.id
        assert version.label == "Enhanced v1"
        assert version.storage_object.mime_type == "image/png"
        assert version.storage_object.object_key.startswith(f"{user_id}/enhanced/")
        assert fake_s3.objects[
            (version.storage_object.bucket, version.storage_object.object_key)
        ] == fake_model.image_bytes

        assert job.status == JobStatus.SUCCEEDED.value
        assert job.input_version_id == original.id
        assert job.output_version_id == version.id
        assert job.model_name == fake_model.model_name
        assert job.model_version == "test-0001"
        assert job.parameters == {"colorize": True, "additional_instructions": "Remove the crease"}
        assert job.started_at is not None and job.finished_at is not None

        call = fake_model.calls[0]
        assert call["image_bytes"] == jpeg_bytes
        assert call["mime_type"] == "image/jpeg"
        assert call["additional_instructions"] == "Remove the crease"

    async def test_enhance_a_chosen_version(self, library, user_id, uploaded_photo):
        """Test enhancing an enhanced version parents the result to it"""
        _, first = await library.enhance_photo(user_id, uploaded_photo.id)

        _, second = await library.enhance_photo(user_id, uploaded_photo.id, version_id=first.id)

        assert second.parent_version_id == first.id
        assert second.label == "Enhanced v2"

    async def test_labels_count_deleted_versions(self, library, db_session, user_id, uploaded_photo):
        """Test labels are never reused after a version is deleted"""
        _, first = await library.enhance_photo(user_id, uploaded_photo.id)
        first.deleted_at = datetime.utcnow()
        await db_session.commit()

        _, second = await library.enhance_photo(user_id, uploaded_photo.id)

        assert second.label == "Enhanced v2"

    async def test_enhance_unknown_version(self, library, user_id, uploaded_photo):
        """Test a version id from nowhere is not found"""
        with pytest.raises(NotFoundError, match="Version not found"):
            await library.enhance_photo(user_id, uploaded_photo.id, version_id=uuid4())

    async def test_enhance_other_users_photo(self, library, other_user_id, uploaded_photo, fake_model):
        """Test another user's photo is not found and the model is never called"""
        with pytest.raises(NotFoundError, match="Photo not found"):
            await library.enhance_photo(other_user_id, uploaded_photo.id)

        assert fake_model.calls == []

    async def test_model_refusal_fails_job(self, library, db_session, fake_s3, fake_model, user_id, uploaded_photo):
        """Test a refusal leaves a failed job and no new version"""
        fake_model.error = NoImageReturnedError("I can't restore drawings.")

        with pytest.raises(NoImageReturnedError):
            await library.enhance_photo(user_id, uploaded_photo.id)

        jobs = (await db_session.execute(select(EnhancementJob))).scalars().all()
        assert len(jobs) == 1
        assert jobs[0].status == JobStatus.FAILED.value
        assert jobs[0].error_message == "I can't restore drawings."
        assert jobs[0].output_version_id is None

        versions = (await db_session.execute(select(PhotoVersion))).unique().scalars().all()
        assert len(versions) == 1
        assert fake_s3.keys_under("enhanced") == []

    async def test_storage_failure_fails_job(self, library, db_session, fake_s3, user_id, uploaded_photo):
        """Test an output upload failure is recorded on the job"""
        fake_s3.fail_puts = True

        with pytest.raises(S3ConnectionError):
            await library.enhance_photo(user_id, uploaded_photo.id)

        job = (await db_session.execute(select(EnhancementJob))).scalar_one()
        assert job.status == JobStatus.FAILED.value
        assert "ServiceUnavailable" in job.error_message

    async def test_failed_result_commit_counts_job_once(self, library, db_session, user_id, uploaded_photo):
        """Test a job whose result cannot be committed is only counted as failed"""
        real_commit = db_session.commit
        commits = []

        async def commit_failing_on_result():
            commits.append(len(commits) + 1)
            # 1: job queued, 2: job running, 3: version and succeeded job
            if len(commits) == 3:
                raise OperationalError("INSERT INTO photo_versions", {}, Exception("database is locked"))
            await real_commit()

        succeeded_before = jobs_finished("succeeded")
        failed_before = jobs_finished("failed")

        with patch.object(db_session, "commit", AsyncMock(side_effect=commit_failing_on_result)):
            with pytest.raises(OperationalError):
                await library.enhance_photo(user_id, uploaded_photo.id)

        assert jobs_finished("succeeded") == succeeded_before
        assert jobs_finished("failed") == failed_before + 1

        job = (await db_session.execute(select(EnhancementJob))).scalar_one()
        assert job.status == JobStatus.FAILED.value
        assert job.output_version_id is None


@pytest.mark.asyncio
class TestSaveToLibrary:
    """Tests for save_to_library"""

    async def test_save_creates_both_versions_and_job(
        self, library, fake_model, user_id, jpeg_bytes, png_bytes
    ):
        """Test the enhanced image is stored as v1 of a new photo with a job"""
        photo = await library.save_to_library(
            user_id,
            jpeg_bytes,
            "image/jpeg",
            png_bytes,
            "image/png",
            title="Wedding",
            assigned_date=date(1975, 1, 1),
            notes="Colorized on the phone",
            additional_instructions="Warm tones",
        )

        assert photo.title == "Wedding"
        assert photo.assigned_date == date(1975, 1, 1)
        assert len(photo.versions) == 2

        original = original_of(photo)
        enhanced_version = next(v for v in photo.versions if not v.is_original)
        assert enhanced_version.parent_version_id == original.id
        assert enhanced_version.label == "Enhanced v1"
        assert enhanced_version.notes == "Colorized on the phone"
        assert (enhanced_version.storage_object.width, enhanced_version.storage_object.height) == (32, 24)

        assert len(photo.jobs) == 1
        job = photo.jobs[0]
        assert job.status == JobStatus.SUCCEEDED.value
        assert job.input_version_id == original.id
        assert job.output_version_id == enhanced_version.id
        assert job.model_name == fake_model.model_name
        assert job.parameters == {"source": "client", "additional_instructions": "Warm tones"}
        assert fake_model.calls == []

    async def test_invalid_enhanced_file_stores_nothing(self, library, fake_s3, user_id, jpeg_bytes):
        """Test both files are validated before any blob is written"""
        with pytest.raises(InvalidFileTypeError):
            await library.save_to_library(user_id, jpeg_bytes, "image/jpeg", b"%PDF", "application/pdf")

        assert fake_s3.objects == {}


@pytest.mark.asyncio
class TestLibraryQueries:
    """Tests for get/list/update/delete"""

    async def test_list_filters(self, library, db_session, user_id, other_user_id, jpeg_bytes):
        """Test folder, root and favorites filters"""
        folder = Folder(user_id=user_id, name="Holidays")
        db_session.add(folder)
        await db_session.commit()

        in_folder = await library.upload_photo(user_id, jpeg_bytes, "image/jpeg", folder_id=folder.id)
        at_root = await library.upload_photo(user_id, jpeg_bytes, "image/jpeg")
        await library.update_photo(user_id, at_root.id, {"favorite": True})
        await library.upload_photo(other_user_id, jpeg_bytes, "image/jpeg")

        photos, total = await library.list_photos(user_id)
        assert total == 2
        assert {p.id for p in photos} == {in_folder.id, at_root.id}

        photos, _ = await library.list_photos(user_id, folder_id=folder.id)
        assert [p.id for p in photos] == [in_folder.id]

        photos, _ = await library.list_photos(user_id, root_only=True)
        assert [p.id for p in photos] == [at_root.id]

        photos, _ = await library.list_photos(user_id, favorites_only=True)
        assert [p.id for p in photos] == [at_root.id]

    async def test_list_pagination(self, library, user_id, jpeg_bytes):
        """Test limit/offset with the full total"""
        for _ in range(3):
            await library.upload_photo(user_id, jpeg_bytes, "image/jpeg")

        photos, total = await library.list_photos(user_id, limit=2, offset=2)

        assert total == 3
        assert len(photos) == 1

    async def test_update_photo(self, library, user_id, uploaded_photo):
        """Test metadata changes are applied"""
        photo = await library.update_photo(
            user_id,
            uploaded_photo.id,
            {"title": "Tabby", "rating": 4, "favorite": True, "description": "On the porch"},
        )

        assert photo.title == "Tabby"
        assert photo.rating == 4
        assert photo.favorite is True
        assert photo.description == "On the porch"

    async def test_update_photo_into_other_users_folder(self, library, db_session, user_id, other_user_id, uploaded_photo):
        """Test moving into someone else's folder is not found"""
        folder = Folder(user_id=other_user_id, name="Theirs")
        db_session.add(folder)
        await db_session.commit()

        with pytest.raises(NotFoundError, match="Folder not found"):
            await library.update_photo(user_id, uploaded_photo.id, {"folder_id": folder.id})

    async def test_soft_delete_photo(self, library, user_id, uploaded_photo):
        """Test a deleted photo disappears but can still be fetched explicitly"""
        await library.enhance_photo(user_id, uploaded_photo.id)

        await library.soft_delete_photo(user_id, uploaded_photo.id)

        photos, total = await library.list_photos(user_id)
        assert total == 0
        assert photos == []

        with pytest.raises(NotFoundError):
            await library.get_photo(user_id, uploaded_photo.id)

        deleted = await library.get_photo(user_id, uploaded_photo.id, include_deleted=True)
        assert deleted.deleted_at is not None
        assert len(deleted.versions) == 2
        assert all(v.deleted_at is not None for v in deleted.versions)

    async def test_deleted_photo_cannot_be_enhanced(self, library, user_id, uploaded_photo):
        """Test enhancing a deleted photo is not found"""
        await library.soft_delete_photo(user_id, uploaded_photo.id)

        with pytest.raises(NotFoundError):
            await library.enhance_photo(user_id, uploaded_photo.id)

    async def test_signed_urls_are_fresh(self, library, fake_s3, user_id, uploaded_photo, jpeg_bytes):
        """Test each read issues a new URL for the same bytes"""
        first = await library.get_photo(user_id, uploaded_photo.id)
        library.attach_signed_urls(first.versions)
        first_url = first.versions[0].signed_url

        second = await library.get_photo(user_id, uploaded_photo.id)
        library.attach_signed_urls(second.versions)
        second_url = second.versions[0].signed_url

        assert first_url != second_url
        assert fake_s3.resolve(first_url) == fake_s3.resolve(second_url) == jpeg_bytes
