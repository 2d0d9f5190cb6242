"""Photo library service: uploads, enhancement, and the photo/version ledger"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from photo_restore.config import settings
from photo_restore.models import (
    EnhancementJob,
    JobStatus,
    Photo,
    PhotoVersion,
    StorageObject,
)
from photo_restore.monitoring.metrics import metrics_collector
from photo_restore.services.enhancement_job_service import EnhancementJobService
from photo_restore.services.folder_service import FolderService
from photo_restore.services.errors import NotFoundError
from photo_restore.services.image_service import ImageService
from photo_restore.services.restoration_client import (
    RestorationModelClient,
    RestorationResult,
)
from photo_restore.services.s3_service import S3Service, StoredBlob, compute_checksum

logger = logging.getLogger(__name__)


ORIGINAL_LABEL = "Original"
UPDATABLE_PHOTO_FIELDS = {
    "title",
    "description",
    "favorite",
    "rating",
    "captured_date",
    "assigned_date",
    "folder_id",
}


def enhanced_label(prior_enhanced_count: int) -> str:
    """Label for the next enhanced version: "Enhanced v1", "Enhanced v2", ..."""
    return f"Enhanced v{prior_enhanced_count + 1}"


def job_parameters(
    additional_instructions: Optional[str] = None,
    options: Optional[Dict[str, Optional[bool]]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build the parameters bag stored on an enhancement job"""
    parameters: Dict[str, Any] = dict(extra)
    for name, value in (options or {}).items():
        if value is not None:
            parameters[name] = value
    if additional_instructions:
        parameters["additional_instructions"] = additional_instructions
    return parameters


class PhotoLibraryService:
    """
    Keeps photos, their versions, the blobs behind them and the enhancement
    jobs that produced them consistent.

    Rows for one operation are written in a single transaction. Blobs are
    written before the rows and deleted again if the rows cannot be
    committed. Enhancement commits the job at queued and at running so the
    ledger shows in-flight work even if the process dies.
    """

    def __init__(
        self,
        db: AsyncSession,
        s3_service: S3Service,
        restoration_client: Optional[RestorationModelClient] = None,
    ):
        self.db = db
        self.s3_service = s3_service
        self.restoration_client = restoration_client

    # ------------------------------------------------------------------
    # Blob helpers
    # ------------------------------------------------------------------

    async def _store_blob(
        self, owner_id: UUID, data: bytes, mime_type: str, is_original: bool
    ) -> Tuple[StoredBlob, StorageObject]:
        """Write bytes to the store and build (but not add) the StorageObject row"""
        width, height = ImageService.read_dimensions(data)
        blob = await asyncio.to_thread(
            self.s3_service.put, str(owner_id), data, mime_type, is_original
        )
        storage_object = StorageObject(
            user_id=owner_id,
            bucket=blob.bucket,
            object_key=blob.object_key,
            checksum_sha256=compute_checksum(data),
            byte_size=len(data),
            mime_type=mime_type,
            width=width,
            height=height,
        )
        return blob, storage_object

    async def _delete_blobs(self, blobs: Iterable[StoredBlob]) -> None:
        """Compensating cleanup; failures are logged and left as orphans"""
        for blob in blobs:
            try:
                await asyncio.to_thread(self.s3_service.delete, blob.bucket, blob.object_key)
            except Exception as e:
                logger.warning(
                    f"Failed to delete orphaned blob {blob.bucket}/{blob.object_key}: {e}"
                )

    def attach_signed_urls(self, versions: Iterable[PhotoVersion]) -> None:
        """
        Set a freshly issued signed_url on each version.

        URLs are never persisted; every read gets new ones.
        """
        for version in versions:
            storage_object = version.storage_object
            version.signed_url = self.s3_service.signed_url(
                storage_object.bucket, storage_object.object_key
            )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _get_live_photo(self, owner_id: UUID, photo_id: UUID) -> Photo:
        result = await self.db.execute(
            select(Photo).where(
                Photo.id == photo_id,
                Photo.user_id == owner_id,
                Photo.deleted_at.is_(None),
            )
        )
        photo = result.scalar_one_or_none()
        if not photo:
            raise NotFoundError("Photo", photo_id)
        return photo

    async def _get_input_version(
        self, owner_id: UUID, photo_id: UUID, version_id: Optional[UUID]
    ) -> PhotoVersion:
        """The requested live version of the photo, or its live original"""
        query = select(PhotoVersion).where(
            PhotoVersion.photo_id == photo_id,
            PhotoVersion.user_id == owner_id,
            PhotoVersion.deleted_at.is_(None),
        )
        if version_id:
            query = query.where(PhotoVersion.id == version_id)
        else:
            query = query.where(PhotoVersion.is_original.is_(True))

        result = await self.db.execute(query)
        version = result.unique().scalar_one_or_none()
        if not version:
            raise NotFoundError("Version", version_id)
        return version

    async def _count_enhanced_versions(self, photo_id: UUID) -> int:
        """Non-original versions ever created for the photo, deleted ones included"""
        result = await self.db.execute(
            select(func.count(PhotoVersion.id)).where(
                PhotoVersion.photo_id == photo_id,
                PhotoVersion.is_original.is_(False),
            )
        )
        return result.scalar_one()

    async def get_photo(
        self, owner_id: UUID, photo_id: UUID, include_deleted: bool = False
    ) -> Photo:
        """
        Get a photo with versions, jobs, tags and folder loaded.

        Args:
            owner_id: Requesting user
            photo_id: Photo id
            include_deleted: Also return a soft-deleted photo

        Raises:
            NotFoundError: Photo missing, owned by someone else, or deleted
                (unless include_deleted)
        """
        query = (
            select(Photo)
            .options(
                selectinload(Photo.versions),
                selectinload(Photo.jobs),
                selectinload(Photo.tags),
                selectinload(Photo.folder),
            )
            .where(Photo.id == photo_id, Photo.user_id == owner_id)
            .execution_options(populate_existing=True)
        )
        if not include_deleted:
            query = query.where(Photo.deleted_at.is_(None))

        result = await self.db.execute(query)
        photo = result.scalar_one_or_none()
        if not photo:
            raise NotFoundError("Photo", photo_id)
        return photo

    async def list_photos(
        self,
        owner_id: UUID,
        folder_id: Optional[UUID] = None,
        root_only: bool = False,
        favorites_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Photo], int]:
        """
        List the user's live photos, newest first.

        Args:
            owner_id: Requesting user
            folder_id: Only photos in this folder
            root_only: Only photos outside any folder
            favorites_only: Only favorites
            limit: Page size
            offset: Page offset

        Returns:
            (photos, total matching count)
        """
        conditions = [Photo.user_id == owner_id, Photo.deleted_at.is_(None)]
        if root_only:
            conditions.append(Photo.folder_id.is_(None))
        elif folder_id:
            conditions.append(Photo.folder_id == folder_id)
        if favorites_only:
            conditions.append(Photo.favorite.is_(True))

        count_result = await self.db.execute(select(func.count(Photo.id)).where(*conditions))
        total = count_result.scalar_one()

        result = await self.db.execute(
            select(Photo)
            .options(selectinload(Photo.versions), selectinload(Photo.tags))
            .where(*conditions)
            .order_by(Photo.created_at.desc())
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), total

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def upload_photo(
        self,
        owner_id: UUID,
        data: bytes,
        mime_type: Optional[str],
        title: Optional[str] = None,
        description: Optional[str] = None,
        folder_id: Optional[UUID] = None,
        captured_date: Optional[date] = None,
        assigned_date: Optional[date] = None,
    ) -> Photo:
        """
        Store an uploaded image as a new photo with its original version.

        Raises:
            InvalidFileTypeError, EmptyFileError, FileTooLargeError: Bad upload
            NotFoundError: folder_id is not a live folder of the user
            S3ConnectionError: Blob store failure
        """
        self.s3_service.validate_file(len(data), mime_type)
        if folder_id:
            await FolderService.get_folder(self.db, owner_id, folder_id)

        blob, storage_object = await self._store_blob(owner_id, data, mime_type, is_original=True)

        try:
            photo = Photo(
                user_id=owner_id,
                folder_id=folder_id,
                title=title or "Untitled",
                description=description,
                captured_date=captured_date,
                assigned_date=assigned_date,
            )
            original = PhotoVersion(
                user_id=owner_id,
                photo=photo,
                storage_object=storage_object,
                is_original=True,
                label=ORIGINAL_LABEL,
            )
            self.db.add_all([storage_object, photo, original])
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            await self._delete_blobs([blob])
            metrics_collector.record_upload(source="upload", status="failed")
            raise

        metrics_collector.record_upload(source="upload", status="success")
        logger.info(f"Uploaded photo {photo.id} for user {owner_id}")
        return await self.get_photo(owner_id, photo.id)

    async def enhance_photo(
        self,
        owner_id: UUID,
        photo_id: UUID,
        version_id: Optional[UUID] = None,
        additional_instructions: Optional[str] = None,
        options: Optional[Dict[str, Optional[bool]]] = None,
    ) -> Tuple[EnhancementJob, PhotoVersion]:
        """
        Run the restoration model on a version of a photo and record the result.

        Args:
            owner_id: Requesting user
            photo_id: Photo to enhance
            version_id: Input version; the original when omitted
            additional_instructions: Free text appended to the prompt
            options: colorize / modernize / digitize flags

        Returns:
            (succeeded job, new version)

        Raises:
            NotFoundError: Photo or version not found
            RestorationError: Model refused or could not be reached; the job
                is marked failed before this propagates
            S3ConnectionError: Blob store failure; the job is marked failed
        """
        photo = await self._get_live_photo(owner_id, photo_id)
        input_version = await self._get_input_version(owner_id, photo.id, version_id)
        input_object = input_version.storage_object

        job = await EnhancementJobService.create_job(
            self.db,
            owner_id=owner_id,
            photo_id=photo.id,
            input_version_id=input_version.id,
            model_name=self.restoration_client.model_name,
            parameters=job_parameters(additional_instructions, options),
        )
        await self.db.commit()
        await EnhancementJobService.mark_running(self.db, job)
        await self.db.commit()
        job_id = job.id

        output_blob: Optional[StoredBlob] = None
        try:
            input_bytes = await asyncio.to_thread(
                self.s3_service.get_bytes, input_object.bucket, input_object.object_key
            )
            result = await self.restoration_client.restore(
                input_bytes,
                input_object.mime_type,
                additional_instructions=additional_instructions,
                options=options,
            )

            label = enhanced_label(await self._count_enhanced_versions(photo.id))
            output_blob, storage_object = await self._store_blob(
                owner_id, result.image_bytes, result.mime_type, is_original=False
            )
            version = PhotoVersion(
                user_id=owner_id,
                photo_id=photo.id,
                storage_object=storage_object,
                is_original=False,
                parent_version_id=input_version.id,
                label=label,
            )
            self.db.add_all([storage_object, version])
            await self.db.flush()

            await EnhancementJobService.mark_succeeded(
                self.db, job, version.id, model_version=result.model_version
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            if output_blob:
                await self._delete_blobs([output_blob])
            await self._fail_job(job, job_id, e)
            raise

        metrics_collector.record_job_finished(JobStatus.SUCCEEDED.value)
        metrics_collector.record_upload(source="enhance", status="success")
        logger.info(f"Photo {photo.id} enhanced as version {version.id} ({label})")
        return job, version

    async def _fail_job(self, job: EnhancementJob, job_id: UUID, error: Exception) -> None:
        """Best-effort write marking the job failed with the error text"""
        try:
            await self.db.refresh(job)
            await EnhancementJobService.mark_failed(
                self.db, job, str(error) or error.__class__.__name__
            )
            await self.db.commit()
            metrics_collector.record_job_finished(JobStatus.FAILED.value)
        except Exception as e:
            logger.warning(f"Could not mark enhancement job {job_id} failed: {e}")
            await self.db.rollback()

    async def enhance_image(
        self,
        data: bytes,
        mime_type: Optional[str],
        additional_instructions: Optional[str] = None,
        options: Optional[Dict[str, Optional[bool]]] = None,
    ) -> RestorationResult:
        """Run the model on raw bytes without persisting anything"""
        self.s3_service.validate_file(len(data), mime_type)
        return await self.restoration_client.restore(
            data, mime_type, additional_instructions=additional_instructions, options=options
        )

    async def save_to_library(
        self,
        owner_id: UUID,
        original_data: bytes,
        original_mime_type: Optional[str],
        enhanced_data: bytes,
        enhanced_mime_type: Optional[str],
        title: Optional[str] = None,
        assigned_date: Optional[date] = None,
        folder_id: Optional[UUID] = None,
        notes: Optional[str] = None,
        additional_instructions: Optional[str] = None,
    ) -> Photo:
        """
        Store an original and an already enhanced image as a new photo.

        Creates the photo, the original version, the enhanced version parented
        to it, and a succeeded job recording the enhancement.
        """
        self.s3_service.validate_file(len(original_data), original_mime_type)
        self.s3_service.validate_file(len(enhanced_data), enhanced_mime_type)
        if folder_id:
            await FolderService.get_folder(self.db, owner_id, folder_id)

        blobs: List[StoredBlob] = []
        try:
            original_blob, original_object = await self._store_blob(
                owner_id, original_data, original_mime_type, is_original=True
            )
            blobs.append(original_blob)
            enhanced_blob, enhanced_object = await self._store_blob(
                owner_id, enhanced_data, enhanced_mime_type, is_original=False
            )
            blobs.append(enhanced_blob)

            photo = Photo(
                user_id=owner_id,
                folder_id=folder_id,
                title=title or "Untitled",
                assigned_date=assigned_date,
            )
            original = PhotoVersion(
                user_id=owner_id,
                photo=photo,
                storage_object=original_object,
                is_original=True,
                label=ORIGINAL_LABEL,
            )
            enhanced = PhotoVersion(
                user_id=owner_id,
                photo=photo,
                storage_object=enhanced_object,
                is_original=False,
                parent_version=original,
                label=enhanced_label(0),
                notes=notes,
            )
            self.db.add_all([original_object, enhanced_object, photo, original, enhanced])
            await self.db.flush()

            model_name = (
                self.restoration_client.model_name
                if self.restoration_client
                else settings.gemini_model
            )
            await EnhancementJobService.record_completed_job(
                self.db,
                owner_id=owner_id,
                photo_id=photo.id,
                input_version_id=original.id,
                output_version_id=enhanced.id,
                model_name=model_name,
                parameters=job_parameters(additional_instructions, source="client"),
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            await self._delete_blobs(blobs)
            metrics_collector.record_upload(source="save_to_library", status="failed")
            raise

        metrics_collector.record_job_finished(JobStatus.SUCCEEDED.value)
        metrics_collector.record_upload(source="save_to_library", status="success")
        logger.info(f"Saved photo {photo.id} with enhanced version for user {owner_id}")
        return await self.get_photo(owner_id, photo.id)

    async def update_photo(
        self, owner_id: UUID, photo_id: UUID, changes: Dict[str, Any]
    ) -> Photo:
        """
        Apply metadata changes to a live photo.

        Args:
            owner_id: Requesting user
            photo_id: Photo to update
            changes: Field values keyed by column name; folder_id None moves
                the photo to the root

        Raises:
            NotFoundError: Photo or target folder not found
        """
        photo = await self._get_live_photo(owner_id, photo_id)

        if changes.get("folder_id"):
            await FolderService.get_folder(self.db, owner_id, changes["folder_id"])

        for field, value in changes.items():
            if field in UPDATABLE_PHOTO_FIELDS:
                setattr(photo, field, value)
        photo.updated_at = datetime.utcnow()

        await self.db.commit()
        logger.info(f"Updated photo {photo.id}: {sorted(changes)}")
        return await self.get_photo(owner_id, photo.id)

    async def soft_delete_photo(self, owner_id: UUID, photo_id: UUID) -> None:
        """Soft-delete a photo and all of its live versions"""
        photo = await self._get_live_photo(owner_id, photo_id)

        result = await self.db.execute(
            select(PhotoVersion).where(
                PhotoVersion.photo_id == photo.id,
                PhotoVersion.deleted_at.is_(None),
            )
        )
        versions = result.unique().scalars().all()

        now = datetime.utcnow()
        photo.deleted_at = now
        for version in versions:
            version.deleted_at = now

        await self.db.commit()
        logger.info(f"Soft-deleted photo {photo.id} and {len(versions)} versions")
