"""Enhancement job service: the status ledger for restoration requests"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple
from uuid import UUID
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from photo_restore.models.enhancement_job import EnhancementJob, JobStatus
from photo_restore.services.errors import InvalidJobTransitionError, NotFoundError

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS = {
    JobStatus.QUEUED.value: {JobStatus.RUNNING.value},
    JobStatus.RUNNING.value: {JobStatus.SUCCEEDED.value, JobStatus.FAILED.value},
    JobStatus.SUCCEEDED.value: set(),
    JobStatus.FAILED.value: set(),
}


class EnhancementJobService:
    """
    Service for enhancement job rows.

    State changes are flushed, not committed; the caller owns the transaction.
    """

    @staticmethod
    def _transition(job: EnhancementJob, status: JobStatus) -> None:
        if status.value not in ALLOWED_TRANSITIONS.get(job.status, set()):
            raise InvalidJobTransitionError(job.status, status.value)
        job.status = status.value

    @staticmethod
    async def create_job(
        db: AsyncSession,
        owner_id: UUID,
        photo_id: UUID,
        input_version_id: UUID,
        model_name: str,
        model_version: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> EnhancementJob:
        """
        Create a new job in the queued state.

        Args:
            db: Database session
            owner_id: Owning user
            photo_id: Photo being enhanced
            input_version_id: Version fed to the model
            model_name: Model identifier
            model_version: Model version, if known up front
            parameters: Opaque request parameters (user instructions, options)

        Returns:
            Created EnhancementJob
        """
        job = EnhancementJob(
            user_id=owner_id,
            photo_id=photo_id,
            input_version_id=input_version_id,
            status=JobStatus.QUEUED.value,
            model_name=model_name,
            model_version=model_version,
            parameters=parameters or {},
            queued_at=datetime.utcnow(),
        )
        db.add(job)
        await db.flush()

        logger.info(f"Created enhancement job {job.id} for photo {photo_id}")
        return job

    @staticmethod
    async def mark_running(db: AsyncSession, job: EnhancementJob) -> EnhancementJob:
        """Mark job as running"""
        EnhancementJobService._transition(job, JobStatus.RUNNING)
        job.started_at = datetime.utcnow()
        await db.flush()

        logger.info(f"Enhancement job {job.id} running")
        return job

    @staticmethod
    async def mark_succeeded(
        db: AsyncSession,
        job: EnhancementJob,
        output_version_id: UUID,
        model_version: Optional[str] = None,
    ) -> EnhancementJob:
        """Mark job as succeeded with the version it produced"""
        EnhancementJobService._transition(job, JobStatus.SUCCEEDED)
        job.output_version_id = output_version_id
        job.finished_at = datetime.utcnow()
        if model_version:
            job.model_version = model_version
        await db.flush()

        logger.info(f"Enhancement job {job.id} succeeded with version {output_version_id}")
        return job

    @staticmethod
    async def mark_failed(
        db: AsyncSession, job: EnhancementJob, error_message: str
    ) -> EnhancementJob:
        """Mark job as failed with error message"""
        EnhancementJobService._transition(job, JobStatus.FAILED)
        job.output_version_id = None
        job.error_message = error_message or "Enhancement failed"
        job.finished_at = datetime.utcnow()
        await db.flush()

        logger.info(f"Enhancement job {job.id} failed: {job.error_message}")
        return job

    @staticmethod
    async def record_completed_job(
        db: AsyncSession,
        owner_id: UUID,
        photo_id: UUID,
        input_version_id: UUID,
        output_version_id: UUID,
        model_name: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> EnhancementJob:
        """
        Record a job for an enhancement that already happened elsewhere.

        This is the one place a job is created directly in a terminal state,
        so save-to-library leaves the same audit trail as the enhance path.
        """
        now = datetime.utcnow()
        job = EnhancementJob(
            user_id=owner_id,
            photo_id=photo_id,
            input_version_id=input_version_id,
            output_version_id=output_version_id,
            status=JobStatus.SUCCEEDED.value,
            model_name=model_name,
            parameters=parameters or {},
            queued_at=now,
            started_at=now,
            finished_at=now,
        )
        db.add(job)
        await db.flush()

        logger.info(f"Recorded completed enhancement job {job.id} for photo {photo_id}")
        return job

    @staticmethod
    async def get_job(db: AsyncSession, owner_id: UUID, job_id: UUID) -> EnhancementJob:
        """
        Get a job owned by the user, with its versions loaded.

        Raises:
            NotFoundError: Job missing or owned by someone else
        """
        result = await db.execute(
            select(EnhancementJob)
            .options(
                selectinload(EnhancementJob.photo),
                selectinload(EnhancementJob.input_version),
                selectinload(EnhancementJob.output_version),
            )
            .where(EnhancementJob.id == job_id, EnhancementJob.user_id == owner_id)
        )
        job = result.scalar_one_or_none()
        if not job:
            raise NotFoundError("Job", job_id)
        return job

    @staticmethod
    async def list_jobs(
        db: AsyncSession,
        owner_id: UUID,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[list[EnhancementJob], int]:
        """
        List the user's jobs, newest first.

        Returns:
            (jobs, total matching count)
        """
        conditions = [EnhancementJob.user_id == owner_id]
        if status:
            conditions.append(EnhancementJob.status == status)

        count_result = await db.execute(
            select(func.count(EnhancementJob.id)).where(*conditions)
        )
        total = count_result.scalar_one()

        result = await db.execute(
            select(EnhancementJob)
            .options(
                selectinload(EnhancementJob.photo),
                selectinload(EnhancementJob.input_version),
                selectinload(EnhancementJob.output_version),
            )
            .where(*conditions)
            .order_by(EnhancementJob.queued_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def fail_stale_running_jobs(db: AsyncSession, older_than: timedelta) -> int:
        """
        Fail jobs stuck in running, e.g. after the process died mid-request.

        Args:
            db: Database session
            older_than: Minimum time since the job started

        Returns:
            Number of jobs marked failed
        """
        cutoff = datetime.utcnow() - older_than
        result = await db.execute(
            select(EnhancementJob).where(
                EnhancementJob.status == JobStatus.RUNNING.value,
                EnhancementJob.started_at < cutoff,
            )
        )
        stale_jobs = result.scalars().all()

        for job in stale_jobs:
            await EnhancementJobService.mark_failed(
                db, job, "Interrupted: job did not finish before the server stopped"
            )

        if stale_jobs:
            logger.warning(f"Marked {len(stale_jobs)} stale running jobs as failed")
        return len(stale_jobs)
