"""Enhancement job history endpoints"""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query

from photo_restore.api.dependencies import get_current_user_id, get_photo_library_service
from photo_restore.models import EnhancementJob, JobStatus
from photo_restore.schemas import EnhancementJobListResponse, EnhancementJobResponse
from photo_restore.services.enhancement_job_service import EnhancementJobService
from photo_restore.services.photo_library_service import PhotoLibraryService

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


def build_job_response(job: EnhancementJob, library: PhotoLibraryService) -> EnhancementJobResponse:
    """Serialize a job with signed URLs on its input and output versions"""
    library.attach_signed_urls(
        version for version in (job.input_version, job.output_version) if version is not None
    )
    return EnhancementJobResponse.model_validate(job)


@router.get("", response_model=EnhancementJobListResponse)
async def list_jobs(
    status: Optional[JobStatus] = Query(None, description="Only jobs in this status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: UUID = Depends(get_current_user_id),
    library: PhotoLibraryService = Depends(get_photo_library_service),
):
    """List the user's enhancement jobs, newest first"""
    jobs, total = await EnhancementJobService.list_jobs(
        library.db,
        user_id,
        status=status.value if status else None,
        limit=limit,
        offset=offset,
    )
    return EnhancementJobListResponse(
        jobs=[build_job_response(job, library) for job in jobs],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{job_id}", response_model=EnhancementJobResponse)
async def get_job(
    job_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    library: PhotoLibraryService = Depends(get_photo_library_service),
):
    """
    Get a job by ID

    Raises:
        404: Job not found (including other users' jobs)
    """
    job = await EnhancementJobService.get_job(library.db, user_id, job_id)
    return build_job_response(job, library)
