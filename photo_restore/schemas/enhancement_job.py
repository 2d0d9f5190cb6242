"""Enhancement job schemas for API requests/responses"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from photo_restore.schemas.photo_version import PhotoVersionResponse


class EnhancementJobSummary(BaseModel):
    """Schema for enhancement job rows"""

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: UUID
    photo_id: UUID
    input_version_id: UUID
    output_version_id: Optional[UUID] = None
    status: str
    model_name: str
    model_version: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    queued_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class JobPhotoSummary(BaseModel):
    """Photo reference embedded in job history rows"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str


class EnhancementJobResponse(EnhancementJobSummary):
    """Job with its photo and its input and output versions"""
    photo: Optional[JobPhotoSummary] = None
    input_version: Optional[PhotoVersionResponse] = None
    output_version: Optional[PhotoVersionResponse] = None


class EnhancementJobListResponse(BaseModel):
    """List of jobs response"""
    jobs: list[EnhancementJobResponse]
    total: int = Field(..., description="Total number of matching jobs")
    limit: int
    offset: int
