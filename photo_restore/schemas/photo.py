"""Photo API schemas"""

from datetime import date, datetime
from typing import Dict, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from photo_restore.schemas.enhancement_job import EnhancementJobSummary
from photo_restore.schemas.folder import FolderSummary
from photo_restore.schemas.photo_version import PhotoVersionResponse
from photo_restore.schemas.tag import TagResponse


class PhotoResponse(BaseModel):
    """Response schema for photos in lists"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Photo ID")
    folder_id: Optional[UUID] = Field(None, description="Containing folder, null at root")
    title: str
    description: Optional[str] = None
    favorite: bool = False
    rating: Optional[int] = None
    captured_date: Optional[date] = None
    assigned_date: Optional[date] = None
    versions: list[PhotoVersionResponse] = Field(default_factory=list)
    tags: list[TagResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None


class PhotoDetailResponse(PhotoResponse):
    """Photo with its job history and folder"""
    folder: Optional[FolderSummary] = None
    jobs: list[EnhancementJobSummary] = Field(default_factory=list)


class PhotoListResponse(BaseModel):
    """Response schema for list of photos"""

    photos: list[PhotoResponse] = Field(..., description="List of photos")
    total: int = Field(..., description="Total number of matching photos")
    limit: int
    offset: int


class PhotoUpdate(BaseModel):
    """Photo metadata update - all fields optional, folderId null moves to root"""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    favorite: Optional[bool] = None
    rating: Optional[int] = Field(None, ge=0, le=5)
    captured_date: Optional[date] = Field(None, alias="capturedDate")
    assigned_date: Optional[date] = Field(None, alias="assignedDate")
    folder_id: Optional[UUID] = Field(None, alias="folderId")


class EnhanceRequest(BaseModel):
    """Request schema for enhancing a stored photo"""

    model_config = ConfigDict(populate_by_name=True)

    version_id: Optional[UUID] = Field(
        None, alias="versionId", description="Input version, the original when omitted"
    )
    additional_instructions: Optional[str] = Field(
        None, alias="additionalInstructions", max_length=2000
    )
    colorize: Optional[bool] = None
    modernize: Optional[bool] = None
    digitize: Optional[bool] = None

    def options(self) -> Dict[str, Optional[bool]]:
        return {
            "colorize": self.colorize,
            "modernize": self.modernize,
            "digitize": self.digitize,
        }


class EnhanceResponse(BaseModel):
    """Job and the version it produced"""
    job: EnhancementJobSummary
    version: PhotoVersionResponse


class StatelessEnhanceResponse(BaseModel):
    """Restored image returned inline, nothing persisted"""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    image: str = Field(..., description="Base64-encoded image bytes")
    mime_type: str = Field(..., alias="mimeType")
