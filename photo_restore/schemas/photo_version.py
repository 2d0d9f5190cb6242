"""Photo version and storage object schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class StorageObjectResponse(BaseModel):
    """Blob metadata behind a version"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    bucket: str
    object_key: str
    checksum_sha256: str = Field(..., description="SHA-256 hex digest of the bytes")
    byte_size: int
    mime_type: str
    width: Optional[int] = None
    height: Optional[int] = None


class PhotoVersionResponse(BaseModel):
    """One immutable snapshot of a photo's pixels"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    photo_id: UUID
    is_original: bool
    parent_version_id: Optional[UUID] = None
    label: Optional[str] = None
    notes: Optional[str] = None
    storage_object: StorageObjectResponse
    signed_url: Optional[str] = Field(
        None, description="Time-limited download URL, issued fresh for this response"
    )
    created_at: datetime
    deleted_at: Optional[datetime] = None
