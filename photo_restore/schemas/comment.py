"""Comment schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """Comment creation schema"""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    body: str = Field(..., min_length=1, max_length=5000)
    version_id: Optional[UUID] = Field(None, alias="versionId", description="Version the comment is about")


class CommentResponse(BaseModel):
    """Comment response schema"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    photo_id: UUID
    version_id: Optional[UUID] = None
    body: str
    created_at: datetime


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
