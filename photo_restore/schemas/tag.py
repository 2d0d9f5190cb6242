"""Tag schemas"""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class TagCreate(BaseModel):
    """Tag creation schema"""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100, description="Tag text")


class TagResponse(BaseModel):
    """Tag response schema"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    created_at: datetime


class TagListResponse(BaseModel):
    tags: list[TagResponse]
