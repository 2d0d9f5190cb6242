"""Profile schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class ProfileUpdate(BaseModel):
    """Profile update schema"""

    model_config = ConfigDict(populate_by_name=True)

    display_name: Optional[str] = Field(None, max_length=255, alias="displayName")


class ProfileResponse(BaseModel):
    """Profile response schema"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    display_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime
