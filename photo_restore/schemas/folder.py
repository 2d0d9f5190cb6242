"""Folder schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class FolderCreate(BaseModel):
    """Folder creation schema"""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255, description="Folder name")
    parent_id: Optional[UUID] = Field(None, alias="parentId", description="Parent folder, root when null")
    sort_order: int = Field(0, alias="sortOrder")


class FolderUpdate(BaseModel):
    """Folder update schema - all fields optional, parentId null moves to root"""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    parent_id: Optional[UUID] = Field(None, alias="parentId")
    sort_order: Optional[int] = Field(None, alias="sortOrder")


class FolderResponse(BaseModel):
    """Folder response schema"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    parent_id: Optional[UUID] = None
    name: str
    sort_order: int = 0
    created_at: datetime
    updated_at: datetime


class FolderSummary(BaseModel):
    """Folder reference embedded in photo responses"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class FolderTreeNode(FolderResponse):
    """Folder with nested children"""
    children: list["FolderTreeNode"] = Field(default_factory=list)


class FolderListResponse(BaseModel):
    folders: list[FolderResponse]


class FolderTreeResponse(BaseModel):
    folders: list[FolderTreeNode]
