"""Folder management endpoints"""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from photo_restore.api.dependencies import get_current_user_id
from photo_restore.database import get_db
from photo_restore.schemas import (
    FolderCreate,
    FolderListResponse,
    FolderResponse,
    FolderTreeNode,
    FolderTreeResponse,
    FolderUpdate,
)
from photo_restore.services.folder_service import FolderService

router = APIRouter(prefix="/api/folders", tags=["Folders"])


@router.get("", response_model=FolderListResponse, status_code=status.HTTP_200_OK)
async def list_folders(
    parentId: Optional[UUID] = Query(None, description="Parent folder; root level when omitted"),
    all: bool = Query(False, description="Return every folder as a flat list"),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    List one level of the folder tree, ordered by (sort_order, name)

    With all=true, every live folder is returned flat.
    """
    if all:
        folders = await FolderService.list_all(db, user_id)
    else:
        folders = await FolderService.list_children(db, user_id, parentId)

    return FolderListResponse(folders=[FolderResponse.model_validate(f) for f in folders])


@router.get("/tree", response_model=FolderTreeResponse, status_code=status.HTTP_200_OK)
async def get_folder_tree(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Nested folder tree"""
    tree = await FolderService.get_tree(db, user_id)
    return FolderTreeResponse(folders=[FolderTreeNode.model_validate(node) for node in tree])


@router.post("", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
async def create_folder(
    request: FolderCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a folder

    Raises:
        404: parentId is not one of the user's folders
    """
    folder = await FolderService.create_folder(
        db,
        user_id,
        name=request.name,
        parent_id=request.parent_id,
        sort_order=request.sort_order,
    )
    return FolderResponse.model_validate(folder)


@router.patch("/{folder_id}", response_model=FolderResponse, status_code=status.HTTP_200_OK)
async def update_folder(
    folder_id: UUID,
    request: FolderUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Rename, reorder or move a folder

    Raises:
        404: Folder or new parent not found
        409: New parent is the folder itself or one of its descendants
    """
    changes = request.model_dump(exclude_unset=True)
    for field in ("name", "sort_order"):
        if field in changes and changes[field] is None:
            del changes[field]

    folder = await FolderService.update_folder(db, user_id, folder_id, changes)
    return FolderResponse.model_validate(folder)


@router.delete("/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_folder(
    folder_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete a folder; its subfolders move up a level and its photos move to the root"""
    await FolderService.delete_folder(db, user_id, folder_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
