"""Folder service for organizing a user's library"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from photo_restore.models import Folder, Photo
from photo_restore.services.errors import FolderCycleError, NotFoundError

logger = logging.getLogger(__name__)


def _sort_key(node: Dict[str, Any]):
    return (node["sort_order"], node["name"])


def build_folder_tree(folders: Sequence[Folder]) -> List[Dict[str, Any]]:
    """
    Turn a flat list of folders into nested nodes.

    A folder whose parent is missing from the list (deleted, or not passed
    in) becomes a root. Siblings are ordered by (sort_order, name).

    Args:
        folders: Flat folder list

    Returns:
        Root nodes, each a dict with a "children" list
    """
    nodes: Dict[UUID, Dict[str, Any]] = {
        folder.id: {
            "id": folder.id,
            "parent_id": folder.parent_id,
            "name": folder.name,
            "sort_order": folder.sort_order or 0,
            "created_at": folder.created_at,
            "updated_at": folder.updated_at,
            "children": [],
        }
        for folder in folders
    }

    roots = []
    for folder in folders:
        node = nodes[folder.id]
        parent = nodes.get(folder.parent_id) if folder.parent_id else None
        if parent is not None and parent is not node:
            parent["children"].append(node)
        else:
            roots.append(node)

    for node in nodes.values():
        node["children"].sort(key=_sort_key)
    roots.sort(key=_sort_key)
    return roots


class FolderService:
    """Service for folder CRUD and tree queries"""

    @staticmethod
    async def get_folder(db: AsyncSession, owner_id: UUID, folder_id: UUID) -> Folder:
        """
        Get a live folder owned by the user.

        Raises:
            NotFoundError: Folder missing, deleted, or owned by someone else
        """
        result = await db.execute(
            select(Folder).where(
                Folder.id == folder_id,
                Folder.user_id == owner_id,
                Folder.deleted_at.is_(None),
            )
        )
        folder = result.scalar_one_or_none()
        if not folder:
            raise NotFoundError("Folder", folder_id)
        return folder

    @staticmethod
    async def list_children(
        db: AsyncSession, owner_id: UUID, parent_id: Optional[UUID] = None
    ) -> List[Folder]:
        """One level of the tree: root folders when parent_id is None"""
        if parent_id is None:
            parent_condition = Folder.parent_id.is_(None)
        else:
            parent_condition = Folder.parent_id == parent_id

        result = await db.execute(
            select(Folder)
            .where(
                Folder.user_id == owner_id,
                Folder.deleted_at.is_(None),
                parent_condition,
            )
            .order_by(Folder.sort_order, Folder.name)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_all(db: AsyncSession, owner_id: UUID) -> List[Folder]:
        """Every live folder of the user, flat"""
        result = await db.execute(
            select(Folder)
            .where(Folder.user_id == owner_id, Folder.deleted_at.is_(None))
            .order_by(Folder.sort_order, Folder.name)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_tree(db: AsyncSession, owner_id: UUID) -> List[Dict[str, Any]]:
        folders = await FolderService.list_all(db, owner_id)
        return build_folder_tree(folders)

    @staticmethod
    async def create_folder(
        db: AsyncSession,
        owner_id: UUID,
        name: str,
        parent_id: Optional[UUID] = None,
        sort_order: int = 0,
    ) -> Folder:
        """
        Create a folder.

        Raises:
            NotFoundError: parent_id is not a live folder of the user
        """
        if parent_id:
            await FolderService.get_folder(db, owner_id, parent_id)

        folder = Folder(
            user_id=owner_id,
            parent_id=parent_id,
            name=name,
            sort_order=sort_order,
        )
        db.add(folder)
        await db.commit()

        logger.info(f"Created folder {folder.id} ({name}) for user {owner_id}")
        return folder

    @staticmethod
    async def _ensure_no_cycle(
        db: AsyncSession, owner_id: UUID, folder_id: UUID, new_parent_id: UUID
    ) -> None:
        """Walk up from the proposed parent; reaching folder_id means a cycle"""
        seen = set()
        current_id: Optional[UUID] = new_parent_id
        while current_id is not None:
            if current_id == folder_id:
                raise FolderCycleError("A folder cannot be moved inside itself")
            if current_id in seen:
                # Existing data already loops; stop walking
                break
            seen.add(current_id)

            result = await db.execute(
                select(Folder.parent_id).where(
                    Folder.id == current_id, Folder.user_id == owner_id
                )
            )
            current_id = result.scalar_one_or_none()

    @staticmethod
    async def update_folder(
        db: AsyncSession, owner_id: UUID, folder_id: UUID, changes: Dict[str, Any]
    ) -> Folder:
        """
        Rename, reorder or move a folder.

        Args:
            db: Database session
            owner_id: Requesting user
            folder_id: Folder to change
            changes: Any of name, sort_order, parent_id (None moves to root)

        Raises:
            NotFoundError: Folder or new parent not found
            FolderCycleError: New parent is the folder or one of its descendants
        """
        folder = await FolderService.get_folder(db, owner_id, folder_id)

        if "parent_id" in changes and changes["parent_id"] is not None:
            new_parent_id = changes["parent_id"]
            await FolderService.get_folder(db, owner_id, new_parent_id)
            await FolderService._ensure_no_cycle(db, owner_id, folder.id, new_parent_id)

        for field in ("name", "sort_order", "parent_id"):
            if field in changes:
                setattr(folder, field, changes[field])
        folder.updated_at = datetime.utcnow()

        await db.commit()
        logger.info(f"Updated folder {folder.id}: {sorted(changes)}")
        return folder

    @staticmethod
    async def delete_folder(db: AsyncSession, owner_id: UUID, folder_id: UUID) -> None:
        """
        Soft-delete a folder.

        Child folders move up to the deleted folder's parent and its photos
        move to the root.
        """
        folder = await FolderService.get_folder(db, owner_id, folder_id)
        now = datetime.utcnow()

        await db.execute(
            update(Folder)
            .where(
                Folder.parent_id == folder.id,
                Folder.user_id == owner_id,
                Folder.deleted_at.is_(None),
            )
            .values(parent_id=folder.parent_id, updated_at=now)
        )
        await db.execute(
            update(Photo)
            .where(Photo.folder_id == folder.id, Photo.user_id == owner_id)
            .values(folder_id=None, updated_at=now)
        )
        folder.soft_delete()

        await db.commit()
        logger.info(f"Soft-deleted folder {folder.id}")
