"""Database models package"""

from photo_restore.models.base import BaseModel, OwnedModel, SoftDeleteMixin
from photo_restore.models.storage_object import StorageObject
from photo_restore.models.folder import Folder
from photo_restore.models.photo import Photo
from photo_restore.models.photo_version import PhotoVersion
from photo_restore.models.enhancement_job import EnhancementJob, JobStatus
from photo_restore.models.tag import Tag, photo_tags
from photo_restore.models.comment import Comment
from photo_restore.models.profile import Profile

# Export all models
__all__ = [
    "BaseModel",
    "OwnedModel",
    "SoftDeleteMixin",
    "StorageObject",
    "Folder",
    "Photo",
    "PhotoVersion",
    "EnhancementJob",
    "JobStatus",
    "Tag",
    "photo_tags",
    "Comment",
    "Profile",
]
