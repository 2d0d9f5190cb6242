"""API schemas package"""

from .photo_version import StorageObjectResponse, PhotoVersionResponse
from .enhancement_job import (
    EnhancementJobSummary,
    JobPhotoSummary,
    EnhancementJobResponse,
    EnhancementJobListResponse,
)
from .photo import (
    PhotoResponse,
    PhotoDetailResponse,
    PhotoListResponse,
    PhotoUpdate,
    EnhanceRequest,
    EnhanceResponse,
    StatelessEnhanceResponse,
)
from .folder import (
    FolderCreate,
    FolderUpdate,
    FolderResponse,
    FolderSummary,
    FolderTreeNode,
    FolderListResponse,
    FolderTreeResponse,
)
from .tag import TagCreate, TagResponse, TagListResponse
from .comment import CommentCreate, CommentResponse, CommentListResponse
from .profile import ProfileUpdate, ProfileResponse

__all__ = [
    "StorageObjectResponse",
    "PhotoVersionResponse",
    "EnhancementJobSummary",
    "JobPhotoSummary",
    "EnhancementJobResponse",
    "EnhancementJobListResponse",
    "PhotoResponse",
    "PhotoDetailResponse",
    "PhotoListResponse",
    "PhotoUpdate",
    "EnhanceRequest",
    "EnhanceResponse",
    "StatelessEnhanceResponse",
    "FolderCreate",
    "FolderUpdate",
    "FolderResponse",
    "FolderSummary",
    "FolderTreeNode",
    "FolderListResponse",
    "FolderTreeResponse",
    "TagCreate",
    "TagResponse",
    "TagListResponse",
    "CommentCreate",
    "CommentResponse",
    "CommentListResponse",
    "ProfileUpdate",
    "ProfileResponse",
]
