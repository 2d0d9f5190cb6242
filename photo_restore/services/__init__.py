"""Services package"""

from .s3_service import S3Service
from .auth_service import AuthService
from .image_service import ImageService
from .redis_service import RedisService
from .restoration_client import RestorationModelClient
from .enhancement_job_service import EnhancementJobService
from .folder_service import FolderService
from .photo_library_service import PhotoLibraryService
from .tags_service import TagsService
from .comment_service import CommentService
from .profile_service import ProfileService

__all__ = [
    "S3Service",
    "AuthService",
    "ImageService",
    "RedisService",
    "RestorationModelClient",
    "EnhancementJobService",
    "FolderService",
    "PhotoLibraryService",
    "TagsService",
    "CommentService",
    "ProfileService",
]
