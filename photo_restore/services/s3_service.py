"""S3 service for storing photo blobs and issuing signed URLs"""

import hashlib
import logging
import uuid
from dataclasses import dataclass
from typing import Optional
import boto3
from botocore.exceptions import ClientError
from botocore.config import Config

from photo_restore.config import settings

logger = logging.getLogger(__name__)


class S3ServiceError(Exception):
    """Base exception for S3 service errors"""
    pass


class S3ConnectionError(S3ServiceError):
    """S3 connection error"""
    pass


class InvalidFileTypeError(S3ServiceError):
    """Invalid file type error"""
    pass


class FileTooLargeError(S3ServiceError):
    """File too large error"""
    pass


class EmptyFileError(S3ServiceError):
    """Uploaded file has no content"""
    pass


@dataclass(frozen=True)
class StoredBlob:
    """Location of a blob written to the store"""
    bucket: str
    object_key: str


def compute_checksum(data: bytes) -> str:
    """SHA-256 hex digest of the given bytes"""
    return hashlib.sha256(data).hexdigest()


def extension_for_mime_type(mime_type: str) -> str:
    """File extension derived from the MIME subtype (image/png -> png)"""
    _, _, subtype = (mime_type or "").partition("/")
    return subtype or "jpg"


class S3Service:
    """Service for S3 operations including signed URL generation"""

    # Constants
    ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/webp"}

    def __init__(self, bucket: Optional[str] = None):
        """Initialize S3 client with retry configuration"""
        self.bucket = bucket or settings.s3_bucket
        self.max_file_size = settings.max_upload_bytes

        retry_config = Config(
            retries={
                "max_attempts": 3,
                "mode": "standard",
            },
            connect_timeout=5,
            read_timeout=30,
        )

        client_kwargs = {
            "region_name": settings.aws_region,
            "config": retry_config,
        }

        # Add credentials if provided (not needed for IAM roles)
        if settings.aws_access_key_id and settings.aws_secret_access_key:
            client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
            client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

        # Use custom endpoint for local development (MinIO)
        if settings.aws_endpoint_url:
            client_kwargs["endpoint_url"] = settings.aws_endpoint_url

        try:
            self.s3_client = boto3.client("s3", **client_kwargs)
            logger.info(f"S3 client initialized for bucket: {self.bucket}")
        except Exception as e:
            logger.error(f"Failed to initialize S3 client: {e}")
            raise S3ConnectionError(f"Failed to initialize S3 client: {e}")

    def validate_file(self, file_size: int, mime_type: Optional[str]) -> None:
        """
        Validate file size and MIME type.

        Args:
            file_size: File size in bytes
            mime_type: MIME type of the file

        Raises:
            EmptyFileError: If the file has no content
            FileTooLargeError: If file exceeds maximum size
            InvalidFileTypeError: If MIME type is not allowed
        """
        if mime_type not in self.ALLOWED_MIME_TYPES:
            raise InvalidFileTypeError(
                "Invalid file type. Only JPEG, PNG, and WebP are allowed."
            )

        if file_size <= 0:
            raise EmptyFileError("Uploaded file is empty.")

        if file_size > self.max_file_size:
            max_mb = self.max_file_size // (1024 * 1024)
            raise FileTooLargeError(f"File too large. Maximum size is {max_mb}MB.")

    def generate_object_key(self, owner_id: str, mime_type: str, is_original: bool) -> str:
        """
        Generate an object key following the structure:
        {owner_id}/{originals|enhanced}/{random_id}.{extension}

        Uniqueness comes from the random id, not from the content.
        """
        folder = "originals" if is_original else "enhanced"
        extension = extension_for_mime_type(mime_type)
        return f"{owner_id}/{folder}/{uuid.uuid4()}.{extension}"

    def put(
        self, owner_id: str, data: bytes, mime_type: str, is_original: bool
    ) -> StoredBlob:
        """
        Write bytes under a freshly generated key.

        Raises:
            S3ConnectionError: If upload fails
        """
        object_key = self.generate_object_key(str(owner_id), mime_type, is_original)

        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=object_key,
                Body=data,
                ContentType=mime_type,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Error uploading bytes: {error_code} - {e}")
            raise S3ConnectionError(f"Failed to upload bytes: {error_code}")
        except Exception as e:
            logger.error(f"Unexpected error uploading bytes: {e}")
            raise S3ConnectionError(f"Failed to upload bytes: {str(e)}")

        logger.info(f"Uploaded {len(data)} bytes to {self.bucket}/{object_key}")
        return StoredBlob(bucket=self.bucket, object_key=object_key)

    def signed_url(self, bucket: str, object_key: str, ttl: Optional[int] = None) -> str:
        """
        Generate a pre-signed GET URL valid for ttl seconds.

        Raises:
            S3ConnectionError: If S3 operation fails
        """
        if ttl is None:
            ttl = settings.signed_url_ttl_seconds

        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": object_key},
                ExpiresIn=ttl,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 ClientError generating signed URL: {error_code} - {e}")
            raise S3ConnectionError(f"Failed to generate signed URL: {error_code}")
        except Exception as e:
            logger.error(f"Unexpected error generating signed URL: {e}")
            raise S3ConnectionError(f"Failed to generate signed URL: {str(e)}")

    def get_bytes(self, bucket: str, object_key: str) -> bytes:
        """
        Download object bytes.

        Raises:
            S3ConnectionError: If download fails
        """
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=object_key)
            file_bytes = response["Body"].read()
            logger.debug(f"Downloaded {len(file_bytes)} bytes from {bucket}/{object_key}")
            return file_bytes
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Error downloading file: {error_code} - {e}")
            raise S3ConnectionError(f"Failed to download file: {error_code}")
        except Exception as e:
            logger.error(f"Unexpected error downloading file: {e}")
            raise S3ConnectionError(f"Failed to download file: {str(e)}")

    def delete(self, bucket: str, object_key: str) -> None:
        """
        Delete an object.

        Raises:
            S3ConnectionError: If deletion fails
        """
        try:
            self.s3_client.delete_object(Bucket=bucket, Key=object_key)
            logger.info(f"Deleted object: {bucket}/{object_key}")
        except ClientError as e:
            logger.error(f"Error deleting object: {e}")
            raise S3ConnectionError(f"Failed to delete object: {e}")

    def check_bucket(self) -> None:
        """Raise S3ConnectionError when the bucket is unreachable"""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            raise S3ConnectionError(f"Bucket check failed: {error_code}")
