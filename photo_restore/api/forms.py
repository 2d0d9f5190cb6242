"""Parsing helpers for multipart form fields"""

from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import UploadFile

from photo_restore.config import settings
from photo_restore.services.errors import ValidationFailedError

# Values the frontend sends for "no folder"
ROOT_FOLDER_VALUES = {"", "root", "null"}


def parse_folder_id(value: Optional[str]) -> Optional[UUID]:
    """Folder id from a form or query value; None means the root level"""
    if value is None or value.strip().lower() in ROOT_FOLDER_VALUES:
        return None
    try:
        return UUID(value.strip())
    except ValueError:
        raise ValidationFailedError("Invalid folder id.")


def parse_date(value: Optional[str], field_name: str) -> Optional[date]:
    """ISO date (YYYY-MM-DD) or None for an empty value"""
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise ValidationFailedError(f"Invalid {field_name}. Expected YYYY-MM-DD.")


def optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


async def read_upload(upload: Optional[UploadFile], missing_message: str) -> bytes:
    """
    Read an uploaded file, at most one byte past the upload size limit.

    Raises:
        ValidationFailedError: No file in the request
    """
    if upload is None or not upload.filename:
        raise ValidationFailedError(missing_message)
    return await upload.read(settings.max_upload_bytes + 1)
