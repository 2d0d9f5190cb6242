"""API dependencies for authentication, collaborators and rate limiting"""

import logging
from functools import lru_cache
from typing import Optional
from uuid import UUID
from fastapi import Depends, HTTPException, Request, status, Header
from sqlalchemy.ext.asyncio import AsyncSession

from photo_restore.config import settings
from photo_restore.database import get_db
from photo_restore.monitoring.metrics import metrics_collector
from photo_restore.services.auth_service import AuthService
from photo_restore.services.photo_library_service import PhotoLibraryService
from photo_restore.services.redis_service import RedisService
from photo_restore.services.restoration_client import RestorationModelClient
from photo_restore.services.s3_service import S3Service

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    authorization: Optional[str] = Header(None),
) -> UUID:
    """
    Get the authenticated user's id from the bearer token.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        User UUID (the token's `sub` claim)

    Raises:
        HTTPException: 401 if the header is missing or the token is invalid
    """
    if not authorization:
        raise _unauthorized("Authorization header missing")

    # Extract token from "Bearer <token>"
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise _unauthorized("Invalid authorization header format")

    user_id = AuthService.user_id_from_token(parts[1])
    if not user_id:
        raise _unauthorized("Invalid or expired token")

    return user_id


@lru_cache
def get_s3_service() -> S3Service:
    """Shared blob store client"""
    return S3Service()


def get_restoration_client() -> RestorationModelClient:
    return RestorationModelClient()


def get_photo_library_service(
    db: AsyncSession = Depends(get_db),
    s3_service: S3Service = Depends(get_s3_service),
    restoration_client: RestorationModelClient = Depends(get_restoration_client),
) -> PhotoLibraryService:
    return PhotoLibraryService(db, s3_service, restoration_client)


def get_redis_service() -> RedisService:
    return RedisService()


async def enhance_rate_limit(
    request: Request,
    redis_service: RedisService = Depends(get_redis_service),
) -> None:
    """
    Fixed-window per-IP limit on the enhance endpoints.

    Requests are allowed when Redis is unreachable.

    Raises:
        HTTPException: 429 when the limit for the current minute is exceeded
    """
    client_ip = request.client.host if request.client else "unknown"
    try:
        count = await redis_service.increment_request_count("enhance", client_ip)
    except Exception as e:
        logger.warning(f"Rate limiter unavailable, allowing request from {client_ip}: {e}")
        return

    if count > settings.enhance_rate_limit_per_minute:
        metrics_collector.record_rate_limited("enhance")
        logger.info(f"Rate limit exceeded for {client_ip} ({count} requests this minute)")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please wait a moment before trying again.",
        )
