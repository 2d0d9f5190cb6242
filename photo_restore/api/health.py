"""Health check endpoints"""

import asyncio
from datetime import datetime
from fastapi import APIRouter, Depends, status
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from photo_restore.api.dependencies import get_redis_service, get_s3_service
from photo_restore.database import get_db
from photo_restore.services.redis_service import RedisService
from photo_restore.services.s3_service import S3Service

router = APIRouter(tags=["Health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def basic_health_check():
    """
    Basic health check endpoint (no authentication required)

    Returns simple health status and timestamp
    """
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat() + "Z"
    }


@router.get("/api/health", status_code=status.HTTP_200_OK)
async def detailed_health_check(
    db: AsyncSession = Depends(get_db),
    redis_service: RedisService = Depends(get_redis_service),
    s3_service: S3Service = Depends(get_s3_service),
):
    """
    Detailed health check with service dependency status (no authentication required)

    Checks connectivity to:
    - Database
    - Redis
    - S3 bucket

    Returns overall status and individual service statuses
    """
    services = {}
    overall_status = "healthy"

    # Check database connectivity
    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar_one()
        services["database"] = "connected"
    except Exception as e:
        services["database"] = f"disconnected: {e.__class__.__name__}"
        overall_status = "degraded"

    # Check Redis connectivity
    try:
        await redis_service.ping()
        services["redis"] = "connected"
    except Exception as e:
        services["redis"] = f"disconnected: {e.__class__.__name__}"
        overall_status = "degraded"

    # Check S3 connectivity
    try:
        await asyncio.to_thread(s3_service.check_bucket)
        services["s3"] = "connected"
    except Exception as e:
        services["s3"] = f"disconnected: {e}"
        overall_status = "degraded"

    return {
        "status": overall_status,
        "version": "1.0.0",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "services": services
    }
