"""Main FastAPI application entry point"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app
import logging

from photo_restore.api.comments import router as comments_router
from photo_restore.api.enhance import router as enhance_router
from photo_restore.api.errors import register_exception_handlers
from photo_restore.api.folders import router as folders_router
from photo_restore.api.health import router as health_router
from photo_restore.api.jobs import router as jobs_router
from photo_restore.api.photos import router as photos_router
from photo_restore.api.profile import router as profile_router
from photo_restore.api.tags import router as tags_router
from photo_restore.config import settings
from photo_restore.services.redis_service import RedisService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Photo Restore API starting ({settings.environment})")
    yield
    await RedisService.close()


app = FastAPI(
    title="Photo Restore API",
    description="Photo restoration and personal photo library backend",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

register_exception_handlers(app)

# Include routers
app.include_router(health_router)
app.include_router(photos_router)
app.include_router(enhance_router)
app.include_router(folders_router)
app.include_router(jobs_router)
app.include_router(tags_router)
app.include_router(comments_router)
app.include_router(profile_router)

# Prometheus scrape endpoint
app.mount("/metrics", make_asgi_app())


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Photo Restore API",
        "version": "1.0.0",
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "photo_restore.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )
