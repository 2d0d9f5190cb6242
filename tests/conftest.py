"""Pytest configuration and shared fixtures"""

import os

# Settings are read at import time; these must be set before the app is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["GEMINI_API_KEY"] = "test-gemini-key"
os.environ["S3_BUCKET"] = "test-photos"
os.environ.pop("JWT_AUDIENCE", None)

import itertools
from io import BytesIO
from typing import AsyncGenerator, Optional
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from photo_restore.api.dependencies import (
    get_redis_service,
    get_restoration_client,
    get_s3_service,
)
from photo_restore.config import settings
from photo_restore.database import Base, get_db
from photo_restore.main import app
from photo_restore.services.auth_service import AuthService
from photo_restore.services.restoration_client import RestorationResult
from photo_restore.services.s3_service import S3ConnectionError, S3Service, StoredBlob


def make_image_bytes(fmt: str = "JPEG", size=(16, 12), color=(120, 90, 60)) -> bytes:
    """Encode a small solid-color image"""
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def auth_headers_for(user_id: UUID) -> dict:
    return {"Authorization": f"Bearer {AuthService.generate_token(user_id)}"}


class FakeS3Service(S3Service):
    """In-memory blob store with the real validation and key rules"""

    URL_PREFIX = "https://fake-s3.test/"

    def __init__(self, bucket: str = "test-photos"):
        self.bucket = bucket
        self.max_file_size = settings.max_upload_bytes
        self.objects = {}
        self.deleted = []
        self.fail_puts = False
        self.bucket_available = True
        self._signatures = itertools.count(1)

    def put(self, owner_id, data, mime_type, is_original):
        if self.fail_puts:
            raise S3ConnectionError("Failed to upload bytes: ServiceUnavailable")
        object_key = self.generate_object_key(str(owner_id), mime_type, is_original)
        self.objects[(self.bucket, object_key)] = data
        return StoredBlob(bucket=self.bucket, object_key=object_key)

    def signed_url(self, bucket, object_key, ttl=None):
        return f"{self.URL_PREFIX}{bucket}/{object_key}?signature={next(self._signatures)}"

    def resolve(self, url: str) -> bytes:
        """Bytes a signed URL points at"""
        path = url[len(self.URL_PREFIX):].split("?", 1)[0]
        bucket, _, object_key = path.partition("/")
        return self.objects[(bucket, object_key)]

    def get_bytes(self, bucket, object_key):
        try:
            return self.objects[(bucket, object_key)]
        except KeyError:
            raise S3ConnectionError("Failed to download file: NoSuchKey")

    def delete(self, bucket, object_key):
        self.objects.pop((bucket, object_key), None)
        self.deleted.append((bucket, object_key))

    def check_bucket(self):
        if not self.bucket_available:
            raise S3ConnectionError("Bucket check failed: 404")

    def keys_under(self, folder: str) -> list:
        return [key for (_, key) in self.objects if f"/{folder}/" in key]


class FakeRestorationClient:
    """Stands in for the generative model; returns a PNG unless told to fail"""

    model_name = "gemini-test-image"

    def __init__(self):
        self.calls = []
        self.error: Optional[Exception] = None
        self.image_bytes = make_image_bytes("PNG", size=(32, 24), color=(200, 180, 150))
        self.mime_type = "image/png"

    async def restore(self, image_bytes, mime_type, additional_instructions=None, options=None):
        self.calls.append(
            {
                "image_bytes": image_bytes,
                "mime_type": mime_type,
                "additional_instructions": additional_instructions,
                "options": options,
            }
        )
        if self.error is not None:
            raise self.error
        return RestorationResult(
            image_bytes=self.image_bytes,
            mime_type=self.mime_type,
            model_name=self.model_name,
            model_version="test-0001",
        )


class FakeRedisService:
    """Counts rate-limit hits in memory"""

    def __init__(self):
        self.counts = {}
        self.available = True

    async def increment_request_count(self, scope, identifier, window_seconds=60):
        if not self.available:
            raise ConnectionError("Redis unavailable")
        key = f"rate_limit:{scope}:{identifier}"
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def ping(self):
        if not self.available:
            raise ConnectionError("Redis unavailable")
        return True


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a test database engine backed by a throwaway SQLite file"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'photo_restore_test.db'}",
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def fake_s3():
    return FakeS3Service()


@pytest.fixture
def fake_model():
    return FakeRestorationClient()


@pytest.fixture
def fake_redis():
    return FakeRedisService()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_user_id() -> UUID:
    return uuid4()


@pytest.fixture
def auth_headers(user_id):
    """Create authentication headers for testing"""
    return auth_headers_for(user_id)


@pytest.fixture
def other_auth_headers(other_user_id):
    return auth_headers_for(other_user_id)


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG", size=(32, 24), color=(200, 180, 150))


@pytest_asyncio.fixture
async def async_client(session_factory, fake_s3, fake_model, fake_redis):
    """HTTP client against the app with storage, model and Redis replaced by fakes"""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_s3_service] = lambda: fake_s3
    app.dependency_overrides[get_restoration_client] = lambda: fake_model
    app.dependency_overrides[get_redis_service] = lambda: fake_redis

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
