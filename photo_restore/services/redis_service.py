"""Redis service for request rate limiting"""

import redis.asyncio as redis
from typing import Optional
from photo_restore.config import settings


class RedisService:
    """Service for Redis operations including fixed-window rate limiting"""

    _client: Optional[redis.Redis] = None

    @classmethod
    async def get_client(cls) -> redis.Redis:
        """Get or create Redis client"""
        if cls._client is None:
            cls._client = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True
            )
        return cls._client

    @classmethod
    async def close(cls):
        """Close Redis connection"""
        if cls._client:
            await cls._client.aclose()
            cls._client = None

    async def increment_request_count(
        self, scope: str, identifier: str, window_seconds: int = 60
    ) -> int:
        """
        Increment the request counter for an identifier in the current window

        Args:
            scope: Name of the limited endpoint group (e.g. "enhance")
            identifier: Client identifier, usually the remote IP address
            window_seconds: Window length; the counter expires after it

        Returns:
            Number of requests seen in the current window, including this one
        """
        client = await self.get_client()
        key = f"rate_limit:{scope}:{identifier}"
        count = await client.incr(key)

        # Set expiration on first request of the window
        if count == 1:
            await client.expire(key, window_seconds)

        return count

    async def ping(self) -> bool:
        """Check connectivity"""
        client = await self.get_client()
        return await client.ping()
