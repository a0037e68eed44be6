import redis.asyncio as redis
from loguru import logger

from app.core.config import settings


class RedisService:
    """Owns the process-wide Redis client shared by the payment and history stores."""

    def __init__(self, url: str | None = None, key_prefix: str | None = None) -> None:
        self.url = url if url is not None else settings.REDIS_URL
        self.key_prefix = key_prefix if key_prefix is not None else settings.REDIS_KEY_PREFIX
        self._client: redis.Redis | None = None
        if not self.url:
            logger.warning("REDIS_URL is not set. Payment checks will fail closed until configured.")

    def key(self, template: str, **params: str) -> str:
        return f"{self.key_prefix}{template.format(**params)}"

    async def get_client(self) -> redis.Redis:
        if self._client is None:
            if not self.url:
                raise RuntimeError("REDIS_URL is not configured")
            logger.info("Creating shared Redis client")
            self._client = redis.from_url(
                self.url,
                decode_responses=True,
                encoding="utf-8",
                socket_connect_timeout=5,
                socket_timeout=5,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                health_check_interval=30,
                socket_keepalive=True,
            )
        return self._client

    async def close(self) -> None:
        """Close and disconnect the Redis client"""
        if self._client is not None:
            try:
                await self._client.close()
                logger.info("RedisService client closed")
            except Exception as exc:
                logger.warning(f"Failed to close RedisService client: {exc}")
            finally:
                self._client = None
