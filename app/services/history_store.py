from datetime import datetime, timezone
from typing import Protocol

import redis.asyncio as redis
from loguru import logger
from pydantic import ValidationError

from app.core.config import settings
from app.core.constants import HISTORY_KEY
from app.core.exceptions import PersistenceError
from app.core.security import redact_token
from app.models.response import AnalysisRequest, AnalysisResponse, HistoryEntry
from app.services.redis_service import RedisService

ANONYMOUS_IDENTITY = "anonymous"


class HistoryStore(Protocol):
    async def save(self, batch_id: str, request: AnalysisRequest, response: AnalysisResponse) -> None: ...

    async def list_history(self, identity: str, limit: int = 20) -> list[HistoryEntry]: ...


class RedisHistoryStore:
    """Per-identity audit log of analysis batches, newest first, capped length."""

    def __init__(
        self,
        redis_service: RedisService,
        max_entries: int | None = None,
        ttl_seconds: int | None = None,
    ):
        self.redis_service = redis_service
        self.max_entries = max_entries or settings.HISTORY_MAX_ENTRIES
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.HISTORY_TTL_SECONDS

    def _key(self, identity: str | None) -> str:
        return self.redis_service.key(HISTORY_KEY, identity=identity or ANONYMOUS_IDENTITY)

    async def save(self, batch_id: str, request: AnalysisRequest, response: AnalysisResponse) -> None:
        entry = HistoryEntry(
            batch_id=batch_id,
            created_at=datetime.now(timezone.utc),
            request=request,
            response=response,
        )
        key = self._key(request.identity)
        try:
            client = await self.redis_service.get_client()
            await client.lpush(key, entry.model_dump_json())
            await client.ltrim(key, 0, self.max_entries - 1)
            if self.ttl_seconds > 0:
                await client.expire(key, self.ttl_seconds)
        except (redis.RedisError, OSError, RuntimeError) as exc:
            raise PersistenceError(f"Failed to save batch {batch_id}: {exc}") from exc
        logger.debug(f"[{redact_token(request.identity)}] Saved batch {batch_id} to history")

    async def list_history(self, identity: str, limit: int = 20) -> list[HistoryEntry]:
        try:
            client = await self.redis_service.get_client()
            raw_entries = await client.lrange(self._key(identity), 0, max(0, limit - 1))
        except (redis.RedisError, OSError, RuntimeError) as exc:
            raise PersistenceError(f"Failed to read history: {exc}") from exc

        entries = []
        for raw in raw_entries:
            try:
                entries.append(HistoryEntry.model_validate_json(raw))
            except ValidationError as e:
                logger.warning(f"[{redact_token(identity)}] Skipping unreadable history entry: {e}")
        return entries
