from datetime import datetime, timedelta
from typing import Protocol
from urllib.parse import urlencode

import redis.asyncio as redis
from loguru import logger

from app.core.config import settings
from app.core.constants import PAYMENTS_KEY
from app.core.exceptions import PersistenceError
from app.core.security import redact_token
from app.models.payment import PaymentRecord, PaymentTier
from app.services.redis_service import RedisService

# Completed payments older than this are pruned whenever a new one is recorded
PAYMENT_RETENTION = timedelta(days=30)


class PaymentStore(Protocol):
    async def has_completed_payment(self, identity: str, tier_name: str, since: datetime) -> bool: ...

    async def record_payment(self, record: PaymentRecord) -> None: ...


class RedisPaymentStore:
    """
    Completed payments kept in one sorted set per identity and tier,
    scored by completion timestamp so the window lookup is a single ZCOUNT.
    """

    def __init__(self, redis_service: RedisService):
        self.redis_service = redis_service

    def _key(self, identity: str, tier_name: str) -> str:
        return self.redis_service.key(PAYMENTS_KEY, identity=identity, tier=tier_name)

    async def has_completed_payment(self, identity: str, tier_name: str, since: datetime) -> bool:
        try:
            client = await self.redis_service.get_client()
            count = await client.zcount(self._key(identity, tier_name), since.timestamp(), "+inf")
        except (redis.RedisError, OSError, RuntimeError) as exc:
            raise PersistenceError(f"Payment lookup failed: {exc}") from exc
        return int(count) > 0

    async def record_payment(self, record: PaymentRecord) -> None:
        key = self._key(record.identity, record.tier)
        completed = record.completed_at.timestamp()
        try:
            client = await self.redis_service.get_client()
            await client.zadd(key, {record.model_dump_json(): completed})
            await client.zremrangebyscore(key, "-inf", completed - PAYMENT_RETENTION.total_seconds())
        except (redis.RedisError, OSError, RuntimeError) as exc:
            raise PersistenceError(f"Failed to record payment: {exc}") from exc
        logger.info(f"[{redact_token(record.identity)}] Recorded completed payment for {record.tier}")


class PaymentLinkBuilder:
    """Builds the opaque checkout handle returned alongside a 402."""

    def __init__(self, checkout_url: str | None = None):
        self.checkout_url = checkout_url if checkout_url is not None else settings.PAYMENT_CHECKOUT_URL

    def build(self, identity: str | None, tier: PaymentTier) -> str | None:
        if not tier.requires_payment or not self.checkout_url:
            return None
        query = {"tier": tier.key, "amount": tier.price, "currency": "usd"}
        if identity:
            query["client_reference_id"] = identity
        return f"{self.checkout_url}?{urlencode(query)}"
