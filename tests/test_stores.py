from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from app.core.exceptions import PersistenceError
from app.models.payment import PaymentRecord
from app.models.response import AnalysisRequest
from app.services.history_store import RedisHistoryStore
from app.services.payments import PaymentLinkBuilder, RedisPaymentStore
from app.services.redis_service import RedisService
from app.services.tier_gate import FREE_TIER, STANDARD_TIER
from tests.conftest import NOW, FakeRedis, make_response


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_service(fake_redis):
    service = RedisService(url="redis://localhost:6379/15", key_prefix="test:")
    service._client = fake_redis
    return service


@pytest.fixture
def offline_redis_service():
    return RedisService(url="", key_prefix="test:")


def test_keys_are_prefixed(redis_service):
    assert redis_service.key("history:{identity}", identity="abc") == "test:history:abc"


@pytest.mark.asyncio
async def test_history_newest_first_and_capped(redis_service, fake_redis):
    store = RedisHistoryStore(redis_service, max_entries=2, ttl_seconds=3600)
    request = AnalysisRequest(identity="user-123", image_count=1)

    for batch_id in ("b1", "b2", "b3"):
        await store.save(batch_id, request, make_response(batch_id))

    entries = await store.list_history("user-123", limit=10)

    assert [e.batch_id for e in entries] == ["b3", "b2"]
    assert entries[0].request.identity == "user-123"
    assert fake_redis.expiry["test:history:user-123"] == 3600


@pytest.mark.asyncio
async def test_history_skips_unreadable_entries(redis_service, fake_redis):
    store = RedisHistoryStore(redis_service, max_entries=10, ttl_seconds=0)
    await store.save("good", AnalysisRequest(identity="user-123", image_count=1), make_response("good"))
    await fake_redis.lpush("test:history:user-123", "not json")

    entries = await store.list_history("user-123")

    assert [e.batch_id for e in entries] == ["good"]
    assert fake_redis.expiry == {}


@pytest.mark.asyncio
async def test_anonymous_batches_share_one_history_key(redis_service, fake_redis):
    store = RedisHistoryStore(redis_service, max_entries=10, ttl_seconds=0)

    await store.save("anon", AnalysisRequest(identity=None, image_count=1), make_response("anon"))

    assert "test:history:anonymous" in fake_redis.lists


@pytest.mark.asyncio
async def test_history_store_raises_when_unconfigured(offline_redis_service):
    store = RedisHistoryStore(offline_redis_service, max_entries=10, ttl_seconds=0)

    with pytest.raises(PersistenceError):
        await store.save("b1", AnalysisRequest(identity="user-123", image_count=1), make_response("b1"))


@pytest.mark.asyncio
async def test_payment_window_lookup(redis_service):
    store = RedisPaymentStore(redis_service)
    await store.record_payment(
        PaymentRecord(
            identity="user-123",
            tier="Standard Pack",
            amount=500,
            reference="cs_test_1",
            completed_at=NOW - timedelta(hours=2),
        )
    )

    assert await store.has_completed_payment("user-123", "Standard Pack", NOW - timedelta(hours=24))
    assert not await store.has_completed_payment("user-123", "Standard Pack", NOW - timedelta(hours=1))
    assert not await store.has_completed_payment("user-123", "Premium Pack", NOW - timedelta(hours=24))
    assert not await store.has_completed_payment("someone-else", "Standard Pack", NOW - timedelta(hours=24))


@pytest.mark.asyncio
async def test_old_payments_are_pruned(redis_service, fake_redis):
    store = RedisPaymentStore(redis_service)
    for days_ago in (40, 0):
        await store.record_payment(
            PaymentRecord(
                identity="user-123",
                tier="Standard Pack",
                amount=500,
                reference=f"cs_{days_ago}",
                completed_at=NOW - timedelta(days=days_ago),
            )
        )

    assert len(fake_redis.zsets["test:payments:user-123:Standard Pack"]) == 1


@pytest.mark.asyncio
async def test_payment_lookup_raises_when_unconfigured(offline_redis_service):
    store = RedisPaymentStore(offline_redis_service)

    with pytest.raises(PersistenceError):
        await store.has_completed_payment("user-123", "Standard Pack", NOW)


def test_payment_link_for_paid_tier():
    url = PaymentLinkBuilder("https://pay.example.com/checkout").build("user-123", STANDARD_TIER)

    query = parse_qs(urlparse(url).query)
    assert url.startswith("https://pay.example.com/checkout?")
    assert query == {"tier": ["standard"], "amount": ["500"], "currency": ["usd"], "client_reference_id": ["user-123"]}


def test_no_payment_link_for_free_tier_or_unset_url():
    assert PaymentLinkBuilder("https://pay.example.com/checkout").build("user-123", FREE_TIER) is None
    assert PaymentLinkBuilder("").build("user-123", STANDARD_TIER) is None
