"""Shared fakes for the analysis pipeline. No network, no Redis."""

import asyncio
from datetime import datetime, timezone

import pytest

from app.core.exceptions import AnalysisError, PersistenceError
from app.models.analysis import CommonKeywords, ImageAnalysisResult
from app.models.artwork import CandidateArtwork, SourceQueryResult
from app.models.payment import PaymentRecord
from app.models.response import AnalysisRequest, AnalysisResponse
from app.services.aggregator import SourceFanoutAggregator
from app.services.assembler import ResultAssembler
from app.services.batch_analyzer import ImageBatchAnalyzer
from app.services.content_policy import ContentPolicyFilter
from app.services.keywords import CommonKeywordExtractor
from app.services.payments import PaymentLinkBuilder
from app.services.ranker import SimilarityRanker
from app.services.recommendation_service import MultiImageRecommendationService
from app.services.sources.base import ArtSource
from app.services.tier_gate import TierGate

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
CHECKOUT_URL = "https://pay.example.com/checkout"


def descriptors(keywords=(), colors=(), style=(), mood=(), confidence=0.9) -> ImageAnalysisResult:
    return ImageAnalysisResult(
        keywords=frozenset(keywords),
        colors=frozenset(colors),
        style=frozenset(style),
        mood=frozenset(mood),
        confidence=confidence,
    )


def artwork(artwork_id: str, keywords=(), source_name: str = "Fake Museum", **fields) -> CandidateArtwork:
    fields.setdefault("title", f"Artwork {artwork_id}")
    return CandidateArtwork(id=artwork_id, keywords=set(keywords), source_name=source_name, **fields)


class FakeAnalyzer:
    """Returns a canned result per image payload; an Exception value is raised instead."""

    def __init__(self, results: dict[bytes, ImageAnalysisResult | Exception] | None = None, default=None):
        self.results = results or {}
        self.default = default or descriptors(["landscape"], ["blue"])
        self.calls: list[bytes] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def analyze(self, image: bytes) -> ImageAnalysisResult:
        self.calls.append(image)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            result = self.results.get(image, self.default)
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1


class FakeSource(ArtSource):
    def __init__(
        self,
        name: str,
        artworks: list[CandidateArtwork] | None = None,
        category: str = "core",
        error: Exception | None = None,
        success: bool = True,
        delay: float = 0.0,
    ):
        self.name = name
        self.category = category
        self.artworks = artworks or []
        self.error = error
        self.success = success
        self.delay = delay
        self.queries: list[list[str]] = []
        self.closed = False
        self.cancelled = False

    async def search(self, keywords: list[str], limit: int) -> SourceQueryResult:
        self.queries.append(list(keywords))
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        if not self.success:
            return SourceQueryResult.failed(self.name, "upstream returned 503")
        return SourceQueryResult(
            source_name=self.name, success=True, artworks=self.artworks[:limit], total=len(self.artworks)
        )

    async def close(self) -> None:
        self.closed = True


class FakePaymentStore:
    def __init__(self, records: list[PaymentRecord] | None = None, error: Exception | None = None):
        self.records = list(records or [])
        self.error = error
        self.lookups: list[tuple[str, str, datetime]] = []

    async def has_completed_payment(self, identity: str, tier_name: str, since: datetime) -> bool:
        self.lookups.append((identity, tier_name, since))
        if self.error is not None:
            raise self.error
        return any(
            r.identity == identity and r.tier == tier_name and r.completed_at >= since for r in self.records
        )

    async def record_payment(self, record: PaymentRecord) -> None:
        self.records.append(record)


class FakeHistoryStore:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.saved: list[tuple[str, AnalysisRequest, AnalysisResponse]] = []

    async def save(self, batch_id: str, request: AnalysisRequest, response: AnalysisResponse) -> None:
        if self.fail:
            raise PersistenceError("history store offline")
        self.saved.append((batch_id, request, response))

    async def list_history(self, identity: str, limit: int = 20):
        return []


class FakeRedis:
    """The handful of list and sorted-set commands the stores use."""

    def __init__(self):
        self.lists: dict[str, list[str]] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.expiry: dict[str, int] = {}

    @staticmethod
    def _score(bound) -> float:
        if bound == "+inf":
            return float("inf")
        if bound == "-inf":
            return float("-inf")
        return float(bound)

    @staticmethod
    def _slice(items: list, start: int, end: int) -> list:
        end = len(items) if end == -1 else end + 1
        return items[start:end]

    async def lpush(self, key, *values):
        items = self.lists.setdefault(key, [])
        for value in values:
            items.insert(0, value)
        return len(items)

    async def ltrim(self, key, start, end):
        self.lists[key] = self._slice(self.lists.get(key, []), start, end)
        return True

    async def lrange(self, key, start, end):
        return self._slice(self.lists.get(key, []), start, end)

    async def expire(self, key, seconds):
        self.expiry[key] = seconds
        return True

    async def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def zcount(self, key, low, high):
        low, high = self._score(low), self._score(high)
        return sum(1 for score in self.zsets.get(key, {}).values() if low <= score <= high)

    async def zremrangebyscore(self, key, low, high):
        low, high = self._score(low), self._score(high)
        zset = self.zsets.get(key, {})
        doomed = [member for member, score in zset.items() if low <= score <= high]
        for member in doomed:
            del zset[member]
        return len(doomed)


def make_response(batch_id: str = "batch-1", image_count: int = 1) -> AnalysisResponse:
    return AnalysisResponse(
        batch_id=batch_id,
        image_count=image_count,
        tier="Free Tier",
        results=[descriptors(["landscape"])] * image_count,
        common_keywords=CommonKeywords(keywords=["landscape"], confidence=0.1, frequency={"landscape": 1}),
    )


def build_service(
    analyzer: FakeAnalyzer | None = None,
    sources: list[ArtSource] | None = None,
    payment_store: FakePaymentStore | None = None,
    history_store: FakeHistoryStore | None = None,
    timeout: float = 1.0,
    image_validator=None,
) -> MultiImageRecommendationService:
    history_store = history_store or FakeHistoryStore()
    return MultiImageRecommendationService(
        tier_gate=TierGate(payment_store or FakePaymentStore(), window_hours=24, clock=lambda: NOW),
        batch_analyzer=ImageBatchAnalyzer(analyzer or FakeAnalyzer()),
        extractor=CommonKeywordExtractor(),
        aggregator=SourceFanoutAggregator(sources or [], timeout=timeout, keyword_limit=10),
        policy=ContentPolicyFilter(),
        ranker=SimilarityRanker(),
        assembler=ResultAssembler(history_store),
        history_store=history_store,
        link_builder=PaymentLinkBuilder(CHECKOUT_URL),
        max_images=50,
        source_result_limit=10,
        image_validator=image_validator,
    )


@pytest.fixture
def history_store():
    return FakeHistoryStore()


@pytest.fixture
def payment_store():
    return FakePaymentStore()


@pytest.fixture
def analysis_error():
    return AnalysisError("model returned garbage")
