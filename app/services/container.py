from loguru import logger

from app.core.config import Settings, settings
from app.services.aggregator import SourceFanoutAggregator
from app.services.assembler import ResultAssembler
from app.services.batch_analyzer import ImageBatchAnalyzer
from app.services.content_policy import ContentPolicyFilter
from app.services.gemini import GeminiImageAnalyzer
from app.services.history_store import RedisHistoryStore
from app.services.image_validator import ImageUrlValidator
from app.services.keywords import CommonKeywordExtractor
from app.services.payments import PaymentLinkBuilder, RedisPaymentStore
from app.services.ranker import SimilarityRanker
from app.services.recommendation_service import MultiImageRecommendationService
from app.services.redis_service import RedisService
from app.services.sources import ArtSource, build_source_roster
from app.services.tier_gate import TierGate
from app.services.translation import TranslationService


class ServiceContainer:
    """Builds the process-wide service graph once and owns its network clients."""

    def __init__(self, config: Settings = settings):
        self.config = config
        self.redis_service: RedisService | None = None
        self.sources: list[ArtSource] = []
        self.image_validator: ImageUrlValidator | None = None
        self._service: MultiImageRecommendationService | None = None

    def build(self) -> MultiImageRecommendationService:
        config = self.config
        self.redis_service = RedisService(config.REDIS_URL, config.REDIS_KEY_PREFIX)
        payment_store = RedisPaymentStore(self.redis_service)
        history_store = RedisHistoryStore(
            self.redis_service,
            max_entries=config.HISTORY_MAX_ENTRIES,
            ttl_seconds=config.HISTORY_TTL_SECONDS,
        )
        self.sources = build_source_roster(config, TranslationService())
        if config.IMAGE_VALIDATION_ENABLED:
            self.image_validator = ImageUrlValidator(timeout=config.IMAGE_VALIDATION_TIMEOUT_SECONDS)

        return MultiImageRecommendationService(
            tier_gate=TierGate(payment_store, window_hours=config.PAYMENT_WINDOW_HOURS),
            batch_analyzer=ImageBatchAnalyzer(
                GeminiImageAnalyzer(model=config.DEFAULT_GEMINI_MODEL, api_key=config.GEMINI_API_KEY)
            ),
            extractor=CommonKeywordExtractor(),
            aggregator=SourceFanoutAggregator(
                self.sources,
                timeout=config.SOURCE_TIMEOUT_SECONDS,
                keyword_limit=config.FANOUT_KEYWORD_LIMIT,
            ),
            policy=ContentPolicyFilter(),
            ranker=SimilarityRanker(),
            assembler=ResultAssembler(history_store),
            history_store=history_store,
            link_builder=PaymentLinkBuilder(config.PAYMENT_CHECKOUT_URL),
            max_images=config.MAX_IMAGES_PER_BATCH,
            source_result_limit=config.SOURCE_RESULT_LIMIT,
            image_validator=self.image_validator,
        )

    @property
    def service(self) -> MultiImageRecommendationService:
        if self._service is None:
            self._service = self.build()
        return self._service

    async def close(self) -> None:
        for source in self.sources:
            try:
                await source.close()
            except Exception as exc:
                logger.warning(f"Failed to close source {source.name}: {exc}")
        if self.image_validator is not None:
            await self.image_validator.close()
            self.image_validator = None
        if self.redis_service is not None:
            await self.redis_service.close()
        self._service = None


container = ServiceContainer()


def get_recommendation_service() -> MultiImageRecommendationService:
    """FastAPI dependency returning the shared service."""
    return container.service
