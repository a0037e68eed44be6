import time
import uuid

from loguru import logger

from app.core.config import settings
from app.core.exceptions import BatchValidationError, PaymentRequiredError
from app.core.security import redact_token
from app.models.artwork import AggregationResult
from app.models.response import AnalysisOptions, AnalysisRequest, AnalysisResponse, HistoryEntry
from app.services.aggregator import SourceFanoutAggregator, SourceFlags
from app.services.assembler import ResultAssembler
from app.services.batch_analyzer import ImageBatchAnalyzer
from app.services.content_policy import ContentPolicyFilter
from app.services.history_store import HistoryStore
from app.services.image_validator import ImageUrlValidator
from app.services.keywords import CommonKeywordExtractor
from app.services.payments import PaymentLinkBuilder
from app.services.ranker import SimilarityRanker
from app.services.tier_gate import TierGate


class MultiImageRecommendationService:
    """
    Runs one multi-image batch end to end:

    tier gate -> per-image analysis -> common keywords -> source fan-out
    -> content policy -> ranking -> image checks -> response + audit record.

    Only batch validation and the tier gate raise; every later stage degrades
    to partial or empty results.
    """

    def __init__(
        self,
        tier_gate: TierGate,
        batch_analyzer: ImageBatchAnalyzer,
        extractor: CommonKeywordExtractor,
        aggregator: SourceFanoutAggregator,
        policy: ContentPolicyFilter,
        ranker: SimilarityRanker,
        assembler: ResultAssembler,
        history_store: HistoryStore,
        link_builder: PaymentLinkBuilder,
        max_images: int | None = None,
        source_result_limit: int | None = None,
        image_validator: ImageUrlValidator | None = None,
    ):
        self.tier_gate = tier_gate
        self.batch_analyzer = batch_analyzer
        self.extractor = extractor
        self.aggregator = aggregator
        self.policy = policy
        self.ranker = ranker
        self.assembler = assembler
        self.history_store = history_store
        self.link_builder = link_builder
        self.max_images = max_images or settings.MAX_IMAGES_PER_BATCH
        self.source_result_limit = source_result_limit or settings.SOURCE_RESULT_LIMIT
        self.image_validator = image_validator

    def validate_batch(self, images: list[bytes]) -> None:
        if not images:
            raise BatchValidationError("At least one image is required", details={"image_count": 0})
        if len(images) > self.max_images:
            raise BatchValidationError(
                f"Maximum {self.max_images} images per batch",
                details={"image_count": len(images), "max_images": self.max_images},
            )

    async def analyze(
        self,
        identity: str | None,
        images: list[bytes],
        options: AnalysisOptions | None = None,
    ) -> AnalysisResponse:
        options = options or AnalysisOptions()
        self.validate_batch(images)
        started = time.perf_counter()
        user = redact_token(identity)

        permission = await self.tier_gate.check_permission(identity, len(images))
        if not permission.can_analyze:
            logger.info(f"[{user}] {permission.tier.name} batch of {len(images)} images denied")
            raise PaymentRequiredError(
                permission.error or f"Payment required for {permission.tier.name}",
                tier=permission.tier,
                payment_url=self.link_builder.build(identity, permission.tier),
            )

        batch_id = str(uuid.uuid4())
        logger.info(f"[{user}] Batch {batch_id}: analyzing {len(images)} images ({permission.tier.name})")

        batch = await self.batch_analyzer.analyze_batch(images)
        common = self.extractor.extract(batch.results)

        aggregation = AggregationResult()
        kept = []
        excluded_count = 0
        if common.keywords:
            flags = SourceFlags(
                include_korean=options.include_korean,
                include_student_art=options.include_student_art,
                include_international=options.include_international,
            )
            aggregation = await self.aggregator.aggregate(common.keywords, flags, self.source_result_limit)
            kept, excluded_count = self.policy.apply(aggregation.artworks)
        else:
            logger.info(f"[{user}] Batch {batch_id}: no common keywords, skipping source search")

        ranked = self.ranker.rank(common, kept)
        invalid_image_count = 0
        if self.image_validator is not None and ranked:
            ranked, invalid_image_count = await self.image_validator.filter_valid(ranked, options.limit)

        response = self.assembler.assemble(
            batch_id=batch_id,
            tier=permission.tier,
            batch=batch,
            common=common,
            aggregation=aggregation,
            ranked=ranked,
            excluded_count=excluded_count,
            limit=options.limit,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
            invalid_image_count=invalid_image_count,
        )

        request = AnalysisRequest(identity=identity, image_count=len(images), options=options)
        await self.assembler.persist(request, response)

        logger.info(
            f"[{user}] Batch {batch_id} done in {response.processing_time_ms}ms: "
            f"{len(response.recommendations)} recommendations, {excluded_count} excluded"
        )
        return response

    async def history(self, identity: str, limit: int = 20) -> list[HistoryEntry]:
        return await self.history_store.list_history(identity, limit)
