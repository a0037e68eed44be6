from loguru import logger

from app.core.constants import TOP_MATCHES_COUNT
from app.core.security import redact_token
from app.models.analysis import BatchAnalysis, CommonKeywords
from app.models.artwork import AggregationResult, RankedArtwork
from app.models.payment import PaymentTier
from app.models.response import (
    AnalysisRequest,
    AnalysisResponse,
    SimilarityAnalysis,
    SourceSummary,
    TopMatch,
)
from app.services.history_store import HistoryStore


def _percent(value: float) -> int:
    return round(value * 100)


class ResultAssembler:
    """Packages a finished batch into the response and writes the audit record."""

    def __init__(self, history_store: HistoryStore):
        self.history_store = history_store

    @staticmethod
    def summarize_sources(aggregation: AggregationResult) -> list[SourceSummary]:
        return [
            SourceSummary(
                source_name=result.source_name,
                success=result.success,
                returned=len(result.artworks),
                total=result.total,
                error=result.error,
            )
            for result in aggregation.results
        ]

    @staticmethod
    def similarity_analysis(recommendations: list[RankedArtwork]) -> SimilarityAnalysis:
        if not recommendations:
            return SimilarityAnalysis()

        average = sum(item.similarity.total for item in recommendations) / len(recommendations)
        top_matches = [
            TopMatch(
                title=item.artwork.title,
                similarity=_percent(item.similarity.total),
                matched_keywords=item.similarity.matched_keywords,
            )
            for item in recommendations[:TOP_MATCHES_COUNT]
        ]
        return SimilarityAnalysis(average_similarity=_percent(average), top_matches=top_matches)

    def assemble(
        self,
        batch_id: str,
        tier: PaymentTier,
        batch: BatchAnalysis,
        common: CommonKeywords,
        aggregation: AggregationResult,
        ranked: list[RankedArtwork],
        excluded_count: int,
        limit: int,
        processing_time_ms: int,
        invalid_image_count: int = 0,
    ) -> AnalysisResponse:
        recommendations = ranked[:limit]
        return AnalysisResponse(
            batch_id=batch_id,
            success=True,
            image_count=len(batch.results),
            tier=tier.name,
            results=batch.results,
            failed_images=batch.failed_count,
            common_keywords=common,
            total_similarity_score=common.confidence_percent,
            recommendations=recommendations,
            excluded_count=excluded_count,
            invalid_image_count=invalid_image_count,
            sources=self.summarize_sources(aggregation),
            similarity_analysis=self.similarity_analysis(recommendations),
            processing_time_ms=processing_time_ms,
        )

    async def persist(self, request: AnalysisRequest, response: AnalysisResponse) -> bool:
        """Best-effort audit write; a failure here never fails the batch."""
        try:
            await self.history_store.save(response.batch_id, request, response)
        except Exception as e:
            logger.warning(f"[{redact_token(request.identity)}] Failed to persist batch {response.batch_id}: {e}")
            return False
        return True
