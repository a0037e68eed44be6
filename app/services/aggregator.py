import asyncio

from loguru import logger
from pydantic import BaseModel

from app.core.config import settings
from app.core.constants import (
    SOURCE_CATEGORY_CORE,
    SOURCE_CATEGORY_INTERNATIONAL,
    SOURCE_CATEGORY_KOREAN,
    SOURCE_CATEGORY_STUDENT,
)
from app.models.artwork import AggregationResult, SourceQueryResult
from app.services.fanout import gather_settled
from app.services.sources.base import ArtSource


class SourceFlags(BaseModel):
    include_korean: bool = True
    include_student_art: bool = False
    include_international: bool = True

    def enabled_categories(self) -> set[str]:
        categories = {SOURCE_CATEGORY_CORE}
        if self.include_korean:
            categories.add(SOURCE_CATEGORY_KOREAN)
        if self.include_student_art:
            categories.add(SOURCE_CATEGORY_STUDENT)
        if self.include_international:
            categories.add(SOURCE_CATEGORY_INTERNATIONAL)
        return categories


class SourceFanoutAggregator:
    """
    Queries every active source concurrently and merges whatever comes back.

    A source that raises, times out or reports failure contributes an empty
    result; it never affects the other sources or the aggregation itself.
    """

    def __init__(
        self,
        sources: list[ArtSource],
        timeout: float | None = None,
        keyword_limit: int | None = None,
    ):
        self.sources = sources
        self.timeout = timeout if timeout is not None else settings.SOURCE_TIMEOUT_SECONDS
        self.keyword_limit = keyword_limit or settings.FANOUT_KEYWORD_LIMIT

    def active_sources(self, flags: SourceFlags) -> list[ArtSource]:
        categories = flags.enabled_categories()
        return [source for source in self.sources if source.category in categories]

    async def aggregate(self, keywords: list[str], flags: SourceFlags, limit: int) -> AggregationResult:
        query = keywords[: self.keyword_limit]
        active = self.active_sources(flags)
        if not query or not active:
            return AggregationResult()

        logger.info(f"Searching {len(active)} sources for {query}")
        started = asyncio.get_running_loop().time()
        outcomes = await gather_settled([source.search(query, limit) for source in active], timeout=self.timeout)

        result = AggregationResult()
        for source, outcome in zip(active, outcomes):
            if not outcome.ok:
                error = outcome.error
                reason = f"timed out after {self.timeout}s" if isinstance(error, asyncio.TimeoutError) else str(error)
                logger.warning(f"{source.name} search failed: {reason or type(error).__name__}")
                query_result = SourceQueryResult.failed(source.name, reason or type(error).__name__)
            elif not outcome.value.success:
                logger.warning(f"{source.name} reported failure: {outcome.value.error}")
                query_result = SourceQueryResult(
                    source_name=source.name, success=False, total=0, error=outcome.value.error
                )
            else:
                query_result = outcome.value

            if not query_result.success:
                result.failed_sources.append(source.name)
            result.results.append(query_result)
            result.artworks.extend(query_result.artworks)

        elapsed = asyncio.get_running_loop().time() - started
        logger.info(
            f"Fan-out finished in {elapsed:.2f}s: {result.total_artworks} artworks, "
            f"{len(result.failed_sources)}/{len(active)} sources failed"
        )
        return result
