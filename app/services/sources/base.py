from abc import ABC, abstractmethod

import httpx
from loguru import logger

from app.core.base_client import BaseClient
from app.core.constants import SOURCE_CATEGORY_CORE
from app.core.exceptions import SourceUnavailableError
from app.models.artwork import CandidateArtwork, SourceQueryResult


class ArtSource(ABC):
    """
    A content source exposing a uniform keyword search.

    ``category`` decides which request flags enable the source
    (core sources are always queried).
    """

    name: str = "unknown"
    category: str = SOURCE_CATEGORY_CORE

    @abstractmethod
    async def search(self, keywords: list[str], limit: int) -> SourceQueryResult:
        pass

    async def close(self) -> None:
        return None


class HttpArtSource(ArtSource):
    """Source backed by an HTTP API; transport and payload errors become a failed result."""

    base_url: str = ""

    def __init__(self, timeout: float = 10.0, headers: dict[str, str] | None = None, max_retries: int = 1):
        self.client = BaseClient(base_url=self.base_url, timeout=timeout, max_retries=max_retries, headers=headers)

    @abstractmethod
    async def fetch(self, keywords: list[str], limit: int) -> tuple[list[CandidateArtwork], int]:
        """Return (artworks, total hits reported by the API)."""

    async def search(self, keywords: list[str], limit: int) -> SourceQueryResult:
        if not keywords:
            return SourceQueryResult(source_name=self.name, success=True)
        try:
            artworks, total = await self.fetch(keywords, limit)
        except (httpx.HTTPError, SourceUnavailableError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"{self.name} search failed: {e}")
            return SourceQueryResult.failed(self.name, str(e) or type(e).__name__)

        artworks = artworks[:limit]
        logger.debug(f"{self.name}: {len(artworks)} artworks for {keywords}")
        return SourceQueryResult(source_name=self.name, success=True, artworks=artworks, total=total)

    async def close(self) -> None:
        await self.client.close()
