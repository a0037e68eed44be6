from urllib.parse import urlparse

import httpx
from async_lru import alru_cache
from loguru import logger

from app.core.base_client import BaseClient
from app.core.config import settings
from app.models.artwork import RankedArtwork
from app.services.fanout import gather_settled

VALIDATION_BATCH_SIZE = 10


class ImageUrlValidator:
    """
    Drops ranked artworks whose image cannot be fetched.

    Each URL is checked with a HEAD request and the answer is cached for five
    minutes. A check that errors counts as an invalid image; it never fails the batch.
    """

    def __init__(self, timeout: float | None = None, batch_size: int = VALIDATION_BATCH_SIZE):
        self.client = BaseClient(
            timeout=timeout or settings.IMAGE_VALIDATION_TIMEOUT_SECONDS,
            headers={"Accept": "image/*"},
        )
        self.batch_size = batch_size

    @staticmethod
    def is_well_formed(url: str | None) -> bool:
        if not url:
            return False
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    @alru_cache(maxsize=4096, ttl=300)
    async def is_valid(self, url: str) -> bool:
        try:
            response = await self.client.head(url)
        except httpx.HTTPError as e:
            logger.debug(f"Image check failed for {url}: {e}")
            return False
        return response.headers.get("content-type", "").startswith("image/")

    async def filter_valid(
        self, ranked: list[RankedArtwork], limit: int | None = None
    ) -> tuple[list[RankedArtwork], int]:
        """
        Return (artworks with a reachable image in ranked order, number dropped).

        Checking stops once ``limit`` artworks have passed.
        """
        kept: list[RankedArtwork] = []
        checkable = [item for item in ranked if self.is_well_formed(item.artwork.image_url)]
        invalid = len(ranked) - len(checkable)

        for start in range(0, len(checkable), self.batch_size):
            batch = checkable[start : start + self.batch_size]
            outcomes = await gather_settled([self.is_valid(item.artwork.image_url) for item in batch])
            for item, outcome in zip(batch, outcomes):
                if outcome.ok and outcome.value:
                    kept.append(item)
                else:
                    invalid += 1
                    logger.debug(f"Dropping {item.artwork.id}: image unavailable ({item.artwork.image_url})")
            if limit is not None and len(kept) >= limit:
                break

        if invalid:
            logger.info(f"Image validation dropped {invalid} artworks, kept {len(kept)}")
        return (kept[:limit] if limit is not None else kept), invalid

    async def close(self) -> None:
        await self.client.close()
