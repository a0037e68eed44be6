import asyncio
from typing import Any

from async_lru import alru_cache
from loguru import logger

from app.models.artwork import CandidateArtwork
from app.services.sources.base import HttpArtSource

# The object endpoint intermittently answers 403/502 under load
MET_MAX_ATTEMPTS = 2


class MetMuseumSource(HttpArtSource):
    """
    Metropolitan Museum of Art collection API.
    Search returns object ids only, so details are fetched per object and cached.
    """

    name = "Metropolitan Museum"
    base_url = "https://collectionapi.metmuseum.org/public/collection/v1"

    def __init__(self, timeout: float = 10.0, max_retries: int = MET_MAX_ATTEMPTS):
        super().__init__(timeout=timeout, max_retries=max_retries)

    async def fetch(self, keywords: list[str], limit: int) -> tuple[list[CandidateArtwork], int]:
        data = await self.client.get("/search", params={"q": " ".join(keywords), "hasImages": "true"})
        object_ids = (data.get("objectIDs") or [])[:limit]
        total = int(data.get("total") or 0)

        details = await asyncio.gather(*(self.get_object(oid) for oid in object_ids), return_exceptions=True)
        artworks = []
        for object_id, detail in zip(object_ids, details):
            if isinstance(detail, Exception) or not detail:
                logger.debug(f"Met object {object_id} unavailable: {detail}")
                continue
            if not detail.get("primaryImageSmall"):
                continue
            artworks.append(self.format_artwork(detail))
        return artworks, total

    @alru_cache(maxsize=5000, ttl=86400)
    async def get_object(self, object_id: int) -> dict[str, Any]:
        return await self.client.get(f"/objects/{object_id}")

    def format_artwork(self, item: dict[str, Any]) -> CandidateArtwork:
        keywords = {tag.get("term") for tag in (item.get("tags") or []) if tag.get("term")}
        for field in ("classification", "department", "culture", "period"):
            if item.get(field):
                keywords.add(item[field])
        return CandidateArtwork(
            id=f"met_{item['objectID']}",
            title=item.get("title") or "Untitled",
            artist=item.get("artistDisplayName") or "Unknown Artist",
            keywords=keywords,
            source_name=self.name,
            platform="met",
            source_url=item.get("objectURL"),
            image_url=item.get("primaryImageSmall"),
            metadata={
                "date": item.get("objectDate") or "",
                "medium": item.get("medium") or "",
            },
        )
