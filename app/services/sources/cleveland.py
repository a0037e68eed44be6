from typing import Any

from app.models.artwork import CandidateArtwork
from app.services.sources.base import HttpArtSource


class ClevelandArtSource(HttpArtSource):
    """Cleveland Museum of Art Open Access API (no key required)."""

    name = "Cleveland Museum of Art"
    base_url = "https://openaccess-api.clevelandart.org/api"

    async def fetch(self, keywords: list[str], limit: int) -> tuple[list[CandidateArtwork], int]:
        data = await self.client.get(
            "/artworks/",
            params={"q": " ".join(keywords), "limit": limit, "has_image": 1},
        )
        artworks = [self.format_artwork(item) for item in data.get("data", [])]
        total = (data.get("info") or {}).get("total", len(artworks))
        return artworks, int(total)

    def format_artwork(self, item: dict[str, Any]) -> CandidateArtwork:
        keywords = set()
        for field in ("type", "technique", "department"):
            if item.get(field):
                keywords.add(item[field])
        keywords.update(c for c in (item.get("culture") or []) if c)

        creators = item.get("creators") or []
        artist = creators[0].get("description") if creators else None
        web_image = ((item.get("images") or {}).get("web") or {}).get("url")
        return CandidateArtwork(
            id=f"cleveland_{item['id']}",
            title=item.get("title") or "Untitled",
            artist=artist or "Unknown Artist",
            keywords=keywords,
            source_name=self.name,
            platform="cma",
            source_url=item.get("url"),
            image_url=web_image,
            metadata={"date": item.get("creation_date") or ""},
        )
