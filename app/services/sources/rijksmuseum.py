from typing import Any

from app.models.artwork import CandidateArtwork
from app.services.sources.base import HttpArtSource


class RijksmuseumSource(HttpArtSource):
    """Rijksmuseum collection API (requires an API key)."""

    name = "Rijksmuseum"
    base_url = "https://www.rijksmuseum.nl/api/en"

    def __init__(self, api_key: str, timeout: float = 10.0):
        super().__init__(timeout=timeout)
        self.api_key = api_key

    async def fetch(self, keywords: list[str], limit: int) -> tuple[list[CandidateArtwork], int]:
        data = await self.client.get(
            "/collection",
            params={"key": self.api_key, "q": " ".join(keywords), "ps": limit, "imgonly": "true"},
        )
        artworks = [self.format_artwork(item) for item in data.get("artObjects", [])]
        return artworks, int(data.get("count") or len(artworks))

    def format_artwork(self, item: dict[str, Any]) -> CandidateArtwork:
        # The list endpoint carries no subject terms; fall back to title words
        title = item.get("title") or "Untitled"
        title_words = {w for w in title.lower().split() if len(w) > 3}
        return CandidateArtwork(
            id=f"rijks_{item['objectNumber']}",
            title=title,
            artist=item.get("principalOrFirstMaker") or "Unknown Artist",
            keywords=title_words,
            source_name=self.name,
            platform="rijksmuseum",
            source_url=(item.get("links") or {}).get("web"),
            image_url=(item.get("webImage") or {}).get("url"),
            metadata={"long_title": item.get("longTitle") or ""},
        )
