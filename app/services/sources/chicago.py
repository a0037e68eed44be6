from typing import Any

from app.models.artwork import CandidateArtwork
from app.services.sources.base import HttpArtSource

CHICAGO_FIELDS = (
    "id,title,artist_display,date_display,medium_display,image_id,"
    "classification_titles,style_titles,subject_titles,technique_titles,theme_titles,material_titles"
)
KEYWORD_FIELDS = (
    "classification_titles",
    "style_titles",
    "subject_titles",
    "technique_titles",
    "theme_titles",
    "material_titles",
)
DEFAULT_IIIF_URL = "https://www.artic.edu/iiif/2"


class ChicagoArtSource(HttpArtSource):
    """Art Institute of Chicago public API (no key required)."""

    name = "Art Institute of Chicago"
    base_url = "https://api.artic.edu/api/v1"

    async def fetch(self, keywords: list[str], limit: int) -> tuple[list[CandidateArtwork], int]:
        data = await self.client.get(
            "/artworks/search",
            params={"q": " ".join(keywords), "limit": limit, "fields": CHICAGO_FIELDS},
        )
        iiif_url = (data.get("config") or {}).get("iiif_url") or DEFAULT_IIIF_URL
        artworks = [self.format_artwork(item, iiif_url) for item in data.get("data", []) if item.get("image_id")]
        total = (data.get("info") or {}).get("total", len(artworks))
        return artworks, int(total)

    def format_artwork(self, item: dict[str, Any], iiif_url: str) -> CandidateArtwork:
        keywords = {title for field in KEYWORD_FIELDS for title in (item.get(field) or []) if title}
        return CandidateArtwork(
            id=f"chicago_{item['id']}",
            title=item.get("title") or "Untitled",
            artist=item.get("artist_display") or "Unknown Artist",
            keywords=keywords,
            source_name=self.name,
            platform="artic",
            source_url=f"https://www.artic.edu/artworks/{item['id']}",
            image_url=f"{iiif_url}/{item['image_id']}/full/843,/0/default.jpg",
            metadata={
                "date": item.get("date_display") or "",
                "medium": item.get("medium_display") or "",
            },
        )
