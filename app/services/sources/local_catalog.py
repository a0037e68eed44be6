import json
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from app.core.constants import SOURCE_CATEGORY_CORE
from app.models.artwork import CandidateArtwork, SourceQueryResult
from app.services.sources.base import ArtSource

_catalog_adapter = TypeAdapter(list[CandidateArtwork])


class LocalCatalogSource(ArtSource):
    """
    Curated artworks from a JSON file (a list of CandidateArtwork objects).
    The file is read on first search and kept for the process lifetime.
    """

    def __init__(self, path: str | Path, name: str = "Artlens Catalog", category: str = SOURCE_CATEGORY_CORE):
        self.path = Path(path)
        self.name = name
        self.category = category
        self._artworks: list[CandidateArtwork] | None = None

    def _load(self) -> list[CandidateArtwork]:
        if self._artworks is None:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            for item in raw:
                item.setdefault("source_name", self.name)
            self._artworks = _catalog_adapter.validate_python(raw)
            logger.info(f"Loaded {len(self._artworks)} artworks from {self.path}")
        return self._artworks

    async def search(self, keywords: list[str], limit: int) -> SourceQueryResult:
        try:
            artworks = self._load()
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"{self.name} catalog unavailable: {e}")
            return SourceQueryResult.failed(self.name, str(e))

        wanted = {k.lower() for k in keywords}
        matches = [a for a in artworks if wanted & {k.lower() for k in a.keywords}]
        return SourceQueryResult(source_name=self.name, success=True, artworks=matches[:limit], total=len(matches))
