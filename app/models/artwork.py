from typing import Any

from pydantic import BaseModel, Field


class CandidateArtwork(BaseModel):
    """An artwork returned by a content source, before policy filtering and ranking."""

    id: str
    title: str
    artist: str = "Unknown Artist"
    keywords: set[str] = Field(default_factory=set)
    source_name: str
    platform: str | None = None
    source_url: str | None = None
    image_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SourceQueryResult(BaseModel):
    source_name: str
    success: bool
    artworks: list[CandidateArtwork] = Field(default_factory=list)
    total: int = 0
    error: str | None = None

    @classmethod
    def failed(cls, source_name: str, error: str) -> "SourceQueryResult":
        return cls(source_name=source_name, success=False, error=error)


class AggregationResult(BaseModel):
    success: bool = True
    results: list[SourceQueryResult] = Field(default_factory=list)
    artworks: list[CandidateArtwork] = Field(default_factory=list)
    failed_sources: list[str] = Field(default_factory=list)

    @property
    def total_artworks(self) -> int:
        return len(self.artworks)


class SimilarityScore(BaseModel):
    total: float = Field(ge=0.0, le=1.0)
    keyword_match_percent: int = Field(ge=0, le=100)
    matched_keywords: list[str] = Field(default_factory=list)
    confidence_percent: int = Field(ge=0, le=100)


class RankedArtwork(BaseModel):
    artwork: CandidateArtwork
    similarity: SimilarityScore
