from datetime import datetime

from pydantic import BaseModel, Field

from app.models.analysis import CommonKeywords, ImageAnalysisResult
from app.models.artwork import RankedArtwork


class AnalysisOptions(BaseModel):
    limit: int = Field(default=20, ge=1, le=100)
    include_korean: bool = True
    include_student_art: bool = False
    include_international: bool = True


class AnalysisRequest(BaseModel):
    """Request side of the audit record."""

    identity: str | None = None
    image_count: int
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


class SourceSummary(BaseModel):
    source_name: str
    success: bool
    returned: int
    total: int
    error: str | None = None


class TopMatch(BaseModel):
    title: str
    similarity: int
    matched_keywords: list[str] = Field(default_factory=list)


class SimilarityAnalysis(BaseModel):
    average_similarity: int = 0
    top_matches: list[TopMatch] = Field(default_factory=list)


class AnalysisResponse(BaseModel):
    batch_id: str
    success: bool = True
    image_count: int
    tier: str
    results: list[ImageAnalysisResult]
    failed_images: int = 0
    common_keywords: CommonKeywords
    total_similarity_score: int = 0
    recommendations: list[RankedArtwork] = Field(default_factory=list)
    excluded_count: int = 0
    invalid_image_count: int = 0
    sources: list[SourceSummary] = Field(default_factory=list)
    similarity_analysis: SimilarityAnalysis = Field(default_factory=SimilarityAnalysis)
    processing_time_ms: int = 0


class HistoryEntry(BaseModel):
    batch_id: str
    created_at: datetime
    request: AnalysisRequest
    response: AnalysisResponse
