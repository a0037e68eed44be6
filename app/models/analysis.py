from pydantic import BaseModel, ConfigDict, Field


class ImageAnalysisResult(BaseModel):
    """Descriptors extracted from a single uploaded image."""

    model_config = ConfigDict(frozen=True)

    keywords: frozenset[str] = Field(default_factory=frozenset)
    colors: frozenset[str] = Field(default_factory=frozenset)
    style: frozenset[str] = Field(default_factory=frozenset)
    mood: frozenset[str] = Field(default_factory=frozenset)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    @classmethod
    def empty(cls) -> "ImageAnalysisResult":
        """Placeholder for an image whose analysis failed."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (self.keywords or self.colors or self.style or self.mood)


class BatchAnalysis(BaseModel):
    results: list[ImageAnalysisResult] = Field(default_factory=list)
    failed_count: int = 0


class CommonKeywords(BaseModel):
    """Descriptor tokens shared across the batch, most frequent first."""

    keywords: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    frequency: dict[str, int] = Field(default_factory=dict)

    @property
    def confidence_percent(self) -> int:
        return round(self.confidence * 100)
