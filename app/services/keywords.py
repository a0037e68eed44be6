import math

from loguru import logger

from app.core.constants import COMMON_KEYWORD_RATIO, EXPECTED_TOKENS_PER_IMAGE, MAX_COMMON_KEYWORDS
from app.models.analysis import CommonKeywords, ImageAnalysisResult


def normalize_token(token: str) -> str:
    return token.lower().strip()


def common_threshold(image_count: int) -> int:
    """Minimum number of images a token must appear in to be common."""
    return max(1, math.floor(image_count * COMMON_KEYWORD_RATIO))


class CommonKeywordExtractor:
    """Merges per-image descriptors into the tokens shared across the batch."""

    def __init__(self, max_keywords: int = MAX_COMMON_KEYWORDS):
        self.max_keywords = max_keywords

    @staticmethod
    def _image_tokens(result: ImageAnalysisResult) -> list[str]:
        """Distinct normalized tokens of one image, in field order then alphabetical."""
        seen: dict[str, None] = {}
        for field in (result.keywords, result.colors, result.style, result.mood):
            for token in sorted(normalize_token(t) for t in field):
                if token:
                    seen.setdefault(token, None)
        return list(seen)

    def extract(self, results: list[ImageAnalysisResult]) -> CommonKeywords:
        if not results:
            return CommonKeywords()

        # frequency = number of images carrying the token
        frequency: dict[str, int] = {}
        for result in results:
            for token in self._image_tokens(result):
                frequency[token] = frequency.get(token, 0) + 1

        threshold = common_threshold(len(results))
        common = [token for token, count in frequency.items() if count >= threshold and len(token) > 1]
        # sorted() is stable, so ties keep first-seen order
        common = sorted(common, key=lambda token: frequency[token], reverse=True)[: self.max_keywords]

        confidence = 0.0
        if common:
            confidence = min(1.0, sum(frequency.values()) / (len(results) * EXPECTED_TOKENS_PER_IMAGE))

        logger.info(f"Found {len(common)} common keywords across {len(results)} images (threshold={threshold})")
        return CommonKeywords(keywords=common, confidence=confidence, frequency=frequency)
