"""
Core constants used across the application. Keep these simple and documented.
"""

# A token is "common" when it appears in at least this share of the batch (floored, min 1 image)
COMMON_KEYWORD_RATIO: float = 0.5
MAX_COMMON_KEYWORDS: int = 20
# Confidence heuristic assumes roughly this many descriptor tokens per image
EXPECTED_TOKENS_PER_IMAGE: int = 10

# Ranking
CONFIDENCE_BOOST: float = 0.3
PARTIAL_MATCH_WEIGHT: float = 0.5
PARTIAL_MATCH_MIN_LENGTH: int = 4
MAX_MATCHED_KEYWORDS: int = 10
TOP_MATCHES_COUNT: int = 3

# Source roster categories
SOURCE_CATEGORY_CORE: str = "core"
SOURCE_CATEGORY_KOREAN: str = "korean"
SOURCE_CATEGORY_STUDENT: str = "student"
SOURCE_CATEGORY_INTERNATIONAL: str = "international"

# Redis keys (prefixed with settings.REDIS_KEY_PREFIX)
PAYMENTS_KEY: str = "payments:{identity}:{tier}"
HISTORY_KEY: str = "history:{identity}"
