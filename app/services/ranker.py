import re

from app.core.constants import (
    CONFIDENCE_BOOST,
    MAX_MATCHED_KEYWORDS,
    PARTIAL_MATCH_MIN_LENGTH,
    PARTIAL_MATCH_WEIGHT,
)
from app.models.analysis import CommonKeywords
from app.models.artwork import CandidateArtwork, RankedArtwork, SimilarityScore

_PUNCTUATION = re.compile(r"[^\w\s]")


def normalize_keyword(keyword: str) -> str:
    return _PUNCTUATION.sub("", keyword.lower()).strip()


def normalize_keywords(keywords) -> list[str]:
    """Lower-case, strip punctuation and drop single-character tokens; order kept, duplicates removed."""
    seen: dict[str, None] = {}
    for keyword in keywords:
        token = normalize_keyword(keyword)
        if len(token) > 1:
            seen.setdefault(token, None)
    return list(seen)


def _is_partial_match(token: str, candidate_tokens: list[str]) -> bool:
    if len(token) < PARTIAL_MATCH_MIN_LENGTH:
        return False
    return any(token in other or other in token for other in candidate_tokens if len(other) > 1)


class SimilarityRanker:
    """
    Scores candidates against the batch's common keywords.

    ``score`` is a pure function of its inputs; the total is always in [0, 1].
    """

    def score(self, common: CommonKeywords, candidate: CandidateArtwork) -> SimilarityScore:
        common_tokens = normalize_keywords(common.keywords)
        candidate_tokens = normalize_keywords(sorted(candidate.keywords))
        candidate_set = set(candidate_tokens)

        exact = [token for token in common_tokens if token in candidate_set]
        partial = [
            token
            for token in common_tokens
            if token not in candidate_set and _is_partial_match(token, candidate_tokens)
        ]
        total_matches = len(exact) + PARTIAL_MATCH_WEIGHT * len(partial)

        denominator = max(len(common_tokens), len(candidate_tokens))
        base = total_matches / denominator if denominator else 0.0
        total = min(1.0, max(0.0, base + CONFIDENCE_BOOST * common.confidence))

        match_percent = round(100 * total_matches / len(common_tokens)) if common_tokens else 0
        return SimilarityScore(
            total=total,
            keyword_match_percent=min(100, match_percent),
            matched_keywords=(exact + partial)[:MAX_MATCHED_KEYWORDS],
            confidence_percent=common.confidence_percent,
        )

    def rank(self, common: CommonKeywords, candidates: list[CandidateArtwork]) -> list[RankedArtwork]:
        ranked = [RankedArtwork(artwork=c, similarity=self.score(common, c)) for c in candidates]
        # Stable: equal scores keep pool order
        ranked.sort(key=lambda item: item.similarity.total, reverse=True)
        return ranked
