"""
Content exclusion policy.

Every exclusion lives in ``EXCLUSION_RULES`` and is evaluated by ``is_excluded``.
The filter runs after the source fan-out and before ranking, so a candidate it
removes can never come back through a high similarity score.
"""

from dataclasses import dataclass
from typing import Literal

from loguru import logger

from app.models.artwork import CandidateArtwork

MatchMode = Literal["equals", "contains"]

CANDIDATE_FIELDS = ("source_name", "platform", "source_url", "title")
METADATA_FIELDS = ("project_type", "university", "category", "search_source")


@dataclass(frozen=True)
class ExclusionRule:
    field: str
    value: str
    match: MatchMode = "equals"
    reason: str = ""

    def __post_init__(self):
        if self.field not in CANDIDATE_FIELDS and self.field not in METADATA_FIELDS:
            raise ValueError(f"Unknown exclusion field: {self.field}")

    def matches(self, candidate: CandidateArtwork) -> bool:
        actual = field_value(candidate, self.field)
        if not actual:
            return False
        if self.match == "equals":
            return actual == self.value
        return self.value in actual


def field_value(candidate: CandidateArtwork, field: str) -> str | None:
    if field in CANDIDATE_FIELDS:
        value = getattr(candidate, field)
    elif field in METADATA_FIELDS:
        value = candidate.metadata.get(field)
    else:
        raise ValueError(f"Unknown exclusion field: {field}")
    return value if isinstance(value, str) else None


def _rules(reason: str, *specs: tuple[str, str, MatchMode]) -> tuple[ExclusionRule, ...]:
    return tuple(ExclusionRule(field, value, match, reason) for field, value, match in specs)


CROWDFUNDING = "crowdfunding platform"
STUDENT_PORTFOLIO = "student portfolio aggregator"
ACADEMIC_SHOWCASE = "university graduation showcase"

# Loaded once at import; never mutated.
EXCLUSION_RULES: tuple[ExclusionRule, ...] = (
    *_rules(
        CROWDFUNDING,
        ("platform", "tumblbug", "equals"),
        ("source_name", "텀블벅", "equals"),
        ("search_source", "텀블벅", "equals"),
        ("source_url", "tumblbug.com", "contains"),
        ("project_type", "크라우드펀딩", "equals"),
    ),
    *_rules(
        STUDENT_PORTFOLIO,
        ("platform", "grafolio", "equals"),
        ("source_name", "그라폴리오", "equals"),
        ("search_source", "그라폴리오", "equals"),
        ("source_url", "grafolio.naver.com", "contains"),
    ),
    *_rules(
        ACADEMIC_SHOWCASE,
        ("platform", "university", "equals"),
        ("source_name", "대학 졸업전시", "equals"),
        ("category", "student_work", "equals"),
        ("search_source", "graduation", "equals"),
        ("university", "대학", "contains"),
        ("university", "University", "contains"),
        ("source_url", ".ac.kr", "contains"),
        ("source_url", "univ.", "contains"),
        ("source_url", "university", "contains"),
        ("source_url", "college", "contains"),
        ("source_url", "graduation", "contains"),
        ("source_name", "졸업전시", "contains"),
        ("source_name", "졸업작품", "contains"),
        ("source_name", "대학", "contains"),
        ("source_name", "University", "contains"),
        ("source_name", "College", "contains"),
        ("title", "졸업작품", "contains"),
        ("title", "졸업전시", "contains"),
    ),
)


def matching_rule(
    candidate: CandidateArtwork, rules: tuple[ExclusionRule, ...] = EXCLUSION_RULES
) -> ExclusionRule | None:
    for rule in rules:
        if rule.matches(candidate):
            return rule
    return None


def is_excluded(candidate: CandidateArtwork, rules: tuple[ExclusionRule, ...] = EXCLUSION_RULES) -> bool:
    """The single predicate behind the exclusion policy."""
    return matching_rule(candidate, rules) is not None


class ContentPolicyFilter:
    def __init__(self, rules: tuple[ExclusionRule, ...] = EXCLUSION_RULES):
        self.rules = tuple(rules)

    def apply(self, candidates: list[CandidateArtwork]) -> tuple[list[CandidateArtwork], int]:
        """Return (kept candidates in original order, number excluded)."""
        kept = []
        excluded = 0
        for candidate in candidates:
            rule = matching_rule(candidate, self.rules)
            if rule is not None:
                excluded += 1
                logger.debug(f"Excluded {candidate.id} from {candidate.source_name}: {rule.reason} ({rule.field})")
                continue
            kept.append(candidate)

        if excluded:
            logger.info(f"Content policy removed {excluded}/{len(candidates)} candidates")
        return kept, excluded
