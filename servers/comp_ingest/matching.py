"""
Match engine for cross-source event identity.

Decision on normalized titles, first rule that holds wins:
1. Equal keys
2. One key contains the other
3. String similarity > 0.75
4. Common-word ratio > 0.5
5. Common words over distinct words > 0.4

resolve() returns the FIRST catalog record that matches, in catalog
iteration order. When a candidate could match two records the earlier one
wins; stores iterate in insertion order so this is reproducible.
"""

from typing import Iterable, Optional

import structlog

from .models import EventRecord, MatchDecision
from .normalize import normalize_title
from .similarity import SimilarityScorer

logger = structlog.get_logger()

SIMILARITY_THRESHOLD = 0.75
COMMON_WORD_RATIO = 0.5
JACCARD_RATIO = 0.4


class MatchEngine:
    """Decides whether a candidate title refers to an already known event."""

    def __init__(
        self,
        scorer: Optional[SimilarityScorer] = None,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        common_word_ratio: float = COMMON_WORD_RATIO,
        jaccard_ratio: float = JACCARD_RATIO,
    ):
        self.scorer = scorer or SimilarityScorer()
        self.similarity_threshold = similarity_threshold
        self.common_word_ratio = common_word_ratio
        self.jaccard_ratio = jaccard_ratio

    def match_reason(self, candidate_title: str, existing_title: str) -> Optional[str]:
        """Name of the first rule that matches, or None."""
        a = normalize_title(candidate_title)
        b = normalize_title(existing_title)

        if a == b:
            return "equal"
        if a in b or b in a:
            return "contains"
        if self.scorer.similarity(a, b) > self.similarity_threshold:
            return "similarity"
        if self.scorer.common_word_ratio(a, b) > self.common_word_ratio:
            return "common_words"
        if self.scorer.jaccardish(a, b) > self.jaccard_ratio:
            return "jaccard"
        return None

    def is_match(self, candidate_title: str, existing_title: str) -> bool:
        return self.match_reason(candidate_title, existing_title) is not None

    def resolve(
        self, candidate: EventRecord, catalog: Iterable[EventRecord]
    ) -> MatchDecision:
        """Return the first catalog record matching the candidate, if any."""
        for existing in catalog:
            if existing.id is None:
                continue
            reason = self.match_reason(candidate.title, existing.title)
            if reason:
                logger.debug(
                    "match_found",
                    candidate=candidate.title,
                    existing=existing.title,
                    existing_id=existing.id,
                    rule=reason,
                )
                return MatchDecision.found(existing.id)
        return MatchDecision.no_match()
