"""
Similarity scoring for normalized titles.

Two scorers share one interface:
- SimilarityScorer: character-set overlap (the catalog's historical behavior)
- RapidfuzzScorer: normalized edit-distance ratio via rapidfuzz

Word-level overlap helpers are defined on the base class so both scorers
feed the same threshold-based decision in MatchEngine.
"""

from rapidfuzz import fuzz

# Words this short never count towards overlap
MIN_WORD_LENGTH = 3

WORD_SIMILARITY_THRESHOLD = 0.7


class SimilarityScorer:
    """Character-set overlap scorer.

    similarity(a, b) is the number of distinct characters of `a` that occur
    anywhere in `b`, divided by the longer string's length. It ignores order,
    so it is a cheap bag-of-characters heuristic rather than an edit distance.
    """

    name = "charset"

    def __init__(self, word_threshold: float = WORD_SIMILARITY_THRESHOLD):
        self.word_threshold = word_threshold

    def similarity(self, a: str, b: str) -> float:
        """Similarity in [0, 1]."""
        if not a and not b:
            return 1.0
        if not a or not b:
            return 0.0
        if a == b:
            return 1.0

        common = sum(1 for ch in set(a) if ch in b)
        return common / max(len(a), len(b))

    def words_overlap(self, w1: str, w2: str) -> bool:
        """Whether two words count as "common"."""
        if len(w1) < MIN_WORD_LENGTH or len(w2) < MIN_WORD_LENGTH:
            return False
        return (
            w1 == w2
            or w1 in w2
            or w2 in w1
            or self.similarity(w1, w2) > self.word_threshold
        )

    def common_word_count(self, words_a: list[str], words_b: list[str]) -> int:
        """Count words of `a` with at least one overlapping word in `b`."""
        return sum(
            1 for w1 in words_a
            if any(self.words_overlap(w1, w2) for w2 in words_b)
        )

    def common_word_ratio(self, a: str, b: str) -> float:
        """Common words over the larger word count."""
        words_a, words_b = a.split(), b.split()
        longest = max(len(words_a), len(words_b))
        if longest == 0:
            return 0.0
        return self.common_word_count(words_a, words_b) / longest

    def jaccardish(self, a: str, b: str) -> float:
        """Common words over the number of distinct words in either title."""
        words_a, words_b = a.split(), b.split()
        all_words = set(words_a) | set(words_b)
        if not all_words:
            return 0.0
        return self.common_word_count(words_a, words_b) / len(all_words)


class RapidfuzzScorer(SimilarityScorer):
    """Edit-distance scorer (rapidfuzz ratio), order-sensitive.

    Opt-in replacement for the character-set heuristic; thresholds and the
    word-overlap rules stay the same.
    """

    name = "rapidfuzz"

    def similarity(self, a: str, b: str) -> float:
        if not a and not b:
            return 1.0
        if not a or not b:
            return 0.0
        return fuzz.ratio(a, b) / 100


SCORERS = {
    SimilarityScorer.name: SimilarityScorer,
    RapidfuzzScorer.name: RapidfuzzScorer,
}


def get_scorer(name: str, word_threshold: float = WORD_SIMILARITY_THRESHOLD) -> SimilarityScorer:
    """Build a scorer by config name ("charset" or "rapidfuzz")."""
    try:
        scorer_cls = SCORERS[name]
    except KeyError:
        raise ValueError(f"Unknown scorer: {name!r} (expected one of {sorted(SCORERS)})") from None
    return scorer_cls(word_threshold=word_threshold)
