"""Typo-tolerant ranking of in-memory candidates.

Each weighted field of a candidate is compared with the query using
``rapidfuzz``:

* Text is preprocessed with ``rapidfuzz.utils.default_process``
  (lower-cased, punctuation folded to spaces), so matching is
  case-insensitive.
* When the query fits inside the field, ``fuzz.partial_ratio`` scores the
  best-aligned window, so a hit at the end of a long description counts
  the same as one at the start.  A query longer than the field falls back
  to ``fuzz.ratio`` so a short field is not "found" inside a long query.
* The field score is ``1 - similarity / 100``: 0 is an exact hit, 1 is no
  resemblance.  A field matches when its score is at most the threshold.

A candidate's relevance score multiplies, over its matched fields,
``max(score, EXACT_MATCH_FLOOR) ** weight`` with weights normalized to
sum to 1.  Results come back most relevant (lowest score) first.
"""

import logging
from typing import Generic, Iterable

from pydantic import BaseModel
from rapidfuzz import fuzz
from rapidfuzz.utils import default_process

from ...models import CandidateT, HighlightSegment, RankedResult
from ..errors import MatcherConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

# Field score ceiling for a match (0 = exact only, 1 = everything matches).
# 0.4 lets a one or two character typo through but not unrelated text.
MATCH_THRESHOLD = 0.4

# Queries and field texts shorter than this never match.
MIN_MATCH_CHAR_LENGTH = 2

# Stand-in for a field score of 0 so exact hits still rank by field weight.
EXACT_MATCH_FLOOR = 0.001


# ---------------------------------------------------------------------------
# Scoring helpers
# ---------------------------------------------------------------------------

def text_score(
    query: str,
    text: str | None,
    *,
    preprocessed: bool = False,
    min_length: int = MIN_MATCH_CHAR_LENGTH,
) -> float:
    """Score *text* against *query*; 0.0 is a perfect match, 1.0 no match."""
    processed_query = query if preprocessed else default_process(query or "")
    processed_text = default_process(text) if text else ""
    if len(processed_query) < min_length or len(processed_text) < min_length:
        return 1.0

    if len(processed_query) <= len(processed_text):
        similarity = fuzz.partial_ratio(processed_query, processed_text)
    else:
        similarity = fuzz.ratio(processed_query, processed_text)
    return 1.0 - similarity / 100.0


def rank_texts(
    query: str,
    texts: Iterable[str],
    *,
    limit: int | None = None,
    threshold: float = MATCH_THRESHOLD,
) -> list[str]:
    """Return the *texts* that match *query*, most relevant first.

    Texts are returned unmodified.  Equal scores keep their input order.
    """
    processed_query = default_process(query or "")
    if len(processed_query) < MIN_MATCH_CHAR_LENGTH:
        return []

    scored: list[tuple[float, int, str]] = []
    for index, text in enumerate(texts):
        score = text_score(processed_query, text, preprocessed=True)
        if score <= threshold:
            scored.append((score, index, text))

    scored.sort(key=lambda entry: (entry[0], entry[1]))
    matches = [text for _, _, text in scored]
    return matches if limit is None else matches[:max(limit, 0)]


def highlight_matches(
    text: str,
    query: str,
    threshold: float = MATCH_THRESHOLD,
) -> list[HighlightSegment]:
    """Split *text* into plain and highlighted segments around the query hit.

    The highlighted span is the window of *text* best aligned with the
    query.  Text without a match comes back as a single plain segment.
    """
    if not text:
        return []
    needle = (query or "").strip()
    if len(needle) < MIN_MATCH_CHAR_LENGTH:
        return [HighlightSegment(text=text)]

    # str.lower keeps offsets aligned with the original text
    alignment = fuzz.partial_ratio_alignment(needle, text, processor=str.lower)
    if (
        alignment is None
        or alignment.score < (1.0 - threshold) * 100
        or alignment.dest_end <= alignment.dest_start
    ):
        return [HighlightSegment(text=text)]

    start, end = alignment.dest_start, alignment.dest_end
    segments = [
        HighlightSegment(text=text[:start]),
        HighlightSegment(text=text[start:end], highlighted=True),
        HighlightSegment(text=text[end:]),
    ]
    return [segment for segment in segments if segment.text]


# ---------------------------------------------------------------------------
# Matcher
# ---------------------------------------------------------------------------

class FuzzyMatcher(Generic[CandidateT]):
    """Ranks candidates of one model type by weighted fuzzy field matches.

    Construction validates the configuration, so a weight naming a field
    the candidate model does not have fails at import time rather than on
    the first search.
    """

    def __init__(
        self,
        candidate_type: type[BaseModel],
        weights: dict[str, float],
        threshold: float = MATCH_THRESHOLD,
        min_match_char_length: int = MIN_MATCH_CHAR_LENGTH,
    ):
        if not weights:
            raise MatcherConfigurationError("at least one weighted field is required")

        unknown = sorted(set(weights) - set(candidate_type.model_fields))
        if unknown:
            raise MatcherConfigurationError(
                f"{candidate_type.__name__} has no field(s): {', '.join(unknown)}"
            )

        non_positive = sorted(name for name, weight in weights.items() if weight <= 0)
        if non_positive:
            raise MatcherConfigurationError(
                f"weights must be positive: {', '.join(non_positive)}"
            )

        if not 0.0 <= threshold <= 1.0:
            raise MatcherConfigurationError(f"threshold must be within [0, 1], got {threshold}")
        if min_match_char_length < 1:
            raise MatcherConfigurationError("min_match_char_length must be at least 1")

        total = sum(weights.values())
        self.candidate_type = candidate_type
        self.weights = {name: weight / total for name, weight in weights.items()}
        self.threshold = threshold
        self.min_match_char_length = min_match_char_length
        self._result_type = RankedResult[candidate_type]

    def rank(self, candidates: list[CandidateT], query: str) -> list[RankedResult[CandidateT]]:
        processed_query = default_process(query or "")
        if len(processed_query) < self.min_match_char_length:
            return []

        scored = []
        for index, candidate in enumerate(candidates):
            matched: dict[str, float] = {}
            for name in self.weights:
                value = getattr(candidate, name, None)
                score = text_score(
                    processed_query,
                    value if isinstance(value, str) else "",
                    preprocessed=True,
                    min_length=self.min_match_char_length,
                )
                if score <= self.threshold:
                    matched[name] = score

            if not matched:
                continue

            relevance = 1.0
            for name, score in matched.items():
                relevance *= max(score, EXACT_MATCH_FLOOR) ** self.weights[name]
            scored.append((relevance, index, candidate, list(matched)))

        scored.sort(key=lambda entry: (entry[0], entry[1]))
        logger.debug(
            "Ranked %d of %d %s candidates",
            len(scored),
            len(candidates),
            self.candidate_type.__name__,
        )
        return [
            self._result_type(
                item=candidate,
                relevance_score=relevance,
                matched_fields=fields,
                highlights=self._highlights(candidate, fields, query),
            )
            for relevance, _, candidate, fields in scored
        ]

    def _highlights(self, candidate, fields: list[str], query: str) -> dict[str, list[HighlightSegment]]:
        """Highlight segments for matched fields that are serialized."""
        highlights = {}
        for name in fields:
            if self.candidate_type.model_fields[name].exclude:
                continue
            highlights[name] = highlight_matches(getattr(candidate, name), query, self.threshold)
        return highlights
