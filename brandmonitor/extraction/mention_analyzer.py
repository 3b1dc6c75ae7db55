# coding: ascii
"""Brand mention analysis for platform responses.

The analyzer is a deterministic keyword heuristic: the same text and brand
always produce the same score, sentiment and snippet.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..core.exceptions import MentionAnalysisError
from ..core.models import Sentiment
from .citation_extractor import extract_citations, find_domain_citation

CONTEXT_WINDOW = 200

POSITIVE_TERMS = (
    "best",
    "top",
    "leading",
    "excellent",
    "great",
    "recommended",
    "popular",
    "trusted",
    "reliable",
)
NEGATIVE_TERMS = (
    "alternative",
    "however",
    "but",
    "unfortunately",
    "lacking",
    "limited",
    "expensive",
)

# Base prominence by 1-based sentence position; anything later scores 10.
_POSITION_SCORES = {1: 40, 2: 30, 3: 20}
_LATE_POSITION_SCORE = 10

_POSITIVE_WEIGHT = 10
_NEGATIVE_SENTIMENT_WEIGHT = 10
_NEGATIVE_PROMINENCE_WEIGHT = 5
_SENTIMENT_THRESHOLD = 15

_SENTENCE_PATTERN = re.compile(r"[^.!?]+")


# Whole words with an optional plural: "but" must not match "butter".
def _term_pattern(term: str) -> "re.Pattern[str]":
    return re.compile(rf"\b{re.escape(term)}s?\b")


_POSITIVE_PATTERNS = [(term, _term_pattern(term)) for term in POSITIVE_TERMS]
_NEGATIVE_PATTERNS = [(term, _term_pattern(term)) for term in NEGATIVE_TERMS]


@dataclass
class MentionAnalysis:
    """Structured outcome of analysing one response for one brand."""

    mentioned: bool
    prominence_score: int = 0
    sentiment: Sentiment = Sentiment.NEUTRAL
    sentiment_score: int = 0
    context_snippet: str = ""
    position: Optional[int] = None
    citations: List[str] = field(default_factory=list)
    positive_terms: List[str] = field(default_factory=list)
    negative_terms: List[str] = field(default_factory=list)
    brand_citation: Optional[str] = None


def analyze_mention(text: Optional[str], brand_name: str, domain: Optional[str] = None) -> MentionAnalysis:
    """Decide whether ``brand_name`` appears in ``text`` and score the mention.

    When ``domain`` is given, the first cited URL on that domain (or one of its
    subdomains) is reported as ``brand_citation``, mentioned or not.
    """

    if not brand_name or not brand_name.strip():
        raise MentionAnalysisError("Brand name cannot be empty")

    body = text or ""
    citations = extract_citations(body)
    brand_citation = find_domain_citation(citations, domain)

    # Offsets come from the original text; lower() can change string length.
    match = re.search(re.escape(brand_name.strip()), body, re.IGNORECASE)
    if match is None:
        return MentionAnalysis(mentioned=False, citations=citations, brand_citation=brand_citation)

    position = sentence_position(body, match.start())
    prominence = _POSITION_SCORES.get(position, _LATE_POSITION_SCORE)

    window_start, window_end = _context_bounds(body, match.start(), match.end() - match.start(), CONTEXT_WINDOW)
    window = body[window_start:window_end].lower()

    positive_hits = [term for term, pattern in _POSITIVE_PATTERNS if pattern.search(window)]
    negative_hits = [term for term, pattern in _NEGATIVE_PATTERNS if pattern.search(window)]

    sentiment_score = (
        len(positive_hits) * _POSITIVE_WEIGHT
        - len(negative_hits) * _NEGATIVE_SENTIMENT_WEIGHT
    )
    prominence += (
        len(positive_hits) * _POSITIVE_WEIGHT
        - len(negative_hits) * _NEGATIVE_PROMINENCE_WEIGHT
    )

    return MentionAnalysis(
        mentioned=True,
        prominence_score=max(0, min(100, prominence)),
        sentiment=classify_sentiment(sentiment_score),
        sentiment_score=sentiment_score,
        context_snippet=_snippet(body, window_start, window_end),
        position=position,
        citations=citations,
        positive_terms=positive_hits,
        negative_terms=negative_hits,
        brand_citation=brand_citation,
    )


def classify_sentiment(score: int) -> Sentiment:
    if score > _SENTIMENT_THRESHOLD:
        return Sentiment.POSITIVE
    if score < -_SENTIMENT_THRESHOLD:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def split_sentences(text: str) -> List[Tuple[int, int]]:
    """Return (start, end) spans of the non-blank sentences in ``text``."""

    spans = []
    for match in _SENTENCE_PATTERN.finditer(text):
        if match.group().strip():
            spans.append((match.start(), match.end()))
    return spans


def sentence_position(text: str, index: int) -> int:
    """1-based index of the sentence that contains character ``index``."""

    spans = split_sentences(text)
    for number, (_start, end) in enumerate(spans, start=1):
        if index < end:
            return number
    return max(len(spans), 1)


def _context_bounds(text: str, start: int, length: int, window: int) -> Tuple[int, int]:
    left = max(start - window, 0)
    right = min(start + length + window, len(text))
    return left, right


def _snippet(text: str, left: int, right: int) -> str:
    return text[left:right].replace("\n", " ").strip()


__all__ = [
    "CONTEXT_WINDOW",
    "NEGATIVE_TERMS",
    "POSITIVE_TERMS",
    "MentionAnalysis",
    "analyze_mention",
    "classify_sentiment",
    "sentence_position",
    "split_sentences",
]
