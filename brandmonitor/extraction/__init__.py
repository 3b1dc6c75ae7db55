"""Response analysis utilities for BrandMonitor."""

from .citation_extractor import extract_citations, find_domain_citation
from .mention_analyzer import (
    MentionAnalysis,
    analyze_mention,
    classify_sentiment,
    sentence_position,
    split_sentences,
)

__all__ = [
    "MentionAnalysis",
    "analyze_mention",
    "classify_sentiment",
    "extract_citations",
    "find_domain_citation",
    "sentence_position",
    "split_sentences",
]
