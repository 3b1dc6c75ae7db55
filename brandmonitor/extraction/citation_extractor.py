# coding: ascii
"""URL citation extraction for platform responses."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


_URL_PATTERN = re.compile(r"https?://[^\s<>\"'\]\[`]+", re.IGNORECASE)
_INVALID_TRAILING_CHARS = {".", ",", ";", ":", "!", "?", ")", "*", "_"}


def extract_citations(text: Optional[str], *, extra: Optional[Iterable[str]] = None) -> List[str]:
    """Return the well-formed URLs found in ``text``, de-duplicated in first-seen order.

    ``extra`` holds platform-native citations (e.g. Perplexity's ``citations``
    array); they are validated the same way and appended after the text URLs.
    """

    citations: List[str] = []
    seen = set()

    candidates: List[str] = []
    if text:
        candidates.extend(match.group(0) for match in _URL_PATTERN.finditer(text))
    if extra:
        candidates.extend(str(item) for item in extra if item)

    for raw in candidates:
        url = _clean_url(raw)
        if not url or not _is_well_formed(url):
            continue
        if url in seen:
            continue
        seen.add(url)
        citations.append(url)

    if citations:
        logger.debug("Extracted citations", extra={"count": len(citations)})
    return citations


def _clean_url(url: str) -> str:
    cleaned = url.strip()
    while cleaned and cleaned[-1] in _INVALID_TRAILING_CHARS:
        # Keep a closing parenthesis that balances one inside the URL.
        if cleaned[-1] == ")" and cleaned.count("(") >= cleaned.count(")"):
            break
        cleaned = cleaned[:-1]
    return cleaned


def _is_well_formed(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https"):
        return False
    host = parsed.hostname or ""
    return "." in host or host == "localhost"


def find_domain_citation(citations: Iterable[str], domain: Optional[str]) -> Optional[str]:
    """First URL in ``citations`` hosted on ``domain`` or one of its subdomains."""

    if not domain:
        return None
    target = domain.strip().lower()
    for prefix in ("https://", "http://"):
        if target.startswith(prefix):
            target = target[len(prefix):]
    target = target.split("/", 1)[0]
    if target.startswith("www."):
        target = target[4:]
    if not target:
        return None

    for url in citations:
        try:
            host = (urlparse(url).hostname or "").lower()
        except ValueError:
            continue
        if host == target or host.endswith("." + target):
            return url
    return None


__all__ = ["extract_citations", "find_domain_citation"]
