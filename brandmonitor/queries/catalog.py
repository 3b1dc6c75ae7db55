"""Monitoring query sources: fixed per-brand templates and LLM-generated lists."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..cache import TTLCache
from ..core.exceptions import QueryGenerationError, classify_error_for_retry
from ..core.models import BrandIdentity
from ..platforms.base import PlatformAdapter
from .templates import industry_templates, missing_variables, render_template

LOGGER = logging.getLogger(__name__)

DEFAULT_GENERATED_COUNT = 30
QUERY_CACHE_TTL_SECONDS = 7 * 24 * 60 * 60

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_BARE_ARRAY = re.compile(r"\[[\s\S]*\]")


class GeneratedQuery(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    query: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    intent: str = Field(..., min_length=1)
    reasoning: str = ""


class QueryGenerationResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    queries: List[GeneratedQuery] = Field(default_factory=list)
    total_cost_usd: float = Field(default=0.0, ge=0.0)
    cached: bool = False

    @property
    def texts(self) -> List[str]:
        return [item.query for item in self.queries]


def template_queries(brand: BrandIdentity, limit: int = 5) -> List[str]:
    """The base monitoring queries for ``brand``, phrased for its industry when known."""
    industry = brand.industry
    queries = [
        f"What are the best {industry or 'companies'} for "
        f"{industry + ' services' if industry else 'this industry'}?",
        f"Can you recommend top {industry or 'solutions'} providers?",
        f"What {industry or 'tools'} should I consider?",
        f"Who are the leading {industry or 'companies'} in the market?",
        f"What are alternatives to {brand.name}?",
    ]
    return queries[: max(limit, 0)]


def brand_variables(brand: BrandIdentity, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Template variables known from the brand itself, overridden by ``extra``."""
    variables = {"brand_name": brand.name}
    if brand.industry:
        variables["industry"] = brand.industry
    if brand.domain:
        variables["domain"] = brand.domain
    variables.update({key: value for key, value in (extra or {}).items() if value})
    return variables


def curated_queries(brand: BrandIdentity, variables: Optional[Mapping[str, str]] = None) -> List[str]:
    """Render the brand's industry templates; templates with unfilled variables are skipped."""
    known = brand_variables(brand, variables)
    return [
        render_template(template.prompt, known)
        for template in industry_templates(brand.industry)
        if not missing_variables(template.prompt, known)
    ]


def build_generation_prompt(brand: BrandIdentity, count: int) -> str:
    return f"""You are an AI Search Optimization expert specializing in LLM visibility monitoring. \
Your task is to generate the most important queries that {brand.name} should monitor across AI platforms \
like ChatGPT, Claude, Perplexity, Gemini and Grok.

# Brand Context
- **Brand Name:** {brand.name}
- **Industry:** {brand.industry or 'Not specified'}
- **Description:** {brand.description or 'Not provided'}
- **Website:** {brand.domain or 'Not provided'}

# Your Task
Generate {count} queries that represent the MOST IMPORTANT questions people would ask AI assistants \
where {brand.name} should ideally be mentioned in the response.

# Query Categories to Cover
1. **Best-in-category** - "What are the best [product type]?"
2. **Recommendations** - "Can you recommend [solution] for [use case]?"
3. **Alternatives** - "What are alternatives to [competitor]?"
4. **Comparisons** - "{brand.name} vs [competitor]"
5. **Feature-specific** - "Which [product] has [feature]?"
6. **Use-case driven** - "[Product type] for [specific need]"
7. **How-to questions** - "How to [achieve goal] with [product]?"
8. **Evaluation** - "Is {brand.name} good for [use case]?"
9. **Problem-solving** - "How to solve [pain point]?"
10. **Buying intent** - "Which [product] should I choose for [need]?"

# Instructions
- Focus on queries where {brand.name} is a strong, relevant answer
- Include queries at different stages of the buyer journey (research, comparison, decision)
- Mix branded queries (mentioning {brand.name}) with category queries (where it should appear)
- Be specific and realistic

# Output Format
Return ONLY a JSON array of objects with the keys "query", "category", "intent" and "reasoning".

Generate {count} queries now. Return ONLY the JSON array, no other text."""


def parse_generated_queries(text: str) -> List[GeneratedQuery]:
    """Pull the query array out of an LLM reply.

    Accepts a fenced ```json block or a bare array. Entries without a query,
    category or intent are dropped.

    Raises:
        ValueError: No JSON array could be decoded from ``text``
    """

    match = _FENCED_JSON.search(text) or _BARE_ARRAY.search(text)
    if match is None:
        raise ValueError("No JSON array found in response")
    payload = match.group(1) if match.re is _FENCED_JSON else match.group(0)

    parsed: Any = json.loads(payload)
    if not isinstance(parsed, list):
        raise ValueError("Query payload is not a JSON array")

    queries: List[GeneratedQuery] = []
    for item in parsed:
        if not isinstance(item, dict):
            continue
        if not all(isinstance(item.get(key), str) and item[key].strip() for key in ("query", "category", "intent")):
            continue
        reasoning = item.get("reasoning")
        queries.append(
            GeneratedQuery(
                query=item["query"],
                category=item["category"],
                intent=item["intent"],
                reasoning=reasoning if isinstance(reasoning, str) else "",
            )
        )
    return queries


class QueryCatalog:
    """Source of monitoring queries for a brand.

    Generated lists are cached per brand context, so a repeat request within
    the TTL returns the same queries at zero cost.
    """

    def __init__(
        self,
        *,
        cache: Optional[TTLCache] = None,
        cache_ttl: float = QUERY_CACHE_TTL_SECONDS,
        max_attempts: int = 3,
        retry_wait: Any = None,
    ) -> None:
        self._cache = cache or TTLCache(default_ttl=cache_ttl)
        self._cache_ttl = cache_ttl
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait if retry_wait is not None else wait_exponential(min=1, max=5)

    def template_queries(self, brand: BrandIdentity, limit: int = 5) -> List[str]:
        return template_queries(brand, limit)

    def curated_queries(self, brand: BrandIdentity, variables: Optional[Mapping[str, str]] = None) -> List[str]:
        return curated_queries(brand, variables)

    async def generate(
        self,
        brand: BrandIdentity,
        adapter: PlatformAdapter,
        count: int = DEFAULT_GENERATED_COUNT,
    ) -> QueryGenerationResult:
        """Ask ``adapter`` to propose ``count`` monitoring queries for ``brand``.

        Raises:
            QueryGenerationError: Every attempt failed or returned no usable queries
        """

        if count <= 0:
            raise ValueError("count must be positive")

        key = self._cache_key(brand, count)
        cached = self._cache.get(key)
        if cached is not None:
            LOGGER.debug("Returning cached queries", extra={"brand_name": brand.name, "count": len(cached)})
            return QueryGenerationResult(
                queries=[GeneratedQuery.model_validate(item) for item in cached],
                total_cost_usd=0.0,
                cached=True,
            )

        prompt = build_generation_prompt(brand, count)
        total_cost = 0.0
        queries: List[GeneratedQuery] = []
        try:
            async for attempt in AsyncRetrying(
                reraise=True,
                retry=retry_if_exception(classify_error_for_retry),
                wait=self._retry_wait,
                stop=stop_after_attempt(self._max_attempts),
            ):
                with attempt:
                    response = await adapter.generate(prompt)
                    total_cost += response.usage.cost_usd
                    try:
                        queries = parse_generated_queries(response.text)
                    except ValueError as exc:
                        raise QueryGenerationError(
                            f"Could not parse generated queries: {exc}",
                            brand_name=brand.name,
                            retryable=True,
                            cause=exc,
                        ) from exc
                    if not queries:
                        raise QueryGenerationError(
                            "Generated query list was empty",
                            brand_name=brand.name,
                            retryable=True,
                        )
        except QueryGenerationError:
            LOGGER.error("Query generation failed", extra={"brand_name": brand.name, "platform": adapter.platform_id})
            raise
        except Exception as exc:
            LOGGER.error("Query generation failed", extra={"brand_name": brand.name, "platform": adapter.platform_id})
            raise QueryGenerationError(
                f"Query generation via {adapter.platform_id} failed: {exc}",
                brand_name=brand.name,
                cause=exc,
            ) from exc

        self._cache.set(key, [item.model_dump() for item in queries], ttl=self._cache_ttl)
        LOGGER.info(
            "Generated monitoring queries",
            extra={
                "brand_name": brand.name,
                "platform": adapter.platform_id,
                "count": len(queries),
                "cost_usd": round(total_cost, 8),
            },
        )
        return QueryGenerationResult(queries=queries, total_cost_usd=round(total_cost, 8))

    @staticmethod
    def _cache_key(brand: BrandIdentity, count: int) -> str:
        return json.dumps(
            [brand.name.lower(), brand.industry, brand.description, count],
            separators=(",", ":"),
        )


__all__ = [
    "DEFAULT_GENERATED_COUNT",
    "GeneratedQuery",
    "QUERY_CACHE_TTL_SECONDS",
    "QueryCatalog",
    "QueryGenerationResult",
    "brand_variables",
    "build_generation_prompt",
    "curated_queries",
    "parse_generated_queries",
    "template_queries",
]
