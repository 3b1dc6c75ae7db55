"""
BrandMonitor Core Data Models

This module defines the Pydantic v2 models exchanged between the platform
adapters, the mention analyzer, the query orchestrator and the visibility
scorer, plus the configuration models loaded by :mod:`brandmonitor.config`.

Key Features:
- Validated platform responses with token usage and cost tracking
- Mention results that enforce the "not mentioned means zero" invariant
- Run-level monitoring results with JSON export for the storage layer
- Configuration models for platform credentials and the usage governor
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


class Platform(str, Enum):
    """Text-generation platforms with a bundled adapter."""

    CHATGPT = "chatgpt"
    CLAUDE = "claude"
    GEMINI = "gemini"
    PERPLEXITY = "perplexity"
    GROK = "grok"


class Sentiment(str, Enum):
    """Sentiment label assigned to a brand mention."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"

    @property
    def score(self) -> int:
        """Numeric value used when averaging sentiment (+1 / 0 / -1)."""
        if self is Sentiment.POSITIVE:
            return 1
        if self is Sentiment.NEGATIVE:
            return -1
        return 0


class BrandIdentity(BaseModel):
    """The brand a monitoring run measures. Immutable for the run's lifetime."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
        extra="forbid",
    )

    name: str = Field(
        ...,
        description="Brand name searched for in platform responses",
        min_length=1,
        max_length=200,
    )
    domain: Optional[str] = Field(
        default=None,
        description="Brand website domain (e.g. acme.com)",
    )
    industry: Optional[str] = Field(
        default=None,
        description="Industry used to phrase category queries",
    )
    description: Optional[str] = Field(
        default=None,
        description="Free-text description used for LLM query generation",
        max_length=2000,
    )

    @field_validator("domain")
    @classmethod
    def normalise_domain(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        domain = v.lower()
        for prefix in ("https://", "http://"):
            if domain.startswith(prefix):
                domain = domain[len(prefix):]
        if domain.startswith("www."):
            domain = domain[4:]
        return domain.rstrip("/") or None


class TokenUsage(BaseModel):
    """Token counts, cost and latency for one platform call."""

    model_config = ConfigDict(extra="forbid")

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cost_usd: float = Field(default=0.0, ge=0.0)
    latency_ms: float = Field(default=0.0, ge=0.0)
    priced_by_fallback: bool = Field(
        default=False,
        description="True when the model was missing from the platform price table",
    )

    @computed_field
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class PlatformResponse(BaseModel):
    """
    Text generated by one platform for one prompt.

    Produced once per (query, platform) call and consumed immediately by the
    mention analyzer.
    """

    model_config = ConfigDict(extra="forbid")

    platform_id: str = Field(..., min_length=1)
    text: str = Field(default="", description="Generated response text")
    citations: List[str] = Field(
        default_factory=list,
        description="De-duplicated source URLs embedded in or returned with the response",
    )
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str = Field(..., description="Model identifier reported by the platform")

    @field_validator("citations")
    @classmethod
    def dedupe_citations(cls, v: List[str]) -> List[str]:
        seen: Dict[str, None] = {}
        for url in v:
            if url:
                seen.setdefault(url, None)
        return list(seen)


class MentionResult(BaseModel):
    """
    Outcome of one (query, platform) task.

    The atomic unit the visibility scorer reduces over. A failed platform call
    still produces a result: ``mentioned`` is false, the cost is zero and
    ``error`` carries the failure code.
    """

    model_config = ConfigDict(extra="forbid")

    platform_id: str = Field(..., min_length=1)
    query: str
    mentioned: bool = False
    prominence_score: int = Field(default=0, ge=0, le=100)
    sentiment: Sentiment = Sentiment.NEUTRAL
    context_snippet: str = ""
    position: Optional[int] = Field(
        default=None,
        description="1-based index of the first sentence mentioning the brand",
        ge=1,
    )
    cost_usd: float = Field(default=0.0, ge=0.0)
    citations: List[str] = Field(default_factory=list)
    model: Optional[str] = None
    brand_citation: Optional[str] = Field(
        default=None,
        description="First cited URL on the brand's own domain",
    )
    error: Optional[str] = Field(
        default=None,
        description="Error code when the platform call failed and the result was degraded",
    )

    @model_validator(mode="after")
    def validate_mention_invariant(self) -> MentionResult:
        """Not mentioned means no score, no snippet and no position."""
        if not self.mentioned:
            if self.prominence_score != 0:
                raise ValueError("prominence_score must be 0 when the brand is not mentioned")
            if self.context_snippet:
                raise ValueError("context_snippet must be empty when the brand is not mentioned")
            if self.position is not None:
                raise ValueError("position must be unset when the brand is not mentioned")
        elif not self.context_snippet:
            raise ValueError("context_snippet is required when the brand is mentioned")
        return self

    @classmethod
    def degraded(cls, platform_id: str, query: str, error: str) -> MentionResult:
        """Zero-value result standing in for a failed platform call."""
        return cls(platform_id=platform_id, query=query, error=error)

    @computed_field
    @property
    def failed(self) -> bool:
        return self.error is not None


class PlatformAggregate(BaseModel):
    """Per-platform roll-up, recomputed from scratch for every run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    platform_id: str
    queries_tested: int = Field(default=0, ge=0)
    mention_count: int = Field(default=0, ge=0)
    failed_calls: int = Field(default=0, ge=0)
    mention_rate: float = Field(default=0.0, ge=0.0, le=100.0)
    avg_prominence: float = Field(default=0.0, ge=0.0, le=100.0)
    avg_sentiment_score: float = Field(default=0.0, ge=-1.0, le=1.0)
    total_cost_usd: float = Field(default=0.0, ge=0.0)


class MonitoringResult(BaseModel):
    """
    Complete output of one monitoring run.

    Handed whole to the persistence collaborator, which assigns it an identity.
    The engine itself never stores it.
    """

    model_config = ConfigDict(extra="forbid")

    brand_name: str
    platforms: List[str] = Field(default_factory=list)
    queries_tested: int = Field(default=0, ge=0)
    total_mentions: int = Field(default=0, ge=0)
    visibility_score: int = Field(default=0, ge=0, le=100)
    platform_aggregates: List[PlatformAggregate] = Field(default_factory=list)
    mention_results: List[MentionResult] = Field(default_factory=list)
    total_cost_usd: float = Field(default=0.0, ge=0.0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def validate_cardinality(self) -> MonitoringResult:
        expected = self.queries_tested * len(self.platforms)
        if len(self.mention_results) != expected:
            raise ValueError(
                f"Expected {expected} mention results "
                f"({self.queries_tested} queries x {len(self.platforms)} platforms), "
                f"got {len(self.mention_results)}"
            )
        return self

    @computed_field
    @property
    def failed_calls(self) -> int:
        return sum(1 for result in self.mention_results if result.error is not None)

    def get_aggregate(self, platform_id: str) -> Optional[PlatformAggregate]:
        for aggregate in self.platform_aggregates:
            if aggregate.platform_id == platform_id:
                return aggregate
        return None

    def to_record(self) -> Dict[str, Any]:
        """JSON-ready dict in the shape the storage layer persists."""
        return self.model_dump(mode="json")

    def to_json_file(self, filepath: str) -> None:
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(self.to_record(), f, indent=2, ensure_ascii=False)

    @classmethod
    def from_json_file(cls, filepath: str) -> MonitoringResult:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        data.pop("failed_calls", None)
        for result in data.get("mention_results", []):
            result.pop("failed", None)
        return cls.model_validate(data)


# Configuration Models
class PlatformCredentials(BaseModel):
    """API key and model choice for one platform."""

    model_config = ConfigDict(extra="forbid")

    api_key: str = Field(..., min_length=1)
    model: Optional[str] = Field(
        default=None,
        description="Model override; the adapter default is used when unset",
    )


class APIConfig(BaseModel):
    """Configuration for the platform adapters."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
    )

    platforms: Dict[str, PlatformCredentials] = Field(
        default_factory=dict,
        description="Credentials keyed by platform id; a platform is enabled when present",
    )
    request_timeout_seconds: float = Field(
        default=60.0,
        description="HTTP transport timeout applied inside each adapter",
        gt=0.0,
    )
    max_output_tokens: int = Field(
        default=1500,
        description="Output token cap sent with every prompt",
        gt=0,
    )

    @computed_field
    @property
    def enabled_platforms(self) -> List[str]:
        return [platform.value for platform in Platform if platform.value in self.platforms]


class GovernorConfig(BaseModel):
    """Configuration for the usage governor."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
    )

    default_tier: str = Field(
        default="free",
        description="Tier assigned to tenants without an explicit assignment",
    )
    endpoint: str = Field(
        default="monitor",
        description="Endpoint name recorded in the usage ledger for monitoring runs",
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
    )

    api: APIConfig = Field(..., description="Platform adapter settings")
    governor: GovernorConfig = Field(default_factory=GovernorConfig)

    platform_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Per-call timeout enforced by the orchestrator (None waits indefinitely)",
        gt=0.0,
    )
    max_queries_per_run: int = Field(
        default=10,
        description="Upper bound on queries tested in one run",
        gt=0,
    )
    query_cache_ttl_seconds: int = Field(
        default=7 * 24 * 60 * 60,
        description="How long generated query lists are reused",
        gt=0,
    )

    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)


__all__ = [
    # Enums
    "Platform",
    "Sentiment",
    # Core models
    "BrandIdentity",
    "TokenUsage",
    "PlatformResponse",
    "MentionResult",
    "PlatformAggregate",
    "MonitoringResult",
    # Configuration models
    "PlatformCredentials",
    "APIConfig",
    "GovernorConfig",
    "AppConfig",
]
