# coding: ascii
"""Visibility scoring: reduce mention results into run-level metrics.

Every reduction here is commutative: shuffling the result list never changes an
aggregate. Prominence values are integers and costs are summed with
``math.fsum``, so the totals do not depend on summation order either.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from ..core.models import MentionResult, MonitoringResult, PlatformAggregate

MENTION_RATE_WEIGHT = 0.5
PROMINENCE_WEIGHT = 0.5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return math.fsum(values) / len(values)


def aggregate_platform(platform_id: str, results: Iterable[MentionResult]) -> PlatformAggregate:
    """Roll up the results of one platform."""

    own = [result for result in results if result.platform_id == platform_id]
    mentioned = [result for result in own if result.mentioned]

    mention_rate = (len(mentioned) / len(own) * 100) if own else 0.0
    return PlatformAggregate(
        platform_id=platform_id,
        queries_tested=len(own),
        mention_count=len(mentioned),
        failed_calls=sum(1 for result in own if result.error is not None),
        mention_rate=round(mention_rate, 2),
        avg_prominence=round(_mean([result.prominence_score for result in mentioned]), 2),
        avg_sentiment_score=round(_mean([result.sentiment.score for result in mentioned]), 4),
        total_cost_usd=round(math.fsum(result.cost_usd for result in own), 8),
    )


def aggregate_platforms(results: Sequence[MentionResult], platforms: Sequence[str]) -> List[PlatformAggregate]:
    # One aggregate per distinct platform, even when an id was dispatched twice.
    return [aggregate_platform(platform_id, results) for platform_id in dict.fromkeys(platforms)]


def calculate_visibility_score(
    results: Sequence[MentionResult],
    *,
    query_count: int,
    platform_count: int,
) -> int:
    """Blend mention rate and average prominence into a 0-100 score.

    Half the score rewards being mentioned at all, half rewards being mentioned
    prominently. Empty runs score 0.
    """

    total_tasks = query_count * platform_count
    if total_tasks <= 0:
        return 0

    mentioned = [result for result in results if result.mentioned]
    mention_rate = len(mentioned) / total_tasks * 100
    avg_prominence = _mean([result.prominence_score for result in mentioned])

    raw = MENTION_RATE_WEIGHT * mention_rate + PROMINENCE_WEIGHT * avg_prominence
    return max(0, min(100, round_half_up(raw)))


def build_monitoring_result(
    brand_name: str,
    queries: Sequence[str],
    platforms: Sequence[str],
    results: Sequence[MentionResult],
    *,
    timestamp: Optional[datetime] = None,
) -> MonitoringResult:
    """Assemble the run output from the full result set."""

    kwargs = {}
    if timestamp is not None:
        kwargs["timestamp"] = timestamp

    return MonitoringResult(
        brand_name=brand_name,
        platforms=list(platforms),
        queries_tested=len(queries),
        total_mentions=sum(1 for result in results if result.mentioned),
        visibility_score=calculate_visibility_score(
            results,
            query_count=len(queries),
            platform_count=len(platforms),
        ),
        platform_aggregates=aggregate_platforms(results, platforms),
        mention_results=list(results),
        total_cost_usd=round(math.fsum(result.cost_usd for result in results), 8),
        **kwargs,
    )


__all__ = [
    "MENTION_RATE_WEIGHT",
    "PROMINENCE_WEIGHT",
    "aggregate_platform",
    "aggregate_platforms",
    "build_monitoring_result",
    "calculate_visibility_score",
    "round_half_up",
]
