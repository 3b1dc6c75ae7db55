"""Run orchestration, visibility scoring and usage governance."""

from .governor import (
    DEFAULT_TIERS,
    RateLimitDecision,
    RateLimitTier,
    UsageGovernor,
    UsageLease,
    UsageRecord,
)
from .orchestrator import MonitoringOrchestrator, MonitoringTask
from .scoring import (
    aggregate_platform,
    aggregate_platforms,
    build_monitoring_result,
    calculate_visibility_score,
)

__all__ = [
    "DEFAULT_TIERS",
    "MonitoringOrchestrator",
    "MonitoringTask",
    "RateLimitDecision",
    "RateLimitTier",
    "UsageGovernor",
    "UsageLease",
    "UsageRecord",
    "aggregate_platform",
    "aggregate_platforms",
    "build_monitoring_result",
    "calculate_visibility_score",
]
