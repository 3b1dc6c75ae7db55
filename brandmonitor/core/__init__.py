"""Core models and exceptions for BrandMonitor."""

from .exceptions import (
    APIError,
    AuthError,
    BrandMonitorError,
    ConfigurationError,
    MalformedResponseError,
    MentionAnalysisError,
    QueryGenerationError,
    QuotaExceededError,
    RateLimitedError,
    TransportError,
    UnknownPlatformError,
    classify_error_for_retry,
    get_user_friendly_message,
)
from .models import (
    APIConfig,
    AppConfig,
    BrandIdentity,
    GovernorConfig,
    MentionResult,
    MonitoringResult,
    Platform,
    PlatformAggregate,
    PlatformCredentials,
    PlatformResponse,
    Sentiment,
    TokenUsage,
)

__all__ = [
    "APIError",
    "AuthError",
    "BrandMonitorError",
    "ConfigurationError",
    "MalformedResponseError",
    "MentionAnalysisError",
    "QueryGenerationError",
    "QuotaExceededError",
    "RateLimitedError",
    "TransportError",
    "UnknownPlatformError",
    "classify_error_for_retry",
    "get_user_friendly_message",
    "APIConfig",
    "AppConfig",
    "BrandIdentity",
    "GovernorConfig",
    "MentionResult",
    "MonitoringResult",
    "Platform",
    "PlatformAggregate",
    "PlatformCredentials",
    "PlatformResponse",
    "Sentiment",
    "TokenUsage",
]
