"""
BrandMonitor: brand visibility monitoring across AI text-generation platforms.

Sends monitoring queries to ChatGPT, Claude, Gemini, Perplexity and Grok,
detects how each response mentions a brand, and reduces the results into a
0-100 visibility score.
"""

__version__ = "0.3.0"

from .core import (
    BrandIdentity,
    BrandMonitorError,
    MentionResult,
    MonitoringResult,
    Platform,
    QuotaExceededError,
)
from .monitor import BrandMonitor
from .monitoring import MonitoringOrchestrator, UsageGovernor
from .platforms import AdapterRegistry

__all__ = [
    "__version__",
    "AdapterRegistry",
    "BrandIdentity",
    "BrandMonitor",
    "BrandMonitorError",
    "MentionResult",
    "MonitoringOrchestrator",
    "MonitoringResult",
    "Platform",
    "QuotaExceededError",
    "UsageGovernor",
]
