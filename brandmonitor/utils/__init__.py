"""Utility helpers for BrandMonitor."""

from .formatters import JSONFormatter, RichFormatter, ScoreBand, score_band
from .logger import DEFAULT_LOG_FORMAT, configure_logging, get_logger

__all__ = [
    "DEFAULT_LOG_FORMAT",
    "JSONFormatter",
    "RichFormatter",
    "ScoreBand",
    "configure_logging",
    "get_logger",
    "score_band",
]
