"""Logging utilities for the BrandMonitor application."""

from __future__ import annotations

import logging
from typing import List, Optional

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_configured = False


def _resolve_level(level: str) -> int:
    numeric_level = logging.getLevelName(level.upper())
    if isinstance(numeric_level, str):
        raise ValueError(f"Unknown log level: {level}")
    return int(numeric_level)


def configure_logging(
    *,
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: str = DEFAULT_LOG_FORMAT,
    force: bool = False,
) -> None:
    """Install console (and optional file) handlers on the root logger.

    Args:
        level: Logging level name (e.g. "INFO", "DEBUG").
        log_file: Optional path that receives logs in addition to stderr.
        log_format: Format string applied to every handler.
        force: Reconfigure even if logging was already set up.
    """

    global _configured
    if _configured and not force:
        return

    formatter = logging.Formatter(log_format)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=_resolve_level(level), handlers=handlers, force=True)
    # Per-request transport chatter drowns out the engine's own records.
    logging.getLogger("httpx").setLevel(max(_resolve_level(level), logging.WARNING))
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger, configuring defaults on first use."""

    if not _configured:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "DEFAULT_LOG_FORMAT"]
