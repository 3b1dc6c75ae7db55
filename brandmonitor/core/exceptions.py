"""
Error types raised by the monitoring engine.

Adapters raise the ``APIError`` family; the orchestrator turns those into
degraded mention results instead of aborting a run. The usage governor raises
``QuotaExceededError`` before any platform call is made. Everything derives
from ``BrandMonitorError`` so callers can catch one type at the boundary.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _with_context(kwargs: Dict[str, Any], **fields: Any) -> Dict[str, Any]:
    """Pop any caller-supplied context from ``kwargs`` and merge ``fields`` into it."""
    merged = dict(kwargs.pop("context", None) or {})
    merged.update(fields)
    return merged


class BrandMonitorError(Exception):
    """
    Root of the engine's error hierarchy.

    Attributes:
        message: Developer-facing description
        error_code: Short machine-readable code; defaults to the class name
        context: Structured details attached for logs (``None`` values are hidden from ``str``)
        cause: Lower-level exception this one wraps, if any
        retryable: True when repeating the same call could succeed
        user_message: Text safe to show to an operator
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        retryable: bool = False,
        user_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or type(self).__name__
        self.context: Dict[str, Any] = dict(context or {})
        self.cause = cause
        self.retryable = retryable
        self.user_message = user_message or message
        self.raised_at = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the error into a JSON-friendly mapping for structured logs."""
        payload: Dict[str, Any] = {
            "type": type(self).__name__,
            "code": self.error_code,
            "message": self.message,
            "retryable": self.retryable,
            "raised_at": self.raised_at.isoformat(),
        }
        if self.user_message != self.message:
            payload["user_message"] = self.user_message
        details = self._visible_context()
        if details:
            payload["context"] = details
        if self.cause is not None:
            payload["cause"] = repr(self.cause)
        return payload

    def _visible_context(self) -> Dict[str, Any]:
        return {key: value for key, value in self.context.items() if value is not None}

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        details = self._visible_context()
        if details:
            parts.append("; ".join(f"{key}={value}" for key, value in details.items()))
        if self.cause is not None:
            parts.append(f"cause: {self.cause}")
        return " | ".join(parts)


class APIError(BrandMonitorError):
    """
    A platform call failed.

    ``service`` is the platform id, ``model`` the model that was requested and
    ``status_code`` the HTTP status when the failure came from a response.
    """

    def __init__(
        self,
        message: str,
        *,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
        model: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = _with_context(kwargs, service=service, status_code=status_code, model=model)
        if response_data:
            context["response_data"] = response_data
        super().__init__(message, context=context, **kwargs)
        self.service = service
        self.status_code = status_code
        self.response_data = response_data
        self.model = model


class TransportError(APIError):
    """Network failure, timeout or an unexpected HTTP status."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "transport_error")
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class AuthError(APIError):
    """The platform rejected the credential, or none was configured."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "auth_error")
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class RateLimitedError(APIError):
    """Throttled by the platform itself (HTTP 429 or an SDK quota error)."""

    def __init__(self, message: str, *, retry_after: Optional[float] = None, **kwargs: Any) -> None:
        kwargs["context"] = _with_context(kwargs, retry_after=retry_after)
        kwargs.setdefault("error_code", "rate_limited")
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class MalformedResponseError(APIError):
    """A response arrived but its body could not be read as generated text."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "malformed_response")
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class QuotaExceededError(BrandMonitorError):
    """
    The usage governor refused a run.

    ``quota_type`` names the ceiling that was hit (concurrent, hourly, daily or
    cost) and ``retry_after_seconds`` says when the same request would pass.
    """

    def __init__(
        self,
        message: str,
        *,
        tenant_id: Optional[str] = None,
        quota_type: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
        tier: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs["context"] = _with_context(
            kwargs,
            tenant_id=tenant_id,
            quota_type=quota_type,
            retry_after_seconds=retry_after_seconds,
            tier=tier,
        )
        kwargs.setdefault("error_code", "quota_exceeded")
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)
        self.tenant_id = tenant_id
        self.quota_type = quota_type
        self.retry_after_seconds = retry_after_seconds
        self.tier = tier


class ConfigurationError(BrandMonitorError):
    """
    A setting is missing or unusable.

    ``config_key`` is the environment variable (or logical setting) at fault.
    Never pass a secret as ``provided_value``; it ends up in logs.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        provided_value: Any = None,
        **kwargs: Any,
    ) -> None:
        kwargs["context"] = _with_context(
            kwargs,
            config_key=config_key,
            expected_type=expected_type,
            provided_value=None if provided_value is None else str(provided_value),
        )
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)
        self.config_key = config_key
        self.expected_type = expected_type
        self.provided_value = provided_value


class UnknownPlatformError(ConfigurationError):
    """No adapter is registered under the requested platform id."""

    def __init__(self, platform_id: str, *, available: Optional[list] = None, **kwargs: Any) -> None:
        kwargs["context"] = _with_context(kwargs, available=", ".join(available) if available else None)
        super().__init__(
            f"No adapter registered for platform '{platform_id}'",
            config_key="platforms",
            provided_value=platform_id,
            **kwargs,
        )
        self.platform_id = platform_id


class MentionAnalysisError(BrandMonitorError):
    """Mention analysis was given unusable input, such as a blank brand name."""


class QueryGenerationError(BrandMonitorError):
    """The query catalog could not produce a usable query list."""

    def __init__(self, message: str, *, brand_name: Optional[str] = None, **kwargs: Any) -> None:
        kwargs["context"] = _with_context(kwargs, brand_name=brand_name)
        super().__init__(message, **kwargs)
        self.brand_name = brand_name


_TRANSIENT_BUILTINS = (ConnectionError, TimeoutError, OSError)

_FRIENDLY_BUILTIN_MESSAGES = {
    ConnectionError: "Could not reach the platform. Check network access and try again.",
    TimeoutError: "The platform did not answer in time. Try again shortly.",
    PermissionError: "Access was denied while reading local files.",
    FileNotFoundError: "A configured file does not exist.",
}


def classify_error_for_retry(error: BaseException) -> bool:
    """Return True when ``error`` is worth retrying: flagged retryable, or a transient OS/network failure."""
    if isinstance(error, BrandMonitorError):
        return error.retryable
    return isinstance(error, _TRANSIENT_BUILTINS)


def get_user_friendly_message(error: BaseException) -> str:
    """Text suitable for an operator; falls back to ``str(error)`` for unrecognised types."""
    if isinstance(error, BrandMonitorError):
        return error.user_message
    for error_type, text in _FRIENDLY_BUILTIN_MESSAGES.items():
        if type(error) is error_type:
            return text
    return str(error)


__all__ = [
    "BrandMonitorError",
    "APIError",
    "TransportError",
    "AuthError",
    "RateLimitedError",
    "MalformedResponseError",
    "QuotaExceededError",
    "ConfigurationError",
    "UnknownPlatformError",
    "MentionAnalysisError",
    "QueryGenerationError",
    "classify_error_for_retry",
    "get_user_friendly_message",
]
