import pytest

from brandmonitor.core.exceptions import (
    AuthError,
    BrandMonitorError,
    ConfigurationError,
    MalformedResponseError,
    QuotaExceededError,
    RateLimitedError,
    TransportError,
    UnknownPlatformError,
    classify_error_for_retry,
    get_user_friendly_message,
)


@pytest.mark.parametrize(
    "error, code, retryable",
    [
        (TransportError("reset"), "transport_error", True),
        (AuthError("bad key"), "auth_error", False),
        (RateLimitedError("slow down", retry_after=3), "rate_limited", True),
        (MalformedResponseError("no choices"), "malformed_response", False),
        (QuotaExceededError("over"), "quota_exceeded", True),
    ],
)
def test_error_codes_and_retry_flags(error, code, retryable):
    assert error.error_code == code
    assert classify_error_for_retry(error) is retryable


def test_api_error_context_carries_platform_details():
    error = TransportError("HTTP 502", service="chatgpt", status_code=502, model="gpt-4o-mini")

    assert error.context["service"] == "chatgpt"
    assert error.context["status_code"] == 502
    assert "service=chatgpt" in str(error)
    assert "transport_error" in str(error)


def test_caller_context_is_merged_not_replaced():
    error = RateLimitedError("429", retry_after=2.5, context={"attempt": 3})

    assert error.context["attempt"] == 3
    assert error.context["retry_after"] == 2.5


def test_unknown_platform_names_the_platform():
    error = UnknownPlatformError("bard", available=["chatgpt", "claude"])

    assert isinstance(error, ConfigurationError)
    assert error.context["config_key"] == "platforms"
    assert error.context["available"] == "chatgpt, claude"
    assert "bard" in str(error)


def test_to_dict_hides_empty_context_and_records_cause():
    cause = ValueError("boom")
    error = BrandMonitorError("wrapped", cause=cause, context={"unused": None})

    payload = error.to_dict()

    assert payload["code"] == "BrandMonitorError"
    assert "context" not in payload
    assert "boom" in payload["cause"]


def test_builtin_errors_are_classified():
    assert classify_error_for_retry(ConnectionError()) is True
    assert classify_error_for_retry(ValueError()) is False


def test_user_friendly_messages():
    assert get_user_friendly_message(QuotaExceededError("x", user_message="Slow down")) == "Slow down"
    assert "in time" in get_user_friendly_message(TimeoutError())
    assert get_user_friendly_message(ValueError("plain")) == "plain"
