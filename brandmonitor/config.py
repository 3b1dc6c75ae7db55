"""Environment-driven configuration for BrandMonitor."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Tuple, TypeVar

from dotenv import load_dotenv

from .core import (
    APIConfig,
    AppConfig,
    ConfigurationError,
    GovernorConfig,
    Platform,
    PlatformCredentials,
)
from .monitoring.governor import DEFAULT_TIERS

Number = TypeVar("Number", int, float)

# Platform id -> (API key variable, model override variable)
PLATFORM_ENV: Dict[str, Tuple[str, str]] = {
    Platform.CHATGPT.value: ("OPENAI_API_KEY", "OPENAI_MODEL"),
    Platform.CLAUDE.value: ("ANTHROPIC_API_KEY", "ANTHROPIC_MODEL"),
    Platform.GEMINI.value: ("GEMINI_API_KEY", "GEMINI_MODEL"),
    Platform.PERPLEXITY.value: ("PERPLEXITY_API_KEY", "PERPLEXITY_MODEL"),
    Platform.GROK.value: ("XAI_API_KEY", "XAI_MODEL"),
}

# Environment variable -> (AppConfig field, parser)
NUMERIC_SETTINGS: Dict[str, Tuple[str, Callable]] = {
    "PLATFORM_TIMEOUT_SECONDS": ("platform_timeout_seconds", float),
    "MAX_QUERIES_PER_RUN": ("max_queries_per_run", int),
    "QUERY_CACHE_TTL": ("query_cache_ttl_seconds", int),
}

PLACEHOLDER_PREFIXES = ("your_", "your-", "<", "changeme", "xxx")
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _read_dotenv(env_file: Optional[str]) -> None:
    path = Path(env_file) if env_file else Path(".env")
    if path.is_file():
        # Real environment variables win over the file.
        load_dotenv(path, override=False)


def _text(env: Mapping[str, str], key: str) -> Optional[str]:
    return (env.get(key) or "").strip() or None


def _parse_number(env: Mapping[str, str], key: str, cast: Callable[[str], Number]) -> Optional[Number]:
    raw = _text(env, key)
    if raw is None:
        return None
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{key} is not a valid {cast.__name__}",
            config_key=key,
            expected_type=cast.__name__,
            provided_value=raw,
        ) from exc
    if value <= 0:
        raise ConfigurationError(
            f"{key} must be greater than zero",
            config_key=key,
            expected_type=f"positive {cast.__name__}",
            provided_value=raw,
        )
    return value


def _credentials(env: Mapping[str, str]) -> Dict[str, PlatformCredentials]:
    found: Dict[str, PlatformCredentials] = {}
    for platform_id, (key_var, model_var) in PLATFORM_ENV.items():
        api_key = _text(env, key_var)
        if api_key:
            found[platform_id] = PlatformCredentials(api_key=api_key, model=_text(env, model_var))
    if not found:
        names = ", ".join(key_var for key_var, _ in PLATFORM_ENV.values())
        raise ConfigurationError(
            f"No platform API keys configured; set at least one of {names}",
            config_key="platforms",
        )
    return found


def _api_section(env: Mapping[str, str]) -> APIConfig:
    fields: Dict[str, object] = {"platforms": _credentials(env)}
    timeout = _parse_number(env, "REQUEST_TIMEOUT_SECONDS", float)
    if timeout is not None:
        fields["request_timeout_seconds"] = timeout
    max_tokens = _parse_number(env, "MAX_OUTPUT_TOKENS", int)
    if max_tokens is not None:
        fields["max_output_tokens"] = max_tokens
    return APIConfig(**fields)


def _governor_section(env: Mapping[str, str]) -> GovernorConfig:
    fields: Dict[str, object] = {}
    tier = _text(env, "DEFAULT_TENANT_TIER")
    if tier:
        fields["default_tier"] = tier.lower()
    endpoint = _text(env, "GOVERNOR_ENDPOINT")
    if endpoint:
        fields["endpoint"] = endpoint
    return GovernorConfig(**fields)


def _top_level_fields(env: Mapping[str, str]) -> Dict[str, object]:
    fields: Dict[str, object] = {}
    for key, (field_name, cast) in NUMERIC_SETTINGS.items():
        value = _parse_number(env, key, cast)
        if value is not None:
            fields[field_name] = value
    level = _text(env, "LOG_LEVEL")
    if level:
        fields["log_level"] = level.upper()
    log_file = _text(env, "LOG_FILE")
    if log_file:
        fields["log_file"] = log_file
    return fields


def _looks_like_placeholder(value: str) -> bool:
    lowered = value.strip().lower()
    return not lowered or lowered.startswith(PLACEHOLDER_PREFIXES) or lowered.endswith("_here")


def validate_app_config(config: AppConfig) -> None:
    """Reject values that parse but cannot work: template keys, unknown tiers, bad log levels."""

    for platform_id, credentials in config.api.platforms.items():
        if _looks_like_placeholder(credentials.api_key):
            key_var = PLATFORM_ENV.get(platform_id, (platform_id, ""))[0]
            raise ConfigurationError(
                f"{key_var} still holds a placeholder value",
                config_key=key_var,
            )

    if config.governor.default_tier not in DEFAULT_TIERS:
        raise ConfigurationError(
            f"Unknown default tenant tier '{config.governor.default_tier}'",
            config_key="DEFAULT_TENANT_TIER",
            expected_type=" | ".join(DEFAULT_TIERS),
        )

    if config.log_level not in LOG_LEVELS:
        raise ConfigurationError(
            f"Unknown log level '{config.log_level}'",
            config_key="LOG_LEVEL",
            expected_type=" | ".join(sorted(LOG_LEVELS)),
        )


def load_app_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    env_file: Optional[str] = None,
) -> AppConfig:
    """Build an :class:`AppConfig` from environment variables.

    An explicit ``env`` mapping is used verbatim; otherwise ``env_file`` (or
    ``./.env``) is loaded into the process environment first.
    """

    if env is None:
        _read_dotenv(env_file)
        env = os.environ
    source = dict(env)

    config = AppConfig(
        api=_api_section(source),
        governor=_governor_section(source),
        **_top_level_fields(source),
    )
    validate_app_config(config)
    return config


@lru_cache()
def get_app_config(env_file: Optional[str] = None) -> AppConfig:
    return load_app_config(env_file=env_file)


def reload_app_config(env_file: Optional[str] = None) -> AppConfig:
    """Drop the cached configuration and read the environment again."""

    get_app_config.cache_clear()
    return get_app_config(env_file=env_file)


__all__ = [
    "PLATFORM_ENV",
    "get_app_config",
    "load_app_config",
    "reload_app_config",
    "validate_app_config",
]
