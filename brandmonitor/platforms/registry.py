"""Lookup table from platform id to adapter instance."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Type

from ..core.exceptions import ConfigurationError, UnknownPlatformError
from ..core.models import APIConfig, Platform
from .anthropic import AnthropicAdapter
from .base import AdapterSettings, PlatformAdapter
from .gemini import GeminiAdapter
from .openai_compat import GrokAdapter, OpenAIAdapter, PerplexityAdapter

LOGGER = logging.getLogger(__name__)

ADAPTER_TYPES: Dict[str, Type[PlatformAdapter]] = {
    Platform.CHATGPT.value: OpenAIAdapter,
    Platform.CLAUDE.value: AnthropicAdapter,
    Platform.GEMINI.value: GeminiAdapter,
    Platform.PERPLEXITY.value: PerplexityAdapter,
    Platform.GROK.value: GrokAdapter,
}


class AdapterRegistry:
    """Adapters keyed by platform id, in registration order."""

    def __init__(self, adapters: Optional[Iterable[PlatformAdapter]] = None) -> None:
        self._adapters: Dict[str, PlatformAdapter] = {}
        for adapter in adapters or []:
            self.register(adapter)

    @classmethod
    def from_config(cls, config: APIConfig) -> "AdapterRegistry":
        """Build one adapter per platform that has credentials configured."""
        registry = cls()
        for platform_id in config.enabled_platforms:
            adapter_type = ADAPTER_TYPES.get(platform_id)
            if adapter_type is None:
                raise ConfigurationError(
                    f"No adapter implementation for platform '{platform_id}'",
                    config_key="platforms",
                    provided_value=platform_id,
                )
            settings = AdapterSettings.from_credentials(
                config.platforms[platform_id],
                timeout=config.request_timeout_seconds,
                max_output_tokens=config.max_output_tokens,
            )
            registry.register(adapter_type(settings))
        LOGGER.info("Platform adapters registered", extra={"platforms": registry.platform_ids})
        return registry

    def register(self, adapter: PlatformAdapter, *, replace: bool = False) -> None:
        platform_id = adapter.platform_id
        if platform_id in self._adapters and not replace:
            raise ConfigurationError(
                f"Platform '{platform_id}' is already registered",
                config_key="platforms",
                provided_value=platform_id,
            )
        self._adapters[platform_id] = adapter

    def get(self, platform_id: str) -> PlatformAdapter:
        try:
            return self._adapters[platform_id]
        except KeyError:
            raise UnknownPlatformError(platform_id, available=self.platform_ids) from None

    @property
    def platform_ids(self) -> List[str]:
        return list(self._adapters)

    def __contains__(self, platform_id: object) -> bool:
        return platform_id in self._adapters

    def __iter__(self) -> Iterator[PlatformAdapter]:
        return iter(self._adapters.values())

    def __len__(self) -> int:
        return len(self._adapters)

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()

    async def __aenter__(self) -> "AdapterRegistry":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.aclose()


__all__ = ["ADAPTER_TYPES", "AdapterRegistry"]
