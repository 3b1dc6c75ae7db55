"""Platform adapters for BrandMonitor."""

from .anthropic import AnthropicAdapter
from .base import AdapterSettings, HTTPPlatformAdapter, PlatformAdapter
from .gemini import GeminiAdapter
from .openai_compat import ChatCompletionsAdapter, GrokAdapter, OpenAIAdapter, PerplexityAdapter
from .pricing import ModelPricing, PriceTable
from .registry import ADAPTER_TYPES, AdapterRegistry

__all__ = [
    "ADAPTER_TYPES",
    "AdapterRegistry",
    "AdapterSettings",
    "AnthropicAdapter",
    "ChatCompletionsAdapter",
    "GeminiAdapter",
    "GrokAdapter",
    "HTTPPlatformAdapter",
    "ModelPricing",
    "OpenAIAdapter",
    "PerplexityAdapter",
    "PlatformAdapter",
    "PriceTable",
]
