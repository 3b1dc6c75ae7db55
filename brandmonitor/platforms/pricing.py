"""Per-platform token price tables.

Rates are keyed by exact model identifier. A model missing from its table is
billed at the platform's documented fallback rate, logged, and flagged on the
response usage so reports can show the cost is an estimate. Tables must be
updated by hand when providers change pricing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

LOGGER = logging.getLogger(__name__)

_PER_MILLION = 1_000_000


@dataclass(frozen=True)
class ModelPricing:
    """USD price per one million input and output tokens."""

    input_per_million: float
    output_per_million: float

    def cost(self, input_tokens: int, output_tokens: int) -> float:
        return (
            input_tokens * self.input_per_million
            + output_tokens * self.output_per_million
        ) / _PER_MILLION


class PriceTable:
    """Exact-match model price lookup with a single fallback tier."""

    def __init__(self, platform_id: str, rates: Mapping[str, ModelPricing], *, fallback_model: str) -> None:
        if fallback_model not in rates:
            raise ValueError(f"Fallback model '{fallback_model}' is not in the {platform_id} price table")
        self._platform_id = platform_id
        self._rates: Dict[str, ModelPricing] = dict(rates)
        self._fallback_model = fallback_model

    @property
    def fallback_model(self) -> str:
        return self._fallback_model

    @property
    def models(self) -> Tuple[str, ...]:
        return tuple(self._rates)

    def __contains__(self, model: object) -> bool:
        return model in self._rates

    def lookup(self, model: str) -> Tuple[ModelPricing, bool]:
        """Return ``(pricing, priced_by_fallback)`` for ``model``."""
        pricing = self._rates.get(model)
        if pricing is not None:
            return pricing, False
        LOGGER.warning(
            "Unrecognised model; billing at fallback rate",
            extra={
                "platform": self._platform_id,
                "model": model,
                "fallback_model": self._fallback_model,
            },
        )
        return self._rates[self._fallback_model], True

    def cost(self, model: str, input_tokens: int, output_tokens: int) -> Tuple[float, bool]:
        pricing, fallback = self.lookup(model)
        return round(pricing.cost(input_tokens, output_tokens), 8), fallback


OPENAI_PRICES = PriceTable(
    "chatgpt",
    {
        "gpt-4o-mini": ModelPricing(0.15, 0.60),
        "gpt-4o-mini-2024-07-18": ModelPricing(0.15, 0.60),
        "gpt-4o": ModelPricing(2.50, 10.00),
        "gpt-4o-2024-08-06": ModelPricing(2.50, 10.00),
        "gpt-4-turbo": ModelPricing(10.00, 30.00),
        "gpt-4": ModelPricing(30.00, 60.00),
        "gpt-3.5-turbo": ModelPricing(0.50, 1.50),
    },
    fallback_model="gpt-4o-mini",
)

ANTHROPIC_PRICES = PriceTable(
    "claude",
    {
        "claude-3-haiku-20240307": ModelPricing(0.25, 1.25),
        "claude-3-5-haiku-20241022": ModelPricing(0.80, 4.00),
        "claude-3-sonnet-20240229": ModelPricing(3.00, 15.00),
        "claude-3-5-sonnet-20241022": ModelPricing(3.00, 15.00),
        "claude-3-opus-20240229": ModelPricing(15.00, 75.00),
    },
    fallback_model="claude-3-haiku-20240307",
)

GEMINI_PRICES = PriceTable(
    "gemini",
    {
        "gemini-2.5-flash-lite": ModelPricing(0.10, 0.40),
        "gemini-2.5-flash": ModelPricing(0.30, 2.50),
        "gemini-1.5-pro": ModelPricing(1.25, 5.00),
        "gemini-1.5-flash": ModelPricing(0.075, 0.30),
        "gemini-pro": ModelPricing(0.50, 1.50),
    },
    fallback_model="gemini-2.5-flash-lite",
)

PERPLEXITY_PRICES = PriceTable(
    "perplexity",
    {
        "sonar": ModelPricing(1.00, 1.00),
        "sonar-pro": ModelPricing(3.00, 15.00),
        "llama-3.1-sonar-small-128k-online": ModelPricing(0.20, 0.20),
        "llama-3.1-sonar-large-128k-online": ModelPricing(1.00, 1.00),
        "llama-3.1-sonar-huge-128k-online": ModelPricing(5.00, 5.00),
    },
    fallback_model="sonar",
)

GROK_PRICES = PriceTable(
    "grok",
    {
        "grok-2-1212": ModelPricing(2.00, 10.00),
        "grok-2": ModelPricing(2.00, 10.00),
    },
    fallback_model="grok-2-1212",
)


__all__ = [
    "ModelPricing",
    "PriceTable",
    "OPENAI_PRICES",
    "ANTHROPIC_PRICES",
    "GEMINI_PRICES",
    "PERPLEXITY_PRICES",
    "GROK_PRICES",
]
