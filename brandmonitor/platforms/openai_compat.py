"""Adapters for platforms that speak the OpenAI chat-completions protocol."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from ..core.exceptions import MalformedResponseError
from ..core.models import Platform, PlatformResponse
from .base import HTTPPlatformAdapter, token_count
from .pricing import GROK_PRICES, OPENAI_PRICES, PERPLEXITY_PRICES


class ChatCompletionsAdapter(HTTPPlatformAdapter):
    """Single-turn ``/chat/completions`` call with a user message."""

    path = "/chat/completions"

    def _build_payload(self, prompt: str, model: str) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_output_tokens,
        }

    def _native_citations(self, data: Dict[str, Any]) -> List[str]:
        return []

    async def generate(self, prompt: str, model: Optional[str] = None) -> PlatformResponse:
        self._validate_prompt(prompt)
        requested = model or self.model
        started_at = time.perf_counter()
        data = await self._post_json(self.path, self._build_payload(prompt, requested), model=requested)

        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError(
                f"{self.display_name} response has no message choice",
                service=self.platform_id,
                model=requested,
                response_data=data,
                cause=exc,
            ) from exc
        if not isinstance(message, dict):
            raise MalformedResponseError(
                f"{self.display_name} message choice is not an object",
                service=self.platform_id,
                model=requested,
                response_data=data,
            )
        text = message.get("content")
        if text is not None and not isinstance(text, str):
            raise MalformedResponseError(
                f"{self.display_name} message content is not text",
                service=self.platform_id,
                model=requested,
            )

        usage = self._usage_block(data, model=requested)
        return self._build_response(
            text=text or "",
            requested_model=requested,
            reported_model=data.get("model"),
            input_tokens=token_count(usage.get("prompt_tokens")),
            output_tokens=token_count(usage.get("completion_tokens")),
            started_at=started_at,
            native_citations=self._native_citations(data),
        )


class OpenAIAdapter(ChatCompletionsAdapter):
    platform_id = Platform.CHATGPT.value
    display_name = "ChatGPT"
    default_model = "gpt-4o-mini"
    base_url = "https://api.openai.com/v1"
    price_table = OPENAI_PRICES


class PerplexityAdapter(ChatCompletionsAdapter):
    """Perplexity returns web sources alongside the text in ``citations``."""

    platform_id = Platform.PERPLEXITY.value
    display_name = "Perplexity"
    default_model = "sonar"
    base_url = "https://api.perplexity.ai"
    price_table = PERPLEXITY_PRICES

    def _native_citations(self, data: Dict[str, Any]) -> List[str]:
        citations = data.get("citations") or []
        urls = [item for item in citations if isinstance(item, str)]
        for result in data.get("search_results") or []:
            if isinstance(result, dict) and isinstance(result.get("url"), str):
                urls.append(result["url"])
        return urls


class GrokAdapter(ChatCompletionsAdapter):
    platform_id = Platform.GROK.value
    display_name = "Grok"
    default_model = "grok-2-1212"
    base_url = "https://api.x.ai/v1"
    price_table = GROK_PRICES


__all__ = ["ChatCompletionsAdapter", "OpenAIAdapter", "PerplexityAdapter", "GrokAdapter"]
