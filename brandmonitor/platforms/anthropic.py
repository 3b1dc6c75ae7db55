"""Claude adapter over the Anthropic messages API."""

from __future__ import annotations

import time
from typing import Dict, Optional

from ..core.exceptions import MalformedResponseError
from ..core.models import Platform, PlatformResponse
from .base import HTTPPlatformAdapter, token_count
from .pricing import ANTHROPIC_PRICES

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicAdapter(HTTPPlatformAdapter):
    platform_id = Platform.CLAUDE.value
    display_name = "Claude"
    default_model = "claude-3-haiku-20240307"
    base_url = "https://api.anthropic.com/v1"
    price_table = ANTHROPIC_PRICES

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self._settings.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    async def generate(self, prompt: str, model: Optional[str] = None) -> PlatformResponse:
        self._validate_prompt(prompt)
        requested = model or self.model
        started_at = time.perf_counter()
        payload = {
            "model": requested,
            "max_tokens": self._settings.max_output_tokens,
            "temperature": self._settings.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        data = await self._post_json("/messages", payload, model=requested)

        blocks = data.get("content")
        if not isinstance(blocks, list):
            raise MalformedResponseError(
                "Claude response has no content blocks",
                service=self.platform_id,
                model=requested,
                response_data=data,
            )
        parts = []
        for block in blocks:
            if not isinstance(block, dict) or block.get("type") != "text":
                continue
            block_text = block.get("text", "")
            if not isinstance(block_text, str):
                raise MalformedResponseError(
                    "Claude text block does not hold a string",
                    service=self.platform_id,
                    model=requested,
                    response_data=data,
                )
            parts.append(block_text)
        text = "".join(parts)

        usage = self._usage_block(data, model=requested)
        return self._build_response(
            text=text,
            requested_model=requested,
            reported_model=data.get("model"),
            input_tokens=token_count(usage.get("input_tokens")),
            output_tokens=token_count(usage.get("output_tokens")),
            started_at=started_at,
        )


__all__ = ["AnthropicAdapter", "ANTHROPIC_VERSION"]
