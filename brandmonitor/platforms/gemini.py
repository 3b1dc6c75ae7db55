"""Gemini adapter built on the Google Generative AI SDK."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..core.exceptions import AuthError, MalformedResponseError, RateLimitedError, TransportError
from ..core.models import Platform, PlatformResponse
from .base import AdapterSettings, PlatformAdapter, token_count
from .pricing import GEMINI_PRICES

LOGGER = logging.getLogger(__name__)

ModelFactory = Callable[[str], Any]


class GeminiAdapter(PlatformAdapter):
    """Thin async wrapper around ``GenerativeModel.generate_content_async``."""

    platform_id = Platform.GEMINI.value
    display_name = "Gemini"
    default_model = "gemini-2.5-flash-lite"
    price_table = GEMINI_PRICES

    def __init__(self, settings: AdapterSettings, *, model_factory: Optional[ModelFactory] = None) -> None:
        super().__init__(settings)
        if model_factory is None:
            genai.configure(api_key=settings.api_key)
            model_factory = lambda name: genai.GenerativeModel(model_name=name)  # noqa: E731
        self._model_factory = model_factory

    def _generation_config(self) -> Dict[str, Any]:
        return {
            "temperature": self._settings.temperature,
            "max_output_tokens": self._settings.max_output_tokens,
            "candidate_count": 1,
        }

    async def generate(self, prompt: str, model: Optional[str] = None) -> PlatformResponse:
        self._validate_prompt(prompt)
        requested = model or self.model
        started_at = time.perf_counter()
        generative_model = self._model_factory(requested)

        try:
            raw_response = await asyncio.wait_for(
                generative_model.generate_content_async(
                    prompt,
                    generation_config=self._generation_config(),
                ),
                timeout=self._settings.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise TransportError(
                "Gemini request timed out",
                service=self.platform_id,
                model=requested,
                cause=exc,
            ) from exc
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as exc:
            raise AuthError(
                f"Gemini rejected the credentials: {exc}",
                service=self.platform_id,
                status_code=getattr(exc, "code", None),
                model=requested,
                cause=exc,
            ) from exc
        except google_exceptions.ResourceExhausted as exc:
            LOGGER.warning("Platform rate limit hit", extra={"platform": self.platform_id})
            raise RateLimitedError(
                f"Gemini rate limit hit: {exc}",
                service=self.platform_id,
                status_code=429,
                model=requested,
                cause=exc,
            ) from exc
        except google_exceptions.GoogleAPIError as exc:
            raise TransportError(
                f"Gemini request failed: {exc}",
                service=self.platform_id,
                status_code=getattr(exc, "code", None),
                model=requested,
                cause=exc,
            ) from exc

        text = self._extract_text(raw_response, requested)
        usage = getattr(raw_response, "usage_metadata", None)
        return self._build_response(
            text=text,
            requested_model=requested,
            reported_model=requested,
            input_tokens=token_count(getattr(usage, "prompt_token_count", 0)),
            output_tokens=token_count(getattr(usage, "candidates_token_count", 0)),
            started_at=started_at,
        )

    def _extract_text(self, raw_response: Any, model: str) -> str:
        try:
            text = raw_response.text
        except (AttributeError, ValueError):
            # ``.text`` raises when the candidate was blocked or has several parts.
            text = None
        if text:
            return text

        candidates = getattr(raw_response, "candidates", None) or []
        if candidates:
            content = getattr(candidates[0], "content", None)
            parts = getattr(content, "parts", None) or []
            joined = "".join(getattr(part, "text", "") or "" for part in parts)
            if joined or content is not None:
                return joined

        raise MalformedResponseError(
            "Gemini response had no candidates",
            service=self.platform_id,
            model=model,
        )


__all__ = ["GeminiAdapter"]
