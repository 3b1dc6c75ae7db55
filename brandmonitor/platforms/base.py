"""Platform adapter contract and the shared async HTTP transport."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterable, Optional

import httpx

from ..core.exceptions import AuthError, MalformedResponseError, RateLimitedError, TransportError
from ..core.models import PlatformCredentials, PlatformResponse, TokenUsage
from ..extraction.citation_extractor import extract_citations
from .pricing import PriceTable

LOGGER = logging.getLogger(__name__)


@dataclass
class AdapterSettings:
    """Runtime configuration shared by every platform adapter."""

    api_key: str
    model: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = 60.0
    max_output_tokens: int = 1500
    temperature: float = 0.0

    @classmethod
    def from_credentials(
        cls,
        credentials: PlatformCredentials,
        *,
        timeout: float = 60.0,
        max_output_tokens: int = 1500,
    ) -> "AdapterSettings":
        return cls(
            api_key=credentials.api_key,
            model=credentials.model,
            timeout=timeout,
            max_output_tokens=max_output_tokens,
        )


class PlatformAdapter(ABC):
    """Uniform call contract for one external text-generation platform.

    ``generate`` makes exactly one outbound call and either returns a
    :class:`PlatformResponse` or raises one of the typed API errors. Adapters
    never retry; retry policy belongs to the caller.
    """

    platform_id: ClassVar[str]
    display_name: ClassVar[str]
    default_model: ClassVar[str]
    price_table: ClassVar[PriceTable]

    def __init__(self, settings: AdapterSettings) -> None:
        self._settings = settings

    @property
    def settings(self) -> AdapterSettings:
        return self._settings

    @property
    def model(self) -> str:
        return self._settings.model or self.default_model

    @abstractmethod
    async def generate(self, prompt: str, model: Optional[str] = None) -> PlatformResponse:
        """Send ``prompt`` to the platform and return the generated text."""

    async def aclose(self) -> None:
        return None

    async def __aenter__(self) -> "PlatformAdapter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.aclose()

    def _build_response(
        self,
        *,
        text: str,
        requested_model: str,
        reported_model: Optional[str],
        input_tokens: int,
        output_tokens: int,
        started_at: float,
        native_citations: Optional[Iterable[str]] = None,
    ) -> PlatformResponse:
        # Billing follows the model we asked for; the platform may report a dated alias.
        cost, fallback = self.price_table.cost(requested_model, input_tokens, output_tokens)
        elapsed_ms = (time.perf_counter() - started_at) * 1000
        response = PlatformResponse(
            platform_id=self.platform_id,
            text=text,
            citations=extract_citations(text, extra=native_citations),
            usage=TokenUsage(
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                cost_usd=cost,
                latency_ms=round(elapsed_ms, 3),
                priced_by_fallback=fallback,
            ),
            model=reported_model or requested_model,
        )
        LOGGER.info(
            "Platform response received",
            extra={
                "platform": self.platform_id,
                "model": response.model,
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "cost_usd": cost,
                "latency_ms": response.usage.latency_ms,
            },
        )
        return response

    @staticmethod
    def _validate_prompt(prompt: str) -> str:
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")
        return prompt


class HTTPPlatformAdapter(PlatformAdapter):
    """Adapter base for platforms reached over a JSON REST API."""

    base_url: ClassVar[str]

    def __init__(
        self,
        settings: AdapterSettings,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(settings)
        self._client = client
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._settings.api_key}"}

    async def _post_json(self, path: str, payload: Dict[str, Any], *, model: str) -> Dict[str, Any]:
        await self._ensure_client()
        assert self._client is not None
        try:
            response = await self._client.post(
                path,
                json=payload,
                headers=self._headers(),
                timeout=self._settings.timeout,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"{self.display_name} request timed out",
                service=self.platform_id,
                model=model,
                cause=exc,
            ) from exc
        except httpx.RequestError as exc:
            raise TransportError(
                f"{self.display_name} request failed: {exc}",
                service=self.platform_id,
                model=model,
                cause=exc,
            ) from exc

        if response.status_code >= 400:
            raise self._map_error(response, model=model)

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"{self.display_name} returned invalid JSON",
                service=self.platform_id,
                status_code=response.status_code,
                model=model,
                cause=exc,
            ) from exc
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"{self.display_name} returned a non-object payload",
                service=self.platform_id,
                status_code=response.status_code,
                model=model,
            )
        return data

    def _usage_block(self, data: Dict[str, Any], *, model: str) -> Dict[str, Any]:
        """The payload's ``usage`` object; absent usage counts as zero tokens."""
        usage = data.get("usage")
        if usage is None:
            return {}
        if not isinstance(usage, dict):
            raise MalformedResponseError(
                f"{self.display_name} usage block is not an object",
                service=self.platform_id,
                model=model,
                response_data=data,
            )
        return usage

    async def _ensure_client(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._settings.base_url or self.base_url)

    def _map_error(self, response: httpx.Response, *, model: str) -> Exception:
        try:
            data = response.json()
        except ValueError:
            data = {"error": response.text}
        if not isinstance(data, dict):
            data = {"error": data}
        message = _error_message(data) or response.text or f"HTTP {response.status_code}"
        common = {
            "service": self.platform_id,
            "status_code": response.status_code,
            "response_data": data,
            "model": model,
        }

        if response.status_code in (401, 403):
            return AuthError(f"{self.display_name} rejected the credentials: {message}", **common)
        if response.status_code == 429:
            LOGGER.warning(
                "Platform rate limit hit",
                extra={"platform": self.platform_id, "status_code": response.status_code},
            )
            return RateLimitedError(
                f"{self.display_name} rate limit hit: {message}",
                retry_after=_parse_retry_after(response.headers.get("Retry-After")),
                **common,
            )
        return TransportError(f"{self.display_name} API error {response.status_code}: {message}", **common)


def _error_message(data: Dict[str, Any]) -> Optional[str]:
    error = data.get("error")
    if isinstance(error, dict):
        return error.get("message") or error.get("type")
    if isinstance(error, str):
        return error
    message = data.get("message")
    return message if isinstance(message, str) else None


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


def token_count(value: Any) -> int:
    """Coerce a usage field from a platform payload to a non-negative int."""
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


__all__ = ["AdapterSettings", "PlatformAdapter", "HTTPPlatformAdapter", "token_count"]
