import json
from types import SimpleNamespace

import httpx
import pytest
from google.api_core import exceptions as google_exceptions

from brandmonitor.core.exceptions import AuthError, MalformedResponseError, RateLimitedError, TransportError
from brandmonitor.platforms.anthropic import ANTHROPIC_VERSION, AnthropicAdapter
from brandmonitor.platforms.base import AdapterSettings
from brandmonitor.platforms.gemini import GeminiAdapter
from brandmonitor.platforms.openai_compat import GrokAdapter, OpenAIAdapter, PerplexityAdapter
from brandmonitor.platforms.pricing import OPENAI_PRICES


def _adapter(adapter_type, handler, **settings):
    client = httpx.AsyncClient(base_url=adapter_type.base_url, transport=httpx.MockTransport(handler))
    return adapter_type(AdapterSettings(api_key="test-key", **settings), client=client)


def _chat_payload(text, model="gpt-4o-mini", **extra):
    payload = {
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": text}}],
        "usage": {"prompt_tokens": 1000, "completion_tokens": 2000},
    }
    payload.update(extra)
    return payload


@pytest.mark.asyncio
async def test_openai_request_and_response_mapping():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_chat_payload("Acme is great. https://acme.com"))

    adapter = _adapter(OpenAIAdapter, handler)
    response = await adapter.generate("Best CRM?")

    assert seen["path"] == "/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "gpt-4o-mini"
    assert seen["body"]["temperature"] == 0.0
    assert seen["body"]["max_tokens"] == 1500
    assert response.text == "Acme is great. https://acme.com"
    assert response.citations == ["https://acme.com"]
    assert response.usage.input_tokens == 1000
    assert response.usage.output_tokens == 2000
    # 1000 * 0.15 / 1M + 2000 * 0.60 / 1M
    assert response.usage.cost_usd == pytest.approx(0.00135)
    assert response.usage.priced_by_fallback is False


@pytest.mark.asyncio
async def test_unknown_model_is_priced_by_fallback():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_chat_payload("ok", model="gpt-9-preview"))

    adapter = _adapter(OpenAIAdapter, handler, model="gpt-9-preview")
    response = await adapter.generate("hi")

    assert response.model == "gpt-9-preview"
    assert response.usage.priced_by_fallback is True
    assert response.usage.cost_usd == OPENAI_PRICES.cost("gpt-4o-mini", 1000, 2000)[0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, error_type",
    [(401, AuthError), (403, AuthError), (429, RateLimitedError), (500, TransportError), (404, TransportError)],
)
async def test_http_status_mapping(status, error_type):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"error": {"message": "denied"}}, headers={"Retry-After": "12"})

    adapter = _adapter(GrokAdapter, handler)

    with pytest.raises(error_type) as excinfo:
        await adapter.generate("hi")

    assert excinfo.value.status_code == status
    assert excinfo.value.service == "grok"
    if status == 429:
        assert excinfo.value.retry_after == 12.0


@pytest.mark.asyncio
async def test_network_failure_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    adapter = _adapter(OpenAIAdapter, handler)

    with pytest.raises(TransportError):
        await adapter.generate("hi")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, content=b"<html>not json</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"choices": [{"message": "Acme"}]}),
        httpx.Response(200, json={"choices": [{"message": {"content": "Acme"}}], "usage": "n/a"}),
    ],
)
async def test_malformed_payloads(response):
    adapter = _adapter(OpenAIAdapter, lambda request: response)

    with pytest.raises(MalformedResponseError):
        await adapter.generate("hi")


@pytest.mark.asyncio
async def test_perplexity_merges_native_citations():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=_chat_payload(
                "Acme leads [1]. More at https://acme.com.",
                model="sonar",
                citations=["https://review.example.com/acme", "https://acme.com"],
                search_results=[{"url": "https://blog.example.org/crm"}],
            ),
        )

    adapter = _adapter(PerplexityAdapter, handler)
    response = await adapter.generate("Best CRM?")

    assert response.citations == [
        "https://acme.com",
        "https://review.example.com/acme",
        "https://blog.example.org/crm",
    ]
    assert response.platform_id == "perplexity"


@pytest.mark.asyncio
async def test_anthropic_headers_and_text_blocks():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["headers"] = request.headers
        return httpx.Response(
            200,
            json={
                "model": "claude-3-haiku-20240307",
                "content": [{"type": "text", "text": "Acme "}, {"type": "text", "text": "is reliable."}],
                "usage": {"input_tokens": 10, "output_tokens": 5},
            },
        )

    adapter = _adapter(AnthropicAdapter, handler)
    response = await adapter.generate("Best CRM?")

    assert seen["path"] == "/v1/messages"
    assert seen["headers"]["x-api-key"] == "test-key"
    assert seen["headers"]["anthropic-version"] == ANTHROPIC_VERSION
    assert response.text == "Acme is reliable."
    assert response.usage.total_tokens == 15


@pytest.mark.asyncio
async def test_anthropic_missing_content_is_malformed():
    adapter = _adapter(AnthropicAdapter, lambda request: httpx.Response(200, json={"id": "msg"}))

    with pytest.raises(MalformedResponseError):
        await adapter.generate("hi")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"content": [{"type": "text", "text": ["Acme"]}]},
        {"content": [{"type": "text", "text": "Acme"}], "usage": 12},
    ],
)
async def test_anthropic_badly_shaped_blocks_are_malformed(payload):
    adapter = _adapter(AnthropicAdapter, lambda request: httpx.Response(200, json=payload))

    with pytest.raises(MalformedResponseError):
        await adapter.generate("hi")


@pytest.mark.asyncio
async def test_empty_prompt_is_rejected():
    adapter = _adapter(OpenAIAdapter, lambda request: httpx.Response(200, json=_chat_payload("x")))

    with pytest.raises(ValueError):
        await adapter.generate("   ")


class _FakeGenerativeModel:
    def __init__(self, name, result=None, error=None):
        self.name = name
        self._result = result
        self._error = error
        self.calls = []

    async def generate_content_async(self, prompt, generation_config=None):
        self.calls.append((prompt, generation_config))
        if self._error is not None:
            raise self._error
        return self._result


def _gemini(result=None, error=None):
    models = []

    def factory(name):
        model = _FakeGenerativeModel(name, result=result, error=error)
        models.append(model)
        return model

    return GeminiAdapter(AdapterSettings(api_key="test-key"), model_factory=factory), models


@pytest.mark.asyncio
async def test_gemini_response_mapping():
    result = SimpleNamespace(
        text="Acme is popular.",
        usage_metadata=SimpleNamespace(prompt_token_count=100, candidates_token_count=50),
    )
    adapter, models = _gemini(result=result)

    response = await adapter.generate("Best CRM?")

    assert response.text == "Acme is popular."
    assert response.model == "gemini-2.5-flash-lite"
    assert response.usage.input_tokens == 100
    assert models[0].calls[0][1]["temperature"] == 0.0
    assert models[0].calls[0][1]["max_output_tokens"] == 1500


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, error_type",
    [
        (google_exceptions.PermissionDenied("bad key"), AuthError),
        (google_exceptions.ResourceExhausted("quota"), RateLimitedError),
        (google_exceptions.InternalServerError("oops"), TransportError),
    ],
)
async def test_gemini_error_mapping(error, error_type):
    adapter, _ = _gemini(error=error)

    with pytest.raises(error_type):
        await adapter.generate("hi")


@pytest.mark.asyncio
async def test_gemini_without_candidates_is_malformed():
    adapter, _ = _gemini(result=SimpleNamespace(text="", candidates=[], usage_metadata=None))

    with pytest.raises(MalformedResponseError):
        await adapter.generate("hi")
