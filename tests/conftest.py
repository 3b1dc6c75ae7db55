from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional, Union

import pytest

from brandmonitor.core.exceptions import TransportError
from brandmonitor.core.models import PlatformResponse, TokenUsage
from brandmonitor.platforms.base import AdapterSettings, PlatformAdapter
from brandmonitor.platforms.pricing import OPENAI_PRICES
from brandmonitor.platforms.registry import AdapterRegistry

Reply = Union[str, Callable[[str], str]]


class FakeAdapter(PlatformAdapter):
    """Adapter that answers from a canned reply without touching the network."""

    display_name = "Fake"
    default_model = "fake-model"
    price_table = OPENAI_PRICES

    def __init__(
        self,
        platform_id: str,
        reply: Reply = "",
        *,
        cost_usd: float = 0.001,
        citations: Optional[List[str]] = None,
        delay: float = 0.0,
    ) -> None:
        super().__init__(AdapterSettings(api_key="test-key"))
        self.platform_id = platform_id
        self._reply = reply
        self._cost = cost_usd
        self._citations = citations or []
        self._delay = delay
        self.prompts: List[str] = []
        self.closed = False

    async def generate(self, prompt: str, model: Optional[str] = None) -> PlatformResponse:
        self.prompts.append(prompt)
        if self._delay:
            await asyncio.sleep(self._delay)
        text = self._reply(prompt) if callable(self._reply) else self._reply
        return PlatformResponse(
            platform_id=self.platform_id,
            text=text,
            citations=self._citations,
            usage=TokenUsage(input_tokens=10, output_tokens=20, cost_usd=self._cost),
            model=model or self.model,
        )

    async def aclose(self) -> None:
        self.closed = True


class FailingAdapter(FakeAdapter):
    def __init__(self, platform_id: str, error: Optional[Exception] = None) -> None:
        super().__init__(platform_id)
        self._error = error or TransportError("connection reset", service=platform_id)

    async def generate(self, prompt: str, model: Optional[str] = None) -> PlatformResponse:
        self.prompts.append(prompt)
        raise self._error


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_registry() -> Callable[..., AdapterRegistry]:
    def _make(*adapters: PlatformAdapter) -> AdapterRegistry:
        return AdapterRegistry(adapters)

    return _make


@pytest.fixture
def env() -> Dict[str, str]:
    return {
        "OPENAI_API_KEY": "sk-test-openai",
        "ANTHROPIC_API_KEY": "sk-ant-test",
    }
