import pytest

from brandmonitor import BrandIdentity, BrandMonitor
from brandmonitor.config import load_app_config
from brandmonitor.core.exceptions import QuotaExceededError, UnknownPlatformError
from brandmonitor.monitoring.governor import UsageGovernor

from .conftest import FakeAdapter


@pytest.fixture
def adapters():
    return [
        FakeAdapter("chatgpt", "Acme is the best pick.", cost_usd=0.01),
        FakeAdapter("claude", "Globex is popular.", cost_usd=0.02),
    ]


@pytest.mark.asyncio
async def test_monitor_defaults_to_template_queries_and_all_platforms(adapters, make_registry, clock):
    monitor = BrandMonitor(make_registry(*adapters), governor=UsageGovernor(time_func=clock))
    brand = BrandIdentity(name="Acme", industry="CRM")

    result = await monitor.monitor("tenant-1", brand)

    assert result.queries_tested == 5
    assert result.platforms == ["chatgpt", "claude"]
    assert len(result.mention_results) == 10
    assert adapters[0].prompts[-1] == "What are alternatives to Acme?"


@pytest.mark.asyncio
async def test_monitor_charges_run_cost_to_tenant(adapters, make_registry, clock):
    governor = UsageGovernor(time_func=clock, default_tier="starter")
    monitor = BrandMonitor(make_registry(*adapters), governor=governor)

    result = await monitor.monitor("tenant-1", BrandIdentity(name="Acme"), ["Best CRM?"])

    stats = governor.get_usage_stats("tenant-1")
    assert result.total_cost_usd == pytest.approx(0.03)
    assert stats["usage"]["cost"]["total"] == pytest.approx(0.03)
    assert stats["usage"]["concurrent"]["active"] == 0


@pytest.mark.asyncio
async def test_denied_tenant_never_reaches_platforms(adapters, make_registry, clock):
    governor = UsageGovernor(time_func=clock)
    governor.record_request("tenant-1")
    monitor = BrandMonitor(make_registry(*adapters), governor=governor)

    with pytest.raises(QuotaExceededError) as excinfo:
        await monitor.monitor("tenant-1", BrandIdentity(name="Acme"), ["Best CRM?"])

    assert excinfo.value.retry_after_seconds == 60
    assert all(adapter.prompts == [] for adapter in adapters)


@pytest.mark.asyncio
async def test_unknown_platform_is_not_charged(adapters, make_registry, clock):
    governor = UsageGovernor(time_func=clock)
    monitor = BrandMonitor(make_registry(*adapters), governor=governor)

    with pytest.raises(UnknownPlatformError):
        await monitor.monitor("tenant-1", BrandIdentity(name="Acme"), ["q"], ["bard"])

    assert governor.get_usage_stats("tenant-1")["usage"]["daily"]["count"] == 0


def test_query_list_is_capped(adapters, make_registry):
    monitor = BrandMonitor(make_registry(*adapters), max_queries_per_run=2)

    assert monitor.resolve_queries(BrandIdentity(name="Acme"), ["a", " ", "b", "c"]) == ["a", "b"]


@pytest.mark.asyncio
async def test_generate_queries_prefers_claude(adapters, make_registry):
    adapters[1] = FakeAdapter("claude", '[{"query": "q", "category": "c", "intent": "i"}]')
    monitor = BrandMonitor(make_registry(*adapters))

    result = await monitor.generate_queries(BrandIdentity(name="Acme"), count=3)

    assert result.texts == ["q"]
    assert adapters[1].prompts and not adapters[0].prompts


@pytest.mark.asyncio
async def test_from_config_wires_settings(env, adapters, make_registry):
    env.update({"MAX_QUERIES_PER_RUN": "3", "DEFAULT_TENANT_TIER": "enterprise", "PLATFORM_TIMEOUT_SECONDS": "5"})
    config = load_app_config(env)

    monitor = BrandMonitor.from_config(config, registry=make_registry(*adapters))

    assert monitor.max_queries_per_run == 3
    assert monitor.governor.default_tier == "enterprise"
    result = await monitor.monitor("tenant-1", BrandIdentity(name="Acme"))
    assert result.queries_tested == 3

    await monitor.aclose()
    assert all(adapter.closed for adapter in adapters)


def test_from_config_builds_real_adapters(env):
    monitor = BrandMonitor.from_config(load_app_config(env))

    assert monitor.registry.platform_ids == ["chatgpt", "claude"]
    assert monitor.registry.get("claude").model == "claude-3-haiku-20240307"


@pytest.mark.asyncio
async def test_session_is_completed_when_run_crashes(adapters, make_registry, clock, mocker):
    governor = UsageGovernor(time_func=clock)
    monitor = BrandMonitor(make_registry(*adapters), governor=governor)
    mocker.patch.object(monitor.orchestrator, "run", side_effect=RuntimeError("boom"))
    completed = mocker.spy(governor, "complete_request")

    with pytest.raises(RuntimeError):
        await monitor.monitor("tenant-1", BrandIdentity(name="Acme"), ["Best CRM?"])

    assert completed.call_count == 1
    assert governor.get_usage_stats("tenant-1")["usage"]["concurrent"]["active"] == 0


@pytest.mark.asyncio
async def test_brand_domain_is_checked_against_citations(make_registry, clock):
    adapter = FakeAdapter("chatgpt", "Acme is trusted. See https://acme.com/features for details.")
    monitor = BrandMonitor(make_registry(adapter), governor=UsageGovernor(time_func=clock))

    result = await monitor.monitor("tenant-1", BrandIdentity(name="Acme", domain="https://www.acme.com/"), ["Best CRM?"])

    assert result.mention_results[0].brand_citation == "https://acme.com/features"
