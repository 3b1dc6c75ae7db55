import threading

import pytest

from brandmonitor.core.exceptions import ConfigurationError, QuotaExceededError
from brandmonitor.monitoring.governor import (
    DEFAULT_TIERS,
    QUOTA_CONCURRENT,
    QUOTA_COST,
    QUOTA_DAILY,
    QUOTA_HOURLY,
    UsageGovernor,
)


def _admit(governor, tenant="t1", cost=0.0):
    decision = governor.check_rate_limit(tenant, "monitor")
    assert decision.allowed, decision.reason
    record = governor.record_request(tenant, "monitor", cost)
    governor.complete_request(tenant)
    return record


def test_hourly_window_allows_exactly_the_limit_then_slides(clock):
    governor = UsageGovernor(time_func=clock)
    limit = DEFAULT_TIERS["free"].max_requests_per_hour

    for _ in range(limit):
        _admit(governor)
        clock.advance(1)

    denied = governor.check_rate_limit("t1")
    assert not denied.allowed
    assert denied.quota_type == QUOTA_HOURLY
    assert denied.retry_after_seconds > 0

    clock.advance(denied.retry_after_seconds)
    assert governor.check_rate_limit("t1").allowed


def test_daily_ceiling_denies_the_51st_request_on_free_tier(clock):
    governor = UsageGovernor(time_func=clock)

    # Spread 50 requests over the day so the hourly limit never trips.
    for _ in range(50):
        _admit(governor)
        clock.advance(25 * 60)

    decision = governor.check_rate_limit("t1")
    assert not decision.allowed
    assert decision.quota_type == QUOTA_DAILY

    with pytest.raises(QuotaExceededError) as excinfo:
        governor.reserve("t1")
    assert excinfo.value.retry_after_seconds > 0
    assert excinfo.value.quota_type == QUOTA_DAILY
    assert excinfo.value.tier == "free"


def test_concurrency_denial_has_fixed_retry_hint(clock):
    governor = UsageGovernor(time_func=clock)
    governor.record_request("t1")

    decision = governor.check_rate_limit("t1")

    assert decision.quota_type == QUOTA_CONCURRENT
    assert decision.retry_after_seconds == 60

    governor.complete_request("t1")
    assert governor.check_rate_limit("t1").allowed


def test_complete_request_never_goes_negative(clock):
    governor = UsageGovernor(time_func=clock)

    governor.complete_request("t1")
    governor.complete_request("t1")

    assert governor.get_usage_stats("t1")["usage"]["concurrent"]["active"] == 0


def test_cost_ceiling_retry_waits_for_enough_spend_to_expire(clock):
    governor = UsageGovernor(time_func=clock)
    _admit(governor, cost=0.06)
    clock.advance(600)
    _admit(governor, cost=0.05)
    clock.advance(600)

    decision = governor.check_rate_limit("t1")

    assert decision.quota_type == QUOTA_COST
    # Dropping the first entry brings the spend under $0.10.
    assert decision.retry_after_seconds == 24 * 3600 - 1200

    clock.advance(decision.retry_after_seconds)
    assert governor.check_rate_limit("t1").allowed


def test_session_settles_cost_and_releases_on_error(clock):
    governor = UsageGovernor(time_func=clock, default_tier="starter")

    with pytest.raises(RuntimeError):
        with governor.session("t1") as lease:
            lease.charge(0.25)
            raise RuntimeError("run failed")

    stats = governor.get_usage_stats("t1")
    assert stats["usage"]["concurrent"]["active"] == 0
    assert stats["usage"]["daily"]["count"] == 1
    assert stats["usage"]["cost"]["total"] == pytest.approx(0.25)


def test_session_denial_records_nothing(clock):
    governor = UsageGovernor(time_func=clock)

    with governor.session("t1"):
        with pytest.raises(QuotaExceededError) as excinfo:
            with governor.session("t1"):
                pass

    assert excinfo.value.quota_type == QUOTA_CONCURRENT
    assert governor.get_usage_stats("t1")["usage"]["daily"]["count"] == 1


def test_tenants_are_isolated(clock):
    governor = UsageGovernor(time_func=clock)
    governor.record_request("t1")

    assert not governor.check_rate_limit("t1").allowed
    assert governor.check_rate_limit("t2").allowed


def test_assigned_tier_changes_limits(clock):
    governor = UsageGovernor(time_func=clock, tenant_tiers={"big": "enterprise"})

    assert governor.tier_for("big").max_requests_per_hour == 1000
    assert governor.tier_for("someone-else").name == "free"

    with pytest.raises(ConfigurationError):
        governor.assign_tier("big", "platinum")


def test_remaining_quota(clock):
    governor = UsageGovernor(time_func=clock)
    _admit(governor, cost=0.04)

    remaining = governor.get_remaining_quota("t1")

    assert remaining["requests"] == {"hourly": 9, "daily": 49}
    assert remaining["cost"]["daily"] == pytest.approx(0.06)


def test_reserve_is_atomic_across_threads(clock):
    governor = UsageGovernor(time_func=clock, default_tier="starter")
    admitted = []
    denied = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            admitted.append(governor.reserve("t1"))
        except QuotaExceededError:
            denied.append(1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(admitted) == DEFAULT_TIERS["starter"].max_concurrent_requests
    assert len(denied) == 8 - len(admitted)
