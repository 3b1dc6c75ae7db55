"""Per-tenant usage governor: concurrency, request and cost ceilings."""

from __future__ import annotations

import logging
import math
import threading
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from ..core.exceptions import ConfigurationError, QuotaExceededError

LOGGER = logging.getLogger(__name__)

HOUR_SECONDS = 60 * 60
DAY_SECONDS = 24 * HOUR_SECONDS
CONCURRENCY_RETRY_SECONDS = 60

QUOTA_CONCURRENT = "concurrent"
QUOTA_HOURLY = "hourly"
QUOTA_DAILY = "daily"
QUOTA_COST = "cost"


@dataclass(frozen=True)
class RateLimitTier:
    name: str
    max_requests_per_hour: int
    max_requests_per_day: int
    max_cost_per_day: float
    max_concurrent_requests: int


DEFAULT_TIERS: Dict[str, RateLimitTier] = {
    "free": RateLimitTier("free", 10, 50, 0.10, 1),
    "starter": RateLimitTier("starter", 50, 500, 1.00, 2),
    "professional": RateLimitTier("professional", 200, 2000, 10.00, 5),
    "enterprise": RateLimitTier("enterprise", 1000, 10000, 100.00, 10),
}


@dataclass
class UsageRecord:
    tenant_id: str
    timestamp: float
    endpoint: str
    cost_usd: float = 0.0


@dataclass
class RateLimitDecision:
    allowed: bool
    reason: Optional[str] = None
    retry_after_seconds: Optional[int] = None
    quota_type: Optional[str] = None

    @classmethod
    def allow(cls) -> "RateLimitDecision":
        return cls(allowed=True)


@dataclass
class UsageLease:
    """Handle for one admitted request; charge the run's cost before it ends."""

    tenant_id: str
    record: UsageRecord
    cost_usd: float = 0.0

    def charge(self, cost_usd: float) -> None:
        if cost_usd < 0:
            raise ValueError("cost_usd cannot be negative")
        self.cost_usd += cost_usd


@dataclass
class _TenantState:
    lock: threading.Lock = field(default_factory=threading.Lock)
    records: List[UsageRecord] = field(default_factory=list)
    active: int = 0


class UsageGovernor:
    """Track tenant usage against tier limits.

    Four ceilings are checked in a fixed order: concurrent in-flight requests,
    requests in the last hour, requests in the last day, and spend in the last
    day. Windows slide: a ledger entry counts while ``timestamp > now - window``.
    """

    def __init__(
        self,
        tiers: Optional[Mapping[str, RateLimitTier]] = None,
        *,
        default_tier: str = "free",
        tenant_tiers: Optional[Mapping[str, str]] = None,
        time_func: Callable[[], float] = time.time,
    ) -> None:
        self._tiers: Dict[str, RateLimitTier] = dict(tiers or DEFAULT_TIERS)
        self._require_tier(default_tier)
        self._default_tier = default_tier
        self._tenant_tiers: Dict[str, str] = {}
        for tenant_id, tier in (tenant_tiers or {}).items():
            self.assign_tier(tenant_id, tier)
        self._time = time_func
        self._registry_lock = threading.Lock()
        self._tenants: Dict[str, _TenantState] = {}

    @property
    def tiers(self) -> Dict[str, RateLimitTier]:
        return dict(self._tiers)

    @property
    def default_tier(self) -> str:
        return self._default_tier

    def assign_tier(self, tenant_id: str, tier: str) -> None:
        self._require_tier(tier)
        self._tenant_tiers[tenant_id] = tier

    def tier_for(self, tenant_id: str) -> RateLimitTier:
        return self._tiers[self._tenant_tiers.get(tenant_id, self._default_tier)]

    def check_rate_limit(self, tenant_id: str, endpoint: str = "monitor") -> RateLimitDecision:
        state = self._state(tenant_id)
        with state.lock:
            decision = self._evaluate(tenant_id, state)
        self._log_decision(tenant_id, endpoint, decision)
        return decision

    def record_request(self, tenant_id: str, endpoint: str = "monitor", cost_usd: float = 0.0) -> UsageRecord:
        """Append a ledger entry and count the request as in flight."""
        state = self._state(tenant_id)
        with state.lock:
            return self._record(tenant_id, state, endpoint, cost_usd)

    def complete_request(
        self,
        tenant_id: str,
        *,
        record: Optional[UsageRecord] = None,
        cost_usd: Optional[float] = None,
    ) -> None:
        """Release one in-flight slot, optionally settling the entry's final cost."""
        state = self._state(tenant_id)
        with state.lock:
            state.active = max(0, state.active - 1)
            if record is not None and cost_usd is not None:
                record.cost_usd = max(cost_usd, 0.0)

    def reserve(self, tenant_id: str, endpoint: str = "monitor") -> UsageLease:
        """Check and record under one lock so two runs cannot both take the last slot.

        Raises:
            QuotaExceededError: The tenant is over one of its ceilings
        """
        state = self._state(tenant_id)
        with state.lock:
            decision = self._evaluate(tenant_id, state)
            if decision.allowed:
                record = self._record(tenant_id, state, endpoint, 0.0)
        self._log_decision(tenant_id, endpoint, decision)

        if not decision.allowed:
            raise QuotaExceededError(
                decision.reason or "Usage limit exceeded",
                tenant_id=tenant_id,
                quota_type=decision.quota_type,
                retry_after_seconds=decision.retry_after_seconds,
                tier=self.tier_for(tenant_id).name,
                user_message=decision.reason,
            )
        return UsageLease(tenant_id=tenant_id, record=record)

    @contextmanager
    def session(self, tenant_id: str, endpoint: str = "monitor") -> Iterator[UsageLease]:
        lease = self.reserve(tenant_id, endpoint)
        try:
            yield lease
        finally:
            self.complete_request(tenant_id, record=lease.record, cost_usd=lease.cost_usd)

    def get_usage_stats(self, tenant_id: str) -> Dict[str, Any]:
        tier = self.tier_for(tenant_id)
        state = self._state(tenant_id)
        with state.lock:
            hourly, daily = self._windows(state)
            active = state.active
        daily_cost = math.fsum(record.cost_usd for record in daily)

        return {
            "tier": tier.name,
            "limits": asdict(tier),
            "usage": {
                "hourly": {
                    "count": len(hourly),
                    "limit": tier.max_requests_per_hour,
                    "percentage": _percentage(len(hourly), tier.max_requests_per_hour),
                },
                "daily": {
                    "count": len(daily),
                    "limit": tier.max_requests_per_day,
                    "percentage": _percentage(len(daily), tier.max_requests_per_day),
                },
                "cost": {
                    "total": round(daily_cost, 8),
                    "limit": tier.max_cost_per_day,
                    "percentage": _percentage(daily_cost, tier.max_cost_per_day),
                },
                "concurrent": {
                    "active": active,
                    "limit": tier.max_concurrent_requests,
                },
            },
        }

    def get_remaining_quota(self, tenant_id: str) -> Dict[str, Any]:
        tier = self.tier_for(tenant_id)
        state = self._state(tenant_id)
        with state.lock:
            hourly, daily = self._windows(state)
        daily_cost = math.fsum(record.cost_usd for record in daily)

        return {
            "requests": {
                "hourly": max(0, tier.max_requests_per_hour - len(hourly)),
                "daily": max(0, tier.max_requests_per_day - len(daily)),
            },
            "cost": {"daily": round(max(0.0, tier.max_cost_per_day - daily_cost), 8)},
        }

    # Internal helpers; callers hold the tenant lock.

    def _evaluate(self, tenant_id: str, state: _TenantState) -> RateLimitDecision:
        tier = self.tier_for(tenant_id)
        now = self._time()

        if state.active >= tier.max_concurrent_requests:
            return RateLimitDecision(
                allowed=False,
                reason=(
                    f"Maximum concurrent requests ({tier.max_concurrent_requests}) reached. "
                    "Please wait for current requests to complete."
                ),
                retry_after_seconds=CONCURRENCY_RETRY_SECONDS,
                quota_type=QUOTA_CONCURRENT,
            )

        hourly, daily = self._windows(state, now)
        if len(hourly) >= tier.max_requests_per_hour:
            return RateLimitDecision(
                allowed=False,
                reason=f"Hourly limit of {tier.max_requests_per_hour} requests exceeded. Upgrade to increase limits.",
                retry_after_seconds=_seconds_until(hourly[0].timestamp + HOUR_SECONDS, now),
                quota_type=QUOTA_HOURLY,
            )

        if len(daily) >= tier.max_requests_per_day:
            return RateLimitDecision(
                allowed=False,
                reason=f"Daily limit of {tier.max_requests_per_day} requests exceeded. Upgrade to increase limits.",
                retry_after_seconds=_seconds_until(daily[0].timestamp + DAY_SECONDS, now),
                quota_type=QUOTA_DAILY,
            )

        daily_cost = math.fsum(record.cost_usd for record in daily)
        if daily_cost >= tier.max_cost_per_day:
            return RateLimitDecision(
                allowed=False,
                reason=f"Daily cost limit of ${tier.max_cost_per_day:.2f} exceeded. Upgrade to increase limits.",
                retry_after_seconds=self._cost_retry_after(daily, daily_cost, tier.max_cost_per_day, now),
                quota_type=QUOTA_COST,
            )

        return RateLimitDecision.allow()

    @staticmethod
    def _cost_retry_after(daily: List[UsageRecord], daily_cost: float, limit: float, now: float) -> int:
        remaining = daily_cost
        for record in daily:
            remaining -= record.cost_usd
            if remaining < limit:
                return _seconds_until(record.timestamp + DAY_SECONDS, now)
        return DAY_SECONDS

    def _record(self, tenant_id: str, state: _TenantState, endpoint: str, cost_usd: float) -> UsageRecord:
        record = UsageRecord(
            tenant_id=tenant_id,
            timestamp=self._time(),
            endpoint=endpoint,
            cost_usd=max(cost_usd, 0.0),
        )
        state.records.append(record)
        state.active += 1
        return record

    def _windows(self, state: _TenantState, now: Optional[float] = None):
        now = self._time() if now is None else now
        # Entries older than a day can never count again.
        state.records = [record for record in state.records if record.timestamp > now - DAY_SECONDS]
        hourly = [record for record in state.records if record.timestamp > now - HOUR_SECONDS]
        return hourly, list(state.records)

    def _state(self, tenant_id: str) -> _TenantState:
        with self._registry_lock:
            state = self._tenants.get(tenant_id)
            if state is None:
                state = self._tenants[tenant_id] = _TenantState()
            return state

    def _require_tier(self, tier: str) -> None:
        if tier not in self._tiers:
            raise ConfigurationError(
                f"Unknown rate limit tier '{tier}'",
                config_key="tier",
                expected_type=" | ".join(self._tiers),
                provided_value=tier,
            )

    @staticmethod
    def _log_decision(tenant_id: str, endpoint: str, decision: RateLimitDecision) -> None:
        if decision.allowed:
            LOGGER.debug("Usage check passed", extra={"tenant_id": tenant_id, "endpoint": endpoint})
            return
        LOGGER.warning(
            "Usage check denied",
            extra={
                "tenant_id": tenant_id,
                "endpoint": endpoint,
                "quota_type": decision.quota_type,
                "retry_after_seconds": decision.retry_after_seconds,
            },
        )


def _seconds_until(deadline: float, now: float) -> int:
    return max(1, math.ceil(deadline - now))


def _percentage(used: float, limit: float) -> float:
    if limit <= 0:
        return 100.0
    return round(used / limit * 100, 2)


__all__ = [
    "DEFAULT_TIERS",
    "QUOTA_CONCURRENT",
    "QUOTA_COST",
    "QUOTA_DAILY",
    "QUOTA_HOURLY",
    "RateLimitDecision",
    "RateLimitTier",
    "UsageGovernor",
    "UsageLease",
    "UsageRecord",
]
