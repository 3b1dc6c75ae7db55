"""
BrandMonitor facade

Wires the usage governor, query catalog, platform registry and orchestrator
into a single entry point: one governed monitoring run per call.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .core.exceptions import BrandMonitorError
from .core.models import AppConfig, BrandIdentity, MonitoringResult, Platform
from .monitoring.governor import UsageGovernor
from .monitoring.orchestrator import MonitoringOrchestrator
from .platforms.registry import AdapterRegistry
from .queries.catalog import DEFAULT_GENERATED_COUNT, QueryCatalog, QueryGenerationResult

LOGGER = logging.getLogger(__name__)

# Query generation prefers the cheapest capable model.
GENERATION_PLATFORM_PREFERENCE = (Platform.CLAUDE.value, Platform.CHATGPT.value, Platform.GEMINI.value)


class BrandMonitor:
    """Run governed monitoring passes for brands across the configured platforms."""

    def __init__(
        self,
        registry: AdapterRegistry,
        *,
        governor: Optional[UsageGovernor] = None,
        catalog: Optional[QueryCatalog] = None,
        platform_timeout: Optional[float] = None,
        max_queries_per_run: int = 10,
        endpoint: str = "monitor",
    ) -> None:
        self.registry = registry
        self.governor = governor or UsageGovernor()
        self.catalog = catalog or QueryCatalog()
        self.orchestrator = MonitoringOrchestrator(registry, default_timeout=platform_timeout)
        self.max_queries_per_run = max_queries_per_run
        self.endpoint = endpoint

    @classmethod
    def from_config(cls, config: AppConfig, *, registry: Optional[AdapterRegistry] = None) -> "BrandMonitor":
        return cls(
            registry or AdapterRegistry.from_config(config.api),
            governor=UsageGovernor(default_tier=config.governor.default_tier),
            catalog=QueryCatalog(cache_ttl=config.query_cache_ttl_seconds),
            platform_timeout=config.platform_timeout_seconds,
            max_queries_per_run=config.max_queries_per_run,
            endpoint=config.governor.endpoint,
        )

    def resolve_queries(self, brand: BrandIdentity, queries: Optional[Sequence[str]] = None) -> List[str]:
        if queries is None:
            selected = self.catalog.template_queries(brand, limit=self.max_queries_per_run)
        else:
            selected = [query.strip() for query in queries if query and query.strip()]
        if len(selected) > self.max_queries_per_run:
            LOGGER.warning(
                "Query list truncated to the per-run maximum",
                extra={"requested": len(selected), "max_queries_per_run": self.max_queries_per_run},
            )
            selected = selected[: self.max_queries_per_run]
        return selected

    def resolve_platforms(self, platforms: Optional[Sequence[str]] = None) -> List[str]:
        if platforms is None:
            return self.registry.platform_ids
        resolved = [platform_id.strip().lower() for platform_id in platforms]
        for platform_id in resolved:
            # Raises UnknownPlatformError before the governor is charged.
            self.registry.get(platform_id)
        return resolved

    async def monitor(
        self,
        tenant_id: str,
        brand: BrandIdentity,
        queries: Optional[Sequence[str]] = None,
        platforms: Optional[Sequence[str]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> MonitoringResult:
        """Run one governed monitoring pass.

        Args:
            tenant_id: Tenant charged for the run
            brand: Brand to measure
            queries: Prompts to send; the brand's template queries when omitted
            platforms: Platform ids; every registered platform when omitted
            timeout: Per-call timeout override in seconds

        Raises:
            QuotaExceededError: The tenant is over its usage limits
            UnknownPlatformError: A requested platform is not registered
        """

        selected_queries = self.resolve_queries(brand, queries)
        selected_platforms = self.resolve_platforms(platforms)

        with self.governor.session(tenant_id, self.endpoint) as lease:
            result = await self.orchestrator.run(
                brand.name,
                selected_queries,
                selected_platforms,
                timeout=timeout,
                domain=brand.domain,
            )
            lease.charge(result.total_cost_usd)

        LOGGER.info(
            "Tenant run recorded",
            extra={
                "tenant_id": tenant_id,
                "brand_name": brand.name,
                "visibility_score": result.visibility_score,
                "cost_usd": result.total_cost_usd,
            },
        )
        return result

    async def generate_queries(
        self,
        brand: BrandIdentity,
        count: int = DEFAULT_GENERATED_COUNT,
        *,
        platform: Optional[str] = None,
    ) -> QueryGenerationResult:
        """Generate monitoring queries with one of the registered platforms."""
        return await self.catalog.generate(brand, self.registry.get(platform or self._generation_platform()), count)

    def _generation_platform(self) -> str:
        for platform_id in GENERATION_PLATFORM_PREFERENCE:
            if platform_id in self.registry:
                return platform_id
        if not len(self.registry):
            raise BrandMonitorError("No platforms registered", error_code="no_platforms")
        return self.registry.platform_ids[0]

    async def aclose(self) -> None:
        await self.registry.aclose()

    async def __aenter__(self) -> "BrandMonitor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.aclose()


__all__ = ["BrandMonitor", "GENERATION_PLATFORM_PREFERENCE"]
