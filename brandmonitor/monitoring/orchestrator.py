"""Query orchestration: fan every query out to every platform concurrently."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ..core.exceptions import BrandMonitorError, MentionAnalysisError
from ..core.models import MentionResult, MonitoringResult
from ..extraction.citation_extractor import find_domain_citation
from ..extraction.mention_analyzer import MentionAnalysis, analyze_mention
from ..platforms.base import PlatformAdapter
from ..platforms.registry import AdapterRegistry
from .scoring import build_monitoring_result

LOGGER = logging.getLogger(__name__)

Analyzer = Callable[[str, str, Optional[str]], MentionAnalysis]

TIMEOUT_ERROR_CODE = "timeout"


@dataclass(frozen=True)
class MonitoringTask:
    """One cell of the (query x platform) matrix."""

    query: str
    platform_id: str


class MonitoringOrchestrator:
    """Run a brand's queries against a set of platforms and score the answers.

    No single task can fail a run: every adapter call goes through
    :meth:`_run_task`, which turns any error into a degraded, zero-cost
    :class:`MentionResult`. A run therefore always yields exactly
    ``len(queries) * len(platforms)`` results, in submission order.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        *,
        analyzer: Analyzer = analyze_mention,
        default_timeout: Optional[float] = None,
    ) -> None:
        self._registry = registry
        self._analyzer = analyzer
        self._default_timeout = default_timeout

    @property
    def registry(self) -> AdapterRegistry:
        return self._registry

    @staticmethod
    def build_tasks(queries: Sequence[str], platforms: Sequence[str]) -> List[MonitoringTask]:
        return [MonitoringTask(query=query, platform_id=platform_id) for query in queries for platform_id in platforms]

    async def run(
        self,
        brand_name: str,
        queries: Sequence[str],
        platforms: Sequence[str],
        *,
        timeout: Optional[float] = None,
        domain: Optional[str] = None,
    ) -> MonitoringResult:
        """Dispatch the full task matrix and return the scored run.

        Args:
            brand_name: Brand searched for in each response
            queries: Prompts to send, in display order
            platforms: Platform ids to query; each must be registered. A
                repeated id is dispatched once per occurrence
            timeout: Per-call timeout in seconds; falls back to the
                orchestrator default, and ``None`` waits indefinitely
            domain: Brand website domain; a cited URL on it is recorded
                as the result's ``brand_citation``

        Raises:
            MentionAnalysisError: The brand name is empty
            UnknownPlatformError: A platform id has no registered adapter
        """

        if not brand_name or not brand_name.strip():
            raise MentionAnalysisError("Brand name cannot be empty")

        platform_ids = list(platforms)
        adapters = {platform_id: self._registry.get(platform_id) for platform_id in platform_ids}
        query_list = list(queries)
        call_timeout = timeout if timeout is not None else self._default_timeout

        tasks = self.build_tasks(query_list, platform_ids)
        LOGGER.info(
            "Starting monitoring run",
            extra={
                "brand_name": brand_name,
                "queries": len(query_list),
                "platforms": platform_ids,
                "tasks": len(tasks),
                "call_timeout": call_timeout,
            },
        )

        started_at = time.perf_counter()
        results = await asyncio.gather(
            *(self._run_task(adapters[task.platform_id], task, brand_name, call_timeout, domain) for task in tasks)
        )
        run_result = build_monitoring_result(brand_name, query_list, platform_ids, results)

        LOGGER.info(
            "Monitoring run complete",
            extra={
                "brand_name": brand_name,
                "visibility_score": run_result.visibility_score,
                "total_mentions": run_result.total_mentions,
                "failed_calls": run_result.failed_calls,
                "total_cost_usd": run_result.total_cost_usd,
                "elapsed_ms": round((time.perf_counter() - started_at) * 1000, 3),
            },
        )
        return run_result

    async def _run_task(
        self,
        adapter: PlatformAdapter,
        task: MonitoringTask,
        brand_name: str,
        timeout: Optional[float],
        domain: Optional[str] = None,
    ) -> MentionResult:
        try:
            if timeout is None:
                response = await adapter.generate(task.query)
            else:
                response = await asyncio.wait_for(adapter.generate(task.query), timeout=timeout)
            analysis = self._analyzer(response.text, brand_name, domain)
            return MentionResult(
                platform_id=task.platform_id,
                query=task.query,
                mentioned=analysis.mentioned,
                prominence_score=analysis.prominence_score,
                sentiment=analysis.sentiment,
                context_snippet=analysis.context_snippet,
                position=analysis.position,
                cost_usd=response.usage.cost_usd,
                citations=response.citations,
                model=response.model,
                brand_citation=analysis.brand_citation or find_domain_citation(response.citations, domain),
            )
        except asyncio.TimeoutError:
            LOGGER.warning(
                "Platform call timed out; recording degraded result",
                extra={"platform": task.platform_id, "query": task.query, "call_timeout": timeout},
            )
            return MentionResult.degraded(task.platform_id, task.query, TIMEOUT_ERROR_CODE)
        except BrandMonitorError as exc:
            LOGGER.warning(
                "Platform call failed; recording degraded result",
                extra={"platform": task.platform_id, "query": task.query, "error_code": exc.error_code},
            )
            return MentionResult.degraded(task.platform_id, task.query, exc.error_code)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.error(
                "Unexpected error in platform call; recording degraded result",
                exc_info=exc,
                extra={"platform": task.platform_id, "query": task.query},
            )
            return MentionResult.degraded(task.platform_id, task.query, type(exc).__name__)


__all__ = ["MonitoringOrchestrator", "MonitoringTask", "TIMEOUT_ERROR_CODE"]
