"""
Output formatters for monitoring runs.

``RichFormatter`` renders a run as terminal panels and tables; ``JSONFormatter``
produces the machine-readable record and a compact summary.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.models import MentionResult, MonitoringResult, PlatformAggregate, Sentiment


class ScoreBand(Enum):
    """Bands used to colour 0-100 scores."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @property
    def color(self) -> str:
        return _BAND_COLORS[self]


_BAND_COLORS = {
    ScoreBand.EXCELLENT: "green",
    ScoreBand.GOOD: "blue",
    ScoreBand.FAIR: "yellow",
    ScoreBand.POOR: "red",
}

_SENTIMENT_COLORS = {
    Sentiment.POSITIVE: "green",
    Sentiment.NEUTRAL: "white",
    Sentiment.NEGATIVE: "red",
}


def score_band(score: float) -> ScoreBand:
    if score >= 75:
        return ScoreBand.EXCELLENT
    if score >= 50:
        return ScoreBand.GOOD
    if score >= 25:
        return ScoreBand.FAIR
    return ScoreBand.POOR


def _truncate(value: str, limit: int) -> str:
    return value if len(value) <= limit else value[: limit - 3] + "..."


class JSONFormatter:
    DEFAULT_INDENT = 2

    @classmethod
    def format_result(cls, result: MonitoringResult, indent: Optional[int] = None) -> str:
        return json.dumps(
            result.to_record(),
            indent=indent or cls.DEFAULT_INDENT,
            ensure_ascii=False,
        )

    @classmethod
    def format_summary(cls, result: MonitoringResult) -> str:
        summary = {
            "brand": result.brand_name,
            "visibility_score": result.visibility_score,
            "queries_tested": result.queries_tested,
            "platforms": result.platforms,
            "total_mentions": result.total_mentions,
            "failed_calls": result.failed_calls,
            "total_cost_usd": result.total_cost_usd,
            "timestamp": result.timestamp.isoformat(),
        }
        return json.dumps(summary, indent=cls.DEFAULT_INDENT)


class RichFormatter:
    """Terminal rendering for monitoring runs and governor usage."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    @staticmethod
    def format_currency(value: float) -> str:
        return f"${value:.4f}"

    def format_overview(self, result: MonitoringResult) -> Panel:
        band = score_band(result.visibility_score)
        text = Text()
        text.append("Brand: ", style="bold")
        text.append(f"{result.brand_name}\n", style="cyan")
        text.append("Visibility Score: ", style="bold")
        text.append(f"{result.visibility_score}/100 ({band.value})\n", style=band.color)
        text.append("Mentions: ", style="bold")
        text.append(f"{result.total_mentions} of {len(result.mention_results)} responses\n")
        text.append("Failed Calls: ", style="bold")
        text.append(f"{result.failed_calls}\n", style="red" if result.failed_calls else "green")
        domain_citations = sum(1 for item in result.mention_results if item.brand_citation)
        if domain_citations:
            text.append("Own-Domain Citations: ", style="bold")
            text.append(f"{domain_citations}\n", style="green")
        text.append("Cost: ", style="bold")
        text.append(self.format_currency(result.total_cost_usd))
        return Panel(text, title="[bold]Monitoring Overview[/bold]", border_style="blue")

    def format_platform_table(self, aggregates: List[PlatformAggregate]) -> Table:
        table = Table(title="Platforms")
        table.add_column("Platform", style="bold cyan")
        table.add_column("Mention Rate", justify="right")
        table.add_column("Avg Prominence", justify="right")
        table.add_column("Sentiment", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Cost", justify="right", style="yellow")

        for aggregate in aggregates:
            band = score_band(aggregate.mention_rate)
            table.add_row(
                aggregate.platform_id,
                f"[{band.color}]{aggregate.mention_rate:.1f}%[/{band.color}]",
                f"{aggregate.avg_prominence:.1f}",
                f"{aggregate.avg_sentiment_score:+.2f}",
                str(aggregate.failed_calls),
                self.format_currency(aggregate.total_cost_usd),
            )
        return table

    def format_mentions_table(self, results: List[MentionResult]) -> Table:
        table = Table(title="Responses")
        table.add_column("Platform", style="cyan")
        table.add_column("Query", no_wrap=False, max_width=40)
        table.add_column("Mentioned", justify="center")
        table.add_column("Prominence", justify="right")
        table.add_column("Sentiment")
        table.add_column("Context", no_wrap=False, max_width=60)

        for result in results:
            if result.failed:
                mentioned = f"[red]error: {result.error}[/red]"
            else:
                mentioned = "[green]yes[/green]" if result.mentioned else "[yellow]no[/yellow]"
            color = _SENTIMENT_COLORS[result.sentiment]
            table.add_row(
                result.platform_id,
                result.query,
                mentioned,
                str(result.prominence_score),
                f"[{color}]{result.sentiment.value}[/{color}]",
                _truncate(result.context_snippet, 160),
            )
        return table

    def format_usage_table(self, stats: Mapping[str, Any]) -> Table:
        usage: Dict[str, Any] = dict(stats.get("usage", {}))
        table = Table(title=f"Usage ({stats.get('tier', 'unknown')} tier)")
        table.add_column("Window", style="bold")
        table.add_column("Used", justify="right")
        table.add_column("Limit", justify="right")
        table.add_column("Percent", justify="right")

        for window in ("hourly", "daily"):
            entry = usage.get(window, {})
            table.add_row(window, str(entry.get("count", 0)), str(entry.get("limit", "-")),
                          f"{entry.get('percentage', 0.0):.1f}%")
        cost = usage.get("cost", {})
        table.add_row(
            "daily cost",
            self.format_currency(cost.get("total", 0.0)),
            self.format_currency(cost.get("limit", 0.0)),
            f"{cost.get('percentage', 0.0):.1f}%",
        )
        concurrent = usage.get("concurrent", {})
        table.add_row("concurrent", str(concurrent.get("active", 0)), str(concurrent.get("limit", "-")), "")
        return table

    def display_result(self, result: MonitoringResult, *, show_responses: bool = True) -> None:
        self.console.print(self.format_overview(result))
        self.console.print()
        if result.platform_aggregates:
            self.console.print(self.format_platform_table(result.platform_aggregates))
            self.console.print()
        if show_responses and result.mention_results:
            self.console.print(self.format_mentions_table(result.mention_results))

        citations = sorted({url for item in result.mention_results for url in item.citations})
        if citations:
            self.console.print()
            self.console.print(
                Panel("\n".join(citations), title="[blue]Cited Sources[/blue]", border_style="blue")
            )


__all__ = ["JSONFormatter", "RichFormatter", "ScoreBand", "score_band"]
