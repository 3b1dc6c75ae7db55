"""Command line interface for BrandMonitor."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import PLATFORM_ENV, load_app_config
from .core import (
    AppConfig,
    BrandIdentity,
    BrandMonitorError,
    ConfigurationError,
    MonitoringResult,
    QuotaExceededError,
    get_user_friendly_message,
)
from .monitor import BrandMonitor
from .platforms.registry import ADAPTER_TYPES, AdapterRegistry
from .queries import QueryGenerationResult
from .utils import JSONFormatter, RichFormatter, configure_logging, get_logger

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
console = Console()


def _resolve_env_file(config_file: Optional[str]) -> Optional[str]:
    if not config_file:
        return None
    path = Path(config_file)
    if path.is_dir():
        raise click.ClickException("Configuration file path must point to a file, not a directory.")
    return str(path)


def _get_logger(ctx: click.Context) -> logging.Logger:
    logger = ctx.obj.get("logger")
    if logger is None:
        logger = get_logger(__name__)
        ctx.obj["logger"] = logger
    return logger


def _load_config(ctx: click.Context) -> AppConfig:
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = load_app_config(env_file=ctx.obj.get("config_file"))
        except ConfigurationError as exc:
            _get_logger(ctx).error("Configuration loading failed", exc_info=exc)
            raise click.ClickException(f"Configuration error: {exc}") from exc
    return ctx.obj["config"]


def _build_monitor(ctx: click.Context) -> BrandMonitor:
    config = _load_config(ctx)
    registry: Optional[AdapterRegistry] = ctx.obj.get("registry")
    return BrandMonitor.from_config(config, registry=registry)


def _build_brand(
    name: str,
    domain: Optional[str],
    industry: Optional[str],
    description: Optional[str] = None,
) -> BrandIdentity:
    try:
        return BrandIdentity(name=name, domain=domain, industry=industry, description=description)
    except ValidationError as exc:
        raise click.BadParameter(str(exc), param_hint="BRAND") from exc


def _parse_variables(pairs: Tuple[str, ...]) -> Dict[str, str]:
    variables: Dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected NAME=VALUE, got '{pair}'", param_hint="--var")
        variables[name.strip()] = value.strip()
    return variables


async def _run_monitor(
    monitor: BrandMonitor,
    tenant: str,
    brand: BrandIdentity,
    queries: Optional[Sequence[str]],
    platforms: Optional[Sequence[str]],
    timeout: Optional[float],
) -> MonitoringResult:
    async with monitor:
        return await monitor.monitor(tenant, brand, queries, platforms, timeout=timeout)


async def _run_generation(
    monitor: BrandMonitor,
    brand: BrandIdentity,
    count: int,
    platform: Optional[str],
) -> QueryGenerationResult:
    async with monitor:
        return await monitor.generate_queries(brand, count, platform=platform)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config-file",
    type=click.Path(path_type=str, dir_okay=False, resolve_path=True),
    default=None,
    help="Optional path to a .env file that should be loaded before running commands.",
)
@click.option(
    "--log-level",
    type=click.Choice(["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level to use for this invocation.",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=str, dir_okay=False),
    default=None,
    help="Write logs to this file in addition to stderr.",
)
@click.version_option(__version__, prog_name="BrandMonitor")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: str, log_file: Optional[str]) -> None:
    """BrandMonitor command-line interface."""

    ctx.ensure_object(dict)
    ctx.obj["config_file"] = _resolve_env_file(config_file)

    configure_logging(level=log_level, log_file=log_file, force=True)
    _get_logger(ctx).debug("Starting BrandMonitor CLI", extra={"config_file": ctx.obj["config_file"]})


@cli.command(name="validate-config")
@click.pass_context
def validate_config(ctx: click.Context) -> None:
    """Validate BrandMonitor environment configuration."""

    config = _load_config(ctx)
    console.print(Panel.fit("Configuration validated successfully", border_style="green"))
    console.print(
        f"Enabled platforms: [bold]{', '.join(config.api.enabled_platforms)}[/bold]\n"
        f"Default tenant tier: [bold]{config.governor.default_tier}[/bold]"
    )
    _get_logger(ctx).info("Configuration validation succeeded")


@cli.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Display active configuration summary (without secrets)."""

    config = _load_config(ctx)
    timeout = config.platform_timeout_seconds
    console.print(
        Panel(
            f"Enabled platforms: [cyan]{', '.join(config.api.enabled_platforms)}[/cyan]\n"
            f"HTTP timeout: [cyan]{config.api.request_timeout_seconds:g}s[/cyan]\n"
            f"Per-call timeout: [cyan]{f'{timeout:g}s' if timeout else 'none'}[/cyan]\n"
            f"Max output tokens: [cyan]{config.api.max_output_tokens}[/cyan]\n"
            f"Max queries per run: [cyan]{config.max_queries_per_run}[/cyan]\n"
            f"Query cache TTL: [cyan]{config.query_cache_ttl_seconds}s[/cyan]\n"
            f"Default tenant tier: [cyan]{config.governor.default_tier}[/cyan]",
            title="BrandMonitor Configuration",
        )
    )


@cli.command(name="platforms")
@click.pass_context
def platforms_command(ctx: click.Context) -> None:
    """List supported platforms and whether each is configured."""

    config = _load_config(ctx)
    table = Table(title="Platforms")
    table.add_column("Platform", style="bold cyan")
    table.add_column("Name")
    table.add_column("Model")
    table.add_column("API key variable")
    table.add_column("Enabled", justify="center")

    for platform_id, adapter_type in ADAPTER_TYPES.items():
        credentials = config.api.platforms.get(platform_id)
        model = (credentials.model if credentials else None) or adapter_type.default_model
        enabled = "[green]yes[/green]" if credentials else "[dim]no[/dim]"
        table.add_row(platform_id, adapter_type.display_name, model, PLATFORM_ENV[platform_id][0], enabled)
    console.print(table)


@cli.command(name="queries")
@click.argument("brand_name")
@click.option("--industry", default=None, help="Industry used to phrase category queries.")
@click.option("--domain", default=None, help="Brand website domain (e.g. acme.com).")
@click.option("--description", default=None, help="Short brand description for query generation.")
@click.option("--curated", is_flag=True, default=False, help="Render the curated industry prompt templates.")
@click.option("--var", "variables", multiple=True, metavar="NAME=VALUE", help="Template variable for --curated; repeat for several.")
@click.option("--generate", is_flag=True, default=False, help="Ask a platform to generate queries instead of using templates.")
@click.option("--count", type=int, default=30, show_default=True, help="Number of queries to generate.")
@click.option("--platform", "generation_platform", default=None, help="Platform used for generation.")
@click.pass_context
def queries_command(
    ctx: click.Context,
    brand_name: str,
    industry: Optional[str],
    domain: Optional[str],
    description: Optional[str],
    curated: bool,
    variables: Tuple[str, ...],
    generate: bool,
    count: int,
    generation_platform: Optional[str],
) -> None:
    """Show the monitoring queries for a brand."""

    if count <= 0:
        raise click.BadParameter("--count must be greater than 0")
    brand = _build_brand(brand_name, domain, industry, description)
    monitor = _build_monitor(ctx)

    table = Table(title=f"Monitoring queries for {brand.name}")
    table.add_column("#", justify="right")
    table.add_column("Query", no_wrap=False)

    if curated:
        rendered = monitor.catalog.curated_queries(brand, _parse_variables(variables))
        for index, query in enumerate(rendered, start=1):
            table.add_row(str(index), query)
        console.print(table)
        return

    if not generate:
        for index, query in enumerate(monitor.resolve_queries(brand), start=1):
            table.add_row(str(index), query)
        console.print(table)
        return

    try:
        result = asyncio.run(_run_generation(monitor, brand, count, generation_platform))
    except BrandMonitorError as exc:
        _get_logger(ctx).error("Query generation failed", exc_info=exc)
        raise click.ClickException(f"Query generation failed: {exc}") from exc

    table.add_column("Category")
    table.add_column("Intent")
    for index, item in enumerate(result.queries, start=1):
        table.add_row(str(index), item.query, item.category, item.intent)
    console.print(table)
    source = "cache" if result.cached else f"${result.total_cost_usd:.4f}"
    console.print(f"{len(result.queries)} queries ({source})", style="bold")


@cli.command(name="monitor")
@click.argument("brand_name")
@click.option("--query", "queries", multiple=True, help="Query to test; repeat for several. Defaults to template queries.")
@click.option("--platform", "platforms", multiple=True, help="Platform id to query; repeat for several. Defaults to all enabled.")
@click.option("--industry", default=None, help="Industry used to phrase template queries.")
@click.option("--domain", default=None, help="Brand website domain (e.g. acme.com).")
@click.option("--tenant", default="cli", show_default=True, help="Tenant id charged for the run.")
@click.option("--timeout", type=float, default=None, help="Per-call timeout in seconds.")
@click.option("--format", "output_format", type=click.Choice(["rich", "json"], case_sensitive=False), default="rich", show_default=True)
@click.option("--output", type=click.Path(path_type=str, dir_okay=False), default=None, help="Also write the JSON record to this file.")
@click.pass_context
def monitor_command(
    ctx: click.Context,
    brand_name: str,
    queries: Tuple[str, ...],
    platforms: Tuple[str, ...],
    industry: Optional[str],
    domain: Optional[str],
    tenant: str,
    timeout: Optional[float],
    output_format: str,
    output: Optional[str],
) -> None:
    """Run a monitoring pass for BRAND_NAME and report its visibility."""

    logger = _get_logger(ctx)
    if timeout is not None and timeout <= 0:
        raise click.BadParameter("--timeout must be greater than 0")

    brand = _build_brand(brand_name, domain, industry)
    monitor = _build_monitor(ctx)
    as_json = output_format.lower() == "json"

    try:
        if as_json:
            result = asyncio.run(_run_monitor(monitor, tenant, brand, queries or None, platforms or None, timeout))
        else:
            with console.status("[bold green]Querying platforms..."):
                result = asyncio.run(_run_monitor(monitor, tenant, brand, queries or None, platforms or None, timeout))
    except QuotaExceededError as exc:
        logger.warning("Monitoring run denied by usage governor", extra={"tenant_id": tenant})
        raise click.ClickException(f"{exc.user_message} Retry in {exc.retry_after_seconds}s.") from exc
    except BrandMonitorError as exc:
        logger.error("Monitoring run failed", exc_info=exc)
        raise click.ClickException(f"Monitoring failed: {get_user_friendly_message(exc)}") from exc

    if output:
        result.to_json_file(output)

    if as_json:
        click.echo(JSONFormatter.format_result(result))
    else:
        formatter = RichFormatter(console)
        formatter.display_result(result)
        console.print(formatter.format_usage_table(monitor.governor.get_usage_stats(tenant)))
        if output:
            console.print(f"Saved record to [bold]{output}[/bold]")

    logger.info(
        "Monitoring command completed",
        extra={
            "brand_name": brand.name,
            "visibility_score": result.visibility_score,
            "total_cost_usd": result.total_cost_usd,
        },
    )


def main() -> None:
    cli(obj={})


__all__ = ["cli", "main"]
