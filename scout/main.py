"""
Main application entry point for Scout.

Provides a CLI for serving the HTTP API and for running scrape, research and
CSV analysis jobs directly from a terminal.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from scout.core.config import get_settings
from scout.core.exceptions import ScoutError
from scout.core.logging import set_correlation_id, setup_logging
from scout.core.models import Stage, StageRequest
from scout.services.research_service import ResearchService

console = Console()


def _run(ctx, operation):
    """Run one service coroutine factory, closing the service afterwards."""
    service = ResearchService(get_settings())

    async def runner():
        try:
            return await operation(service)
        finally:
            await service.aclose()

    try:
        return asyncio.run(runner())
    except ScoutError as e:
        console.print(f"[red]{e.error_label}:[/red] {e.message}")
        if ctx.obj and ctx.obj.get("debug"):
            import traceback

            console.print(traceback.format_exc())
        sys.exit(1)


def _emit(payload) -> None:
    click.echo(json.dumps(payload, indent=2))


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.option("--correlation-id", help="Set correlation ID for request tracing")
@click.pass_context
def main(ctx, debug: bool, json_logs: bool, correlation_id: Optional[str]):
    """Stage-aware market research for early-stage products.

    Scrapes competitor websites, segments customer CSV exports and
    synthesises ICP, market sizing and go-to-market research.
    """
    ctx.ensure_object(dict)

    settings = get_settings()
    setup_logging(debug=debug or settings.debug, json_output=json_logs or settings.log_json)

    if correlation_id:
        set_correlation_id(correlation_id)

    ctx.obj["debug"] = debug


@main.command()
@click.option("--host", help="Bind address (default from SCOUT_HOST)")
@click.option("--port", type=int, help="Bind port (default from SCOUT_PORT)")
def serve(host: Optional[str], port: Optional[int]):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from scout.api.app import build_app

    settings = get_settings()
    if not settings.has_llm_credential:
        console.print("[yellow]OPENAI_API_KEY is not set; LLM endpoints will return errors[/yellow]")

    uvicorn.run(
        build_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        reload=False,
    )


@main.command()
@click.argument("product")
@click.option(
    "--stage",
    type=click.Choice([s.value for s in Stage]),
    required=True,
    help="Startup stage that selects the research prompt",
)
@click.option("--competitor", "competitors", multiple=True, help="Competitor URL (repeatable)")
@click.option("--target-market", help="Target market description")
@click.option("--customer-patterns", help="Early customer patterns (early-stage runs)")
@click.option(
    "--csv",
    "csv_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Customer CSV to segment first (post-revenue and scale-up runs)",
)
@click.pass_context
def research(
    ctx,
    product: str,
    stage: str,
    competitors: Tuple[str, ...],
    target_market: Optional[str],
    customer_patterns: Optional[str],
    csv_path: Optional[Path],
):
    """Run a full research pass and print the results as JSON."""

    async def operation(service: ResearchService):
        csv_analysis = None
        if csv_path is not None:
            envelope = await service.analyze_csv(csv_path.read_text(encoding="utf-8"))
            csv_analysis = envelope.to_wire()["analysis"]

        request = StageRequest(
            product=product,
            stage=Stage(stage),
            target_market=target_market,
            competitors=list(competitors),
            additional_context=(
                {"customerPatterns": customer_patterns} if customer_patterns else None
            ),
            csv_analysis=csv_analysis,
        )
        return await service.research(request)

    results = _run(ctx, operation)
    _emit({"success": True, "results": results.to_wire()})


@main.command()
@click.argument("url")
@click.pass_context
def scrape(ctx, url: str):
    """Scrape one competitor website and print the extraction."""
    result = _run(ctx, lambda service: service.scrape_competitor(url))
    _emit(result.to_wire())
    if not result.success:
        sys.exit(1)


@main.command("analyze-csv")
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def analyze_csv(ctx, csv_path: Path):
    """Segment a customer CSV export."""
    text = csv_path.read_text(encoding="utf-8")
    envelope = _run(ctx, lambda service: service.analyze_csv(text))
    _emit(envelope.to_wire())


@main.command()
def config():
    """Display current configuration."""
    settings = get_settings()

    table = Table(title="Scout Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("LLM credential", "[green]set[/green]" if settings.has_llm_credential else "[red]missing[/red]")
    table.add_row("LLM model", settings.llm_model)
    table.add_row("Fetch timeout", f"{settings.fetch_timeout:g}s")
    table.add_row("Content cap", f"{settings.max_content_chars:,} chars")
    table.add_row("Max competitors", str(settings.max_competitors))
    table.add_row("CSV context rows", str(settings.csv_context_rows))
    table.add_row("Bind", f"{settings.host}:{settings.port}")

    console.print(table)
    sys.exit(0 if settings.has_llm_credential else 1)


if __name__ == "__main__":
    main()
