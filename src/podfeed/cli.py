"""CLI entry point for podfeed."""

import asyncio
import logging
import signal
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from podfeed.config.logging import LOGGER_NAME, setup_logging
from podfeed.config.manager import ConfigManager
from podfeed.config.schema import GeneratorConfig
from podfeed.feeds.models import ProcessOutcome, ProcessResult
from podfeed.pipeline import FeedGenerationService, RefreshScheduler
from podfeed.upstream.client import ApiClient
from podfeed.utils.errors import ConfigError, PodfeedError

app = typer.Typer(
    name="podfeed",
    help="Generate podcast RSS feeds from the DR radio catalog",
    no_args_is_help=True,
)
console = Console()

OUTCOME_STYLES = {
    ProcessOutcome.DONE: "[green]generated[/green]",
    ProcessOutcome.SKIPPED: "[dim]unchanged[/dim]",
    ProcessOutcome.FAILED: "[red]failed[/red]",
}


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"
    ),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file"
    ),
) -> None:
    """podfeed - Podcast RSS feeds from the DR radio catalog."""
    # Initialize logging before any command runs
    setup_logging(verbose=verbose, log_file=log_file)
    ctx.obj = {"verbose": verbose}


def _load_config(
    ctx: typer.Context, config_file: Path | None
) -> tuple[ConfigManager, GeneratorConfig]:
    manager = ConfigManager(config_file=config_file)
    try:
        config = manager.load_config()
    except ConfigError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        sys.exit(1)

    if not (ctx.obj or {}).get("verbose"):
        logging.getLogger(LOGGER_NAME).setLevel(config.log_level)
    return manager, config


def _api_client(config: GeneratorConfig) -> ApiClient:
    return ApiClient(
        api_key=config.api_key,
        api_base_url=config.api_base_url,
        timeout_seconds=config.request_timeout_seconds,
        retry_config=config.retry_config,
    )


def _results_table(config: GeneratorConfig, results: list[ProcessResult]) -> Table:
    table = Table(title="Podcast Feeds", show_header=True, header_style="bold magenta")
    table.add_column("Slug", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Status", no_wrap=True)
    table.add_column("Feed URL", style="blue")

    for result in results:
        if result.metadata is not None:
            title = escape(result.metadata.title)
            url = config.feed_url(result.slug)
        else:
            title = f"[dim]{escape(result.error or '')}[/dim]"
            url = "[dim]-[/dim]"
        table.add_row(result.slug, title, OUTCOME_STYLES[result.outcome], url)

    return table


@app.command("version")
def show_version() -> None:
    """Show version information."""
    from podfeed import __version__

    console.print(f"[bold cyan]podfeed[/bold cyan] v{__version__}")


@app.command("generate")
def generate(
    ctx: typer.Context,
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="YAML config file"
    ),
) -> None:
    """Run one generation cycle over all configured podcasts.

    Examples:
        podfeed generate

        API_KEY=secret OUTPUT_DIR=site podfeed generate --config podfeed.yaml
    """
    manager, config = _load_config(ctx, config_file)

    async def run_generation() -> list[ProcessResult]:
        async with _api_client(config) as client:
            service = FeedGenerationService(config, client, config_manager=manager)
            await service.run_cycle()
            return service.last_results

    try:
        results = asyncio.run(run_generation())
    except ConfigError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        sys.exit(1)
    except PodfeedError as e:
        console.print(f"[red]✗[/red] Error: {escape(str(e))}")
        sys.exit(1)

    if not results:
        console.print("[yellow]No podcasts configured.[/yellow]")
        return

    console.print(_results_table(config, results))
    failed = sum(1 for result in results if result.outcome == ProcessOutcome.FAILED)
    console.print(
        f"\n[bold]Total:[/bold] {len(results)} podcast(s), "
        f"{len(results) - failed} ok, {failed} failed"
    )


@app.command("serve")
def serve(
    ctx: typer.Context,
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="YAML config file"
    ),
) -> None:
    """Keep feeds fresh, refreshing on an interval until interrupted.

    The podcast list is re-read every cycle. A cycle that can't load it
    counts as a failed cycle and is retried with backoff.
    """
    manager, config = _load_config(ctx, config_file)

    async def run_scheduler() -> None:
        async with _api_client(config) as client:
            service = FeedGenerationService(config, client, config_manager=manager)
            scheduler = RefreshScheduler(
                service.run_cycle,
                interval_seconds=config.refresh_interval_minutes * 60,
                max_backoff_seconds=config.max_backoff_minutes * 60,
                failure_threshold=config.failure_threshold,
            )

            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, scheduler.stop)

            await scheduler.run()

    console.print(
        f"[bold]Serving feeds[/bold] to {config.feeds_dir} "
        f"every {config.refresh_interval_minutes} min (Ctrl+C to stop)"
    )
    asyncio.run(run_scheduler())


if __name__ == "__main__":
    app()
