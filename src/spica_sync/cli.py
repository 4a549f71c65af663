"""Command-line interface for Spica Sync."""

import asyncio
import uuid
from datetime import datetime
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.panel import Panel

from .api.client import InstanceClient
from .config import SyncConfig
from .execution.orchestrator import SyncOrchestrator
from .models.results import SyncRunResult
from .observability import (
    ReportGenerator,
    RichProgressReporter,
    configure_logging,
    get_global_collector,
)
from .synchronizers.registry import available_modules, parse_modules, validate_modules
from .utils.exceptions import SyncError

app = typer.Typer(
    name="spica-sync",
    help="Synchronize module objects between two Spica instances",
    add_completion=False,
)

console = Console()
logger = structlog.get_logger(__name__)


@app.command()
def sync(
    modules: str = typer.Option(
        ...,
        "--modules",
        "-m",
        help=f"Comma separated module names. Available modules: {','.join(available_modules())}",
    ),
    source_url: str | None = typer.Option(
        None, "--source-url", help="API address of the instance objects are synchronized from"
    ),
    source_apikey: str | None = typer.Option(
        None, "--source-apikey", help="API key of the instance objects are synchronized from"
    ),
    target_url: str | None = typer.Option(
        None, "--target-url", help="API address of the instance objects are synchronized to"
    ),
    target_apikey: str | None = typer.Option(
        None, "--target-apikey", help="API key of the instance objects are synchronized to"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show the changes that would be applied to the target instance"
    ),
    sync_fn_env: bool = typer.Option(
        False, "--sync-fn-env", help="Synchronize function environment variables as well"
    ),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    report_file: Path | None = typer.Option(
        None, "--report", help="Write a JSON report of the run to this path"
    ),
    max_concurrency: int | None = typer.Option(
        None, "--max-concurrency", min=1, help="Maximum in-flight calls per apply phase"
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Logging level: DEBUG, INFO, WARNING, ERROR"
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Write logs as JSON lines"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """
    Synchronize selected module objects from a source to a target instance.

    ATTENTION: inserting, overwriting and removing objects on the target
    instance is irreversible. Run with --dry-run first and check the changes.

    Examples:
        spica-sync sync --modules function,bucket --dry-run
        spica-sync sync --modules bucket-data --config instances.yaml --yes
    """
    try:
        if config_file:
            config = SyncConfig.from_file(config_file)
        else:
            config = SyncConfig.from_env()
        config = config.with_overrides(
            source_url=source_url,
            source_apikey=source_apikey,
            target_url=target_url,
            target_apikey=target_apikey,
            sync_function_env=sync_fn_env or None,
            max_concurrent_operations=max_concurrency,
        )
        source, target = config.require_instances()
        names = validate_modules(parse_modules(modules))
    except SyncError as e:
        console.print(f"\n[bold red]ERROR:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    configure_logging(
        level=log_level or config.logging.level,
        json_logs=json_logs or config.logging.format == "json",
        log_file=config.logging.file,
    )

    session_id = str(uuid.uuid4())[:8]

    console.print(
        Panel.fit(
            f"[bold blue]Spica Sync[/bold blue]\n\n"
            f"Session ID: [cyan]{session_id}[/cyan]\n"
            f"Source: {source.url}\n"
            f"Target: {target.url}\n"
            f"Modules: {', '.join(names)}\n"
            f"Mode: [yellow]{'DRY RUN' if dry_run else 'EXECUTE'}[/yellow]\n"
            f"Function env: {'synchronized' if config.policy.sync_function_env else 'kept'}",
            border_style="blue",
        )
    )

    if dry_run:
        console.print("[yellow]WARNING: DRY RUN MODE - No changes will be made[/yellow]\n")
    elif not yes:
        if not typer.confirm(
            "This will insert, overwrite and remove objects on the target instance. Continue?"
        ):
            console.print("[yellow]Aborted.[/yellow]")
            raise typer.Exit()

    async def run_sync() -> SyncRunResult:
        async with (
            InstanceClient(source, name="source") as source_client,
            InstanceClient(target, name="target") as target_client,
        ):
            orchestrator = SyncOrchestrator(source_client, target_client, config.policy, console)
            if dry_run:
                return await orchestrator.run(names, dry_run=True)
            with RichProgressReporter(console) as reporter:
                return await orchestrator.run(names, reporter=reporter)

    start_time = datetime.now()
    try:
        result = asyncio.run(run_sync())
    except SyncError as e:
        logger.error("Synchronization aborted", error=str(e))
        console.print(f"\n[bold red]ERROR:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    generator = ReportGenerator()
    report = generator.generate_report(
        session_id=session_id,
        start_time=start_time,
        end_time=datetime.now(),
        result=result,
        metrics=get_global_collector().get_summary(),
    )
    generator.print_summary(report, console)

    if report_file:
        generator.write_json_report(report, report_file)
        console.print(f"\nReport: [cyan]{report_file}[/cyan]")


@app.command()
def modules() -> None:
    """List the module names accepted by --modules."""
    for name in available_modules():
        console.print(name)


if __name__ == "__main__":
    app()
