"""Sync Report Generator.

Turns a SyncRunResult into a structured report that can be printed as a
summary table or written as JSON.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog
from rich.console import Console
from rich.table import Table

from ..models.operations import APPLY_PHASES
from ..models.results import SyncRunResult

logger = structlog.get_logger(__name__)

# Failures listed on the console before the rest is summarized
MAX_PRINTED_FAILURES = 20


@dataclass
class SyncReport:
    """
    Structured report data for a synchronization run.

    Attributes:
        session_id: Run identifier
        status: Final status (completed, completed_with_failures)
        start_time: Start timestamp
        end_time: End timestamp
        duration_seconds: Total duration
        dry_run: Whether it was a dry run
        modules: Requested module names
        synchronizers: Number of synchronizers that ran
        planned: Diffed resources per action
        applied: Successful remote calls per action (always zero for dry runs)
        failures: Attributable failure records
        metrics: Metrics collector summary
    """

    session_id: str
    status: str
    start_time: str
    end_time: str
    duration_seconds: float
    dry_run: bool
    modules: list[str]
    synchronizers: int
    planned: dict[str, int] = field(default_factory=dict)
    applied: dict[str, int] = field(default_factory=dict)
    failures: list[dict[str, str]] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)


class ReportGenerator:
    """Generate reports for synchronization runs."""

    def generate_report(
        self,
        session_id: str,
        start_time: datetime,
        end_time: datetime,
        result: SyncRunResult,
        metrics: dict[str, Any] | None = None,
    ) -> SyncReport:
        """
        Generate report object from a run result.

        Args:
            session_id: Run identifier
            start_time: Start timestamp
            end_time: End timestamp
            result: Outcome of the orchestrator run
            metrics: Metrics collector summary

        Returns:
            SyncReport object
        """
        return SyncReport(
            session_id=session_id,
            status=result.status.value,
            start_time=start_time.isoformat(),
            end_time=end_time.isoformat(),
            duration_seconds=(end_time - start_time).total_seconds(),
            dry_run=result.dry_run,
            modules=list(result.modules),
            synchronizers=len(result.outcomes),
            planned={action.value: result.planned(action) for action in APPLY_PHASES},
            applied={action.value: result.applied(action) for action in APPLY_PHASES},
            failures=[
                {
                    "action": failure.action.value,
                    "resource": failure.resource_label,
                    "error": failure.message,
                }
                for failure in result.failures
            ],
            metrics=metrics or {},
        )

    def write_json_report(self, report: SyncReport, output_path: Path) -> None:
        """
        Write report as JSON.

        Args:
            report: Sync report
            output_path: Output file path
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w") as f:
            json.dump(asdict(report), f, indent=2)

        logger.info("JSON report written", path=str(output_path))

    def print_summary(self, report: SyncReport, console: Console) -> None:
        """Print the run summary and every failure record."""
        if not report.failures:
            console.print("\n[bold green]SUCCESS: Synchronization completed![/bold green]\n")
        else:
            console.print(
                "\n[bold yellow]WARNING: Synchronization completed with failures[/bold yellow]\n"
            )

        table = Table(title="Dry Run Summary" if report.dry_run else "Synchronization Summary")
        table.add_column("Action", style="cyan")
        table.add_column("Planned", justify="right")
        table.add_column("Applied", justify="right", style="green")
        for action in APPLY_PHASES:
            table.add_row(
                action.value,
                str(report.planned.get(action.value, 0)),
                "-" if report.dry_run else str(report.applied.get(action.value, 0)),
            )
        console.print(table)

        console.print(f"Duration: {report.duration_seconds:.2f} seconds")
        console.print(f"Session ID: [cyan]{report.session_id}[/cyan]")

        if report.failures:
            console.print(f"\n[red]Failures ({len(report.failures)}):[/red]")
            for failure in report.failures[:MAX_PRINTED_FAILURES]:
                console.print(
                    f"  - Failed to {failure['action']} {failure['resource']}: {failure['error']}"
                )
            if len(report.failures) > MAX_PRINTED_FAILURES:
                console.print(f"  ... and {len(report.failures) - MAX_PRINTED_FAILURES} more")
