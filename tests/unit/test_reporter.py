"""Unit tests for the run report, dry-run preview and progress reporting."""

import json
from datetime import datetime, timedelta

import pytest

from src.spica_sync.models.operations import ProgressEvent, SyncAction
from src.spica_sync.models.results import (
    ApplyFailure,
    ApplyReport,
    DiffResult,
    PhaseResult,
    SynchronizerOutcome,
    SyncRunResult,
)
from src.spica_sync.observability.preview import render_preview
from src.spica_sync.observability.progress import NullProgressReporter, RichProgressReporter
from src.spica_sync.observability.reporter import MAX_PRINTED_FAILURES, ReportGenerator

START = datetime(2026, 10, 17, 9, 0, 0)


@pytest.fixture
def run_result() -> SyncRunResult:
    failure = ApplyFailure(SyncAction.DELETE, "bucket Legacy", "in use")
    return SyncRunResult(
        modules=["bucket"],
        dry_run=False,
        outcomes=[
            SynchronizerOutcome(
                module_name="bucket",
                display_name="bucket",
                diff=DiffResult(
                    insertions=[{"_id": "b2", "title": "Customers"}],
                    deletions=[{"_id": "b3", "title": "Legacy"}],
                ),
                report=ApplyReport(
                    phases=[
                        PhaseResult(SyncAction.INSERT, total=1, succeeded=1),
                        PhaseResult(SyncAction.DELETE, total=1, failures=[failure]),
                    ]
                ),
                failures=[failure],
            )
        ],
    )


class TestReportGenerator:
    """Test ReportGenerator class."""

    def test_generate_report(self, run_result):
        report = ReportGenerator().generate_report(
            "run-1", START, START + timedelta(seconds=3), run_result, {"counters": {}}
        )

        assert report.status == "completed_with_failures"
        assert report.duration_seconds == 3.0
        assert report.synchronizers == 1
        assert report.planned == {"insert": 1, "update": 0, "delete": 1}
        assert report.applied == {"insert": 1, "update": 0, "delete": 0}
        assert report.failures == [
            {"action": "delete", "resource": "bucket Legacy", "error": "in use"}
        ]

    def test_write_json_report(self, run_result, tmp_path):
        generator = ReportGenerator()
        report = generator.generate_report("run-1", START, START, run_result)
        output = tmp_path / "reports" / "sync.json"

        generator.write_json_report(report, output)

        data = json.loads(output.read_text())
        assert data["session_id"] == "run-1"
        assert data["modules"] == ["bucket"]
        assert data["metrics"] == {}

    def test_print_summary_with_failures(self, run_result, console):
        generator = ReportGenerator()
        report = generator.generate_report("run-1", START, START, run_result)

        generator.print_summary(report, console)

        output = console.export_text()
        assert "WARNING: Synchronization completed with failures" in output
        assert "Synchronization Summary" in output
        assert "Failed to delete bucket Legacy: in use" in output
        assert "Session ID: run-1" in output

    def test_print_summary_dry_run(self, console):
        generator = ReportGenerator()
        result = SyncRunResult(
            modules=["function"],
            dry_run=True,
            outcomes=[
                SynchronizerOutcome(
                    "function", "function", diff=DiffResult(updations=[{"_id": "fn1"}])
                )
            ],
        )
        report = generator.generate_report("run-2", START, START, result)

        generator.print_summary(report, console)

        output = console.export_text()
        assert "SUCCESS: Synchronization completed!" in output
        assert "Dry Run Summary" in output
        assert report.applied == {"insert": 0, "update": 0, "delete": 0}

    def test_print_summary_caps_failures(self, console):
        generator = ReportGenerator()
        failures = [
            ApplyFailure(SyncAction.INSERT, f"bucket-data 'Orders' A-{n}", "rejected")
            for n in range(MAX_PRINTED_FAILURES + 5)
        ]
        result = SyncRunResult(
            modules=["bucket-data"],
            dry_run=False,
            outcomes=[SynchronizerOutcome("bucket-data", "bucket-data 'Orders'", failures=failures)],
        )
        report = generator.generate_report("run-3", START, START, result)

        generator.print_summary(report, console)

        assert "... and 5 more" in console.export_text()


class TestRenderPreview:
    """Test dry-run preview output."""

    def test_lists_every_phase(self, console):
        diff = DiffResult(
            insertions=[{"_id": "fn3", "name": "report"}],
            updations=[{"_id": "fn1", "name": "mailer"}],
        )

        render_preview(console, "function", diff, "name")

        output = console.export_text()
        assert "----- FUNCTION -----" in output
        assert "* Found 1 objects to insert:\n- report" in output
        assert "* Found 1 objects to update:\n- mailer" in output
        assert "* Found 0 objects to delete:" in output

    def test_escapes_markup(self, console):
        diff = DiffResult(insertions=[{"name": "[bold]weird[/bold]"}])

        render_preview(console, "function 'a' dependency", diff, "name")

        assert "- [bold]weird[/bold]" in console.export_text()


class TestProgressReporters:
    """Test progress reporters."""

    def test_event_percent(self):
        assert ProgressEvent(SyncAction.INSERT, "x", 1, 4).percent == 25.0
        assert ProgressEvent(SyncAction.INSERT, "x", 0, 0).percent == 100.0

    def test_null_reporter(self):
        assert NullProgressReporter().report(ProgressEvent(SyncAction.DELETE, "x", 1, 1)) is None

    def test_rich_reporter_tracks_one_task_per_label(self, console):
        with RichProgressReporter(console) as reporter:
            reporter.report(ProgressEvent(SyncAction.INSERT, "Inserting bucket", 1, 2))
            reporter.report(ProgressEvent(SyncAction.INSERT, "Inserting bucket", 2, 2))
            reporter.report(ProgressEvent(SyncAction.DELETE, "Deleting bucket", 1, 1))

        tasks = reporter.progress.tasks
        assert len(tasks) == 2
        assert tasks[0].completed == 2
        assert tasks[0].description == "[green]DONE: Inserting bucket"
