"""Unit tests for the synchronizer tree builder and orchestrator."""

import pytest

from src.spica_sync.config import PolicyConfig
from src.spica_sync.execution.orchestrator import SynchronizerTreeBuilder, SyncOrchestrator
from src.spica_sync.models.operations import SyncAction
from src.spica_sync.models.results import RunStatus
from src.spica_sync.utils.exceptions import (
    ConfigurationError,
    DiscoveryError,
    InstanceAPIError,
    UnknownModuleError,
)


@pytest.fixture
def orchestrator(full_source, target, console, collector) -> SyncOrchestrator:
    return SyncOrchestrator(
        full_source, target, PolicyConfig(max_concurrent_operations=5), console, collector
    )


class TestSynchronizerTreeBuilder:
    """Test SynchronizerTreeBuilder class."""

    @pytest.mark.asyncio
    async def test_build_flattens_in_declaration_and_discovery_order(
        self, context, source, source_routes
    ):
        source.routes.update(source_routes)

        nodes = await SynchronizerTreeBuilder(context).build()

        assert [node.display_name for node in nodes] == [
            "function",
            "function 'mailer' dependency",
            "function 'cleanup' dependency",
            "function 'mailer' index",
            "function 'cleanup' index",
            "bucket",
            "bucket-data 'Orders'",
        ]

    def test_discover_roots_instantiates_without_io(self, context, source):
        roots = SynchronizerTreeBuilder(context).discover_roots()

        assert [root.module_name for root in roots] == ["function", "bucket"]
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_build_reads_only_the_source(self, context, source, target, source_routes):
        source.routes.update(source_routes)

        await SynchronizerTreeBuilder(context).build()

        assert target.calls == []


class TestSyncOrchestrator:
    """Test SyncOrchestrator class."""

    @pytest.mark.asyncio
    async def test_dry_run_makes_no_mutations(self, orchestrator, target, console):
        """A dry run never creates, updates or deletes anything."""
        target.routes["bucket"] = [{"_id": "old", "title": "Legacy"}]

        result = await orchestrator.run("function,bucket,bucket-data", dry_run=True)

        assert target.mutations == []
        assert result.dry_run is True
        assert result.status == RunStatus.COMPLETED
        assert result.planned(SyncAction.INSERT) > 0
        assert result.planned(SyncAction.DELETE) == 1
        assert all(outcome.report is None for outcome in result.outcomes)

    @pytest.mark.asyncio
    async def test_dry_run_renders_preview(self, orchestrator, target, console):
        target.routes["bucket"] = [{"_id": "old", "title": "Legacy"}]

        await orchestrator.run("bucket", dry_run=True)

        output = console.export_text()
        assert "----- BUCKET -----" in output
        assert "* Found 1 objects to insert:" in output
        assert "- Orders" in output
        assert "* Found 1 objects to delete:" in output
        assert "- Legacy" in output

    @pytest.mark.asyncio
    async def test_runs_modules_in_requested_order(self, orchestrator):
        result = await orchestrator.run("bucket-data,bucket", dry_run=True)

        assert [outcome.display_name for outcome in result.outcomes] == [
            "bucket-data 'Orders'",
            "bucket",
        ]

    @pytest.mark.asyncio
    async def test_synchronize_prints_completion(self, orchestrator, target, console):
        result = await orchestrator.run("bucket")

        assert "BUCKET SYNCHRONIZATION HAS BEEN COMPLETED!" in console.export_text()
        assert result.applied(SyncAction.INSERT) == 1
        assert [path for _, path, _ in target.mutations] == ["bucket"]

    @pytest.mark.asyncio
    async def test_unknown_module_aborts_before_any_call(self, orchestrator, full_source, target):
        with pytest.raises(UnknownModuleError):
            await orchestrator.run("function,policy")

        assert full_source.calls == []
        assert target.calls == []

    @pytest.mark.asyncio
    async def test_empty_selection_is_rejected(self, orchestrator):
        with pytest.raises(ConfigurationError, match="No modules selected"):
            await orchestrator.run(" , ")

    @pytest.mark.asyncio
    async def test_discovery_error_aborts_before_mutation(self, orchestrator, full_source, target):
        full_source.fail[("GET", "bucket")] = InstanceAPIError("API Error 502: Bad Gateway", 502)

        with pytest.raises(DiscoveryError):
            await orchestrator.run("function")

        assert target.mutations == []

    @pytest.mark.asyncio
    async def test_analyze_failure_is_isolated(self, orchestrator, full_source, target):
        """A synchronizer that cannot be analyzed is skipped; the rest still run."""
        full_source.fail[("GET", "function/fn1/index")] = InstanceAPIError("timeout", 504)

        result = await orchestrator.run("function")

        assert result.status == RunStatus.COMPLETED_WITH_FAILURES
        assert [str(failure) for failure in result.failures] == [
            "Failed to analyze function 'mailer' index: timeout"
        ]
        written = [path for method, path, _ in target.mutations if path.endswith("/index")]
        assert written == ["function/fn2/index"]

    @pytest.mark.asyncio
    async def test_apply_failures_do_not_stop_later_synchronizers(
        self, orchestrator, target, console
    ):
        target.fail[("POST", "function")] = InstanceAPIError("API Error 500: boom", 500)

        result = await orchestrator.run("function,bucket")

        assert result.status == RunStatus.COMPLETED_WITH_FAILURES
        assert len(result.failures) == 2
        assert {failure.action for failure in result.failures} == {SyncAction.INSERT}
        assert ("POST", "bucket") in [(method, path) for method, path, _ in target.mutations]
        assert "Failed to insert function mailer" in console.export_text()

    @pytest.mark.asyncio
    async def test_known_module_without_synchronizers(self, source, target, console):
        """bucket-data with no source buckets simply has nothing to do."""
        source.routes.update({"function": [], "bucket": []})
        orchestrator = SyncOrchestrator(source, target, console=console)

        result = await orchestrator.run("bucket-data")

        assert result.outcomes == []
        assert result.status == RunStatus.COMPLETED
        assert "Nothing to synchronize for module bucket-data" in console.export_text()

    @pytest.mark.asyncio
    async def test_malformed_target_payload_is_isolated(self, orchestrator, target, console):
        """A target answering with no list fails that synchronizer only."""
        target.routes["bucket"] = None

        result = await orchestrator.run("function,bucket")

        assert result.status == RunStatus.COMPLETED_WITH_FAILURES
        assert [str(failure) for failure in result.failures] == [
            "Failed to analyze bucket: target instance returned NoneType instead of a list "
            "for bucket"
        ]
        assert ("POST", "function") in [(method, path) for method, path, _ in target.mutations]
        assert all(not path.startswith("bucket") for _, path, _ in target.mutations)
        assert "Failed to analyze bucket" in console.export_text()
