"""Sync Orchestrator - Build the synchronizer tree and run the selected modules.

Run lifecycle:
1. Select: parse and validate the requested module names (no I/O yet)
2. Build: instantiate the root synchronizers and expand each one through
   `initialize`, materializing the full node list before any analysis
3. Per module, per synchronizer in tree order: analyze, then preview
   (dry run) or synchronize
4. Complete: COMPLETED, or COMPLETED_WITH_FAILURES when any failure
   record was collected

Steps 1 and 2 are the only places a run can abort, and both happen before
any create/update/delete call reaches the target.
"""

from collections.abc import Sequence

import structlog
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from ..api.client import InstanceClient
from ..config import PolicyConfig
from ..models.operations import SyncAction
from ..models.results import ApplyFailure, RunStatus, SynchronizerOutcome, SyncRunResult
from ..observability.logger import LogContext
from ..observability.metrics import MetricsCollector
from ..observability.preview import render_preview
from ..observability.progress import ProgressReporter
from ..synchronizers.base import ResourceSynchronizer, SyncContext
from ..synchronizers.registry import ROOT_SYNCHRONIZERS, parse_modules, validate_modules
from ..utils.exceptions import ConfigurationError, InstanceAPIError
from .executor import ApplyExecutor

logger = structlog.get_logger(__name__)


class SynchronizerTreeBuilder:
    """
    Two-phase tree build.

    discover_roots() instantiates the registered roots; expand() resolves one
    root into itself followed by everything its `initialize` discovers.
    """

    def __init__(
        self,
        context: SyncContext,
        roots: Sequence[type[ResourceSynchronizer]] = ROOT_SYNCHRONIZERS,
    ) -> None:
        self.context = context
        self.roots = roots

    def discover_roots(self) -> list[ResourceSynchronizer]:
        return [root(self.context) for root in self.roots]

    async def expand(self, node: ResourceSynchronizer) -> list[ResourceSynchronizer]:
        """
        Flatten a node and its discovered descendants, in discovery order.

        Raises:
            DiscoveryError: If discovery on the source instance fails
        """
        nodes = [node]
        for child in await node.initialize():
            nodes.extend(await self.expand(child))
        return nodes

    async def build(self) -> list[ResourceSynchronizer]:
        """Materialize the full node list: roots in declaration order, each followed by its children."""
        nodes: list[ResourceSynchronizer] = []
        for root in self.discover_roots():
            nodes.extend(await self.expand(root))
        logger.info("Synchronizer tree built", synchronizers=len(nodes))
        return nodes


class SyncOrchestrator:
    """
    Runs the selected modules between a source and a target instance.

    Example:
        orchestrator = SyncOrchestrator(source, target, config.policy)
        result = await orchestrator.run(["function", "bucket"], dry_run=True)
    """

    def __init__(
        self,
        source: InstanceClient,
        target: InstanceClient,
        policy: PolicyConfig | None = None,
        console: Console | None = None,
        collector: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            source: Client of the instance objects are synchronized from
            target: Client of the instance objects are synchronized to
            policy: Run policy
            console: Console for previews and completion messages
            collector: Metrics collector for applied changes
        """
        self.source = source
        self.target = target
        self.policy = policy or PolicyConfig()
        self.console = console or Console()
        self.collector = collector

    async def run(
        self,
        modules: str | list[str],
        dry_run: bool = False,
        reporter: ProgressReporter | None = None,
    ) -> SyncRunResult:
        """
        Execute one synchronization run.

        Args:
            modules: Comma separated or already split module names
            dry_run: Preview the diffs instead of applying them
            reporter: Sink for apply progress events

        Returns:
            SyncRunResult with one outcome per synchronizer that ran

        Raises:
            ConfigurationError: If no module is selected
            UnknownModuleError: If a module name is not registered
            DiscoveryError: If the source instance cannot be discovered
        """
        names = validate_modules(parse_modules(modules))
        if not names:
            raise ConfigurationError("No modules selected")

        executor = ApplyExecutor(
            reporter=reporter,
            max_concurrent_operations=self.policy.max_concurrent_operations,
            collector=self.collector,
        )
        context = SyncContext(self.source, self.target, self.policy, executor)

        logger.info("Starting synchronization", modules=names, dry_run=dry_run)
        nodes = await SynchronizerTreeBuilder(context).build()

        result = SyncRunResult(modules=names, dry_run=dry_run)
        for name in names:
            selected = [node for node in nodes if node.module_name == name]
            if not selected:
                logger.info("No synchronizers for module", module=name)
                self.console.print(
                    f"\n[yellow]Nothing to synchronize for module {escape(name)}: "
                    "the source instance has no objects of this kind[/yellow]"
                )
            for node in selected:
                result.outcomes.append(await self.run_synchronizer(node, dry_run))

        log = logger.info if result.status == RunStatus.COMPLETED else logger.warning
        log(
            "Synchronization finished",
            status=result.status.value,
            synchronizers=len(result.outcomes),
            failures=len(result.failures),
        )
        return result

    async def run_synchronizer(
        self, node: ResourceSynchronizer, dry_run: bool
    ) -> SynchronizerOutcome:
        """
        Analyze one synchronizer, then preview or synchronize it.

        A failed analyze is recorded against the synchronizer and skips it;
        it never stops the run.
        """
        outcome = SynchronizerOutcome(module_name=node.module_name, display_name=node.display_name)

        with LogContext(module=node.module_name, synchronizer=node.display_name):
            try:
                outcome.diff = await node.analyze()
            except (InstanceAPIError, ValidationError) as e:
                failure = ApplyFailure(SyncAction.ANALYZE, node.display_name, str(e))
                outcome.failures.append(failure)
                logger.error("Analyze failed, skipping synchronizer", error=str(e))
                self.console.print(f"[red]{escape(str(failure))}[/red]")
                return outcome

            if dry_run:
                render_preview(self.console, node.display_name, outcome.diff, node.primary_field)
                return outcome

            outcome.report = await node.synchronize()
            outcome.failures.extend(outcome.report.failures)

        message = f"{node.display_name} synchronization has been completed!".upper()
        self.console.print(f"\n[green]{escape(message)}[/green]")
        for failure in outcome.failures:
            self.console.print(f"[red]{escape(str(failure))}[/red]")
        return outcome
