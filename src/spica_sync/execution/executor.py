"""Apply Executor - Turn a diff into remote calls against the target instance.

Execution Strategy:
1. Sequential phases: insert → update → delete. Every call of a phase settles
   (success or isolated failure) before the next phase starts.
2. Concurrent items within a phase: all calls are launched together, bounded
   by max_concurrent_operations, with no ordering between them.
3. Isolation: a failing call becomes an ApplyFailure record. It never cancels
   or aborts its siblings, the following phases or other synchronizers.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import structlog

from ..constants import DEFAULT_MAX_CONCURRENT_OPERATIONS
from ..models.operations import APPLY_PHASES, ProgressEvent, Resource, SyncAction
from ..models.results import ApplyFailure, ApplyReport, DiffResult, PhaseResult
from ..observability.metrics import MetricsCollector, get_global_collector
from ..observability.progress import NullProgressReporter, ProgressReporter

logger = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ItemCall = Callable[[Resource], Awaitable[object]]


@dataclass
class SettledResults(Generic[T, R]):
    """Results of settle_all: every item either succeeded or failed."""

    succeeded: list[tuple[T, R]] = field(default_factory=list)
    failed: list[tuple[T, Exception]] = field(default_factory=list)


async def settle_all(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    on_settled: Callable[[int], None] | None = None,
    limit: int | None = None,
) -> SettledResults[T, R]:
    """
    Run worker over all items concurrently and wait for every one to settle.

    Unlike a bare gather, one failure does not prevent the remaining items
    from being awaited; failures are folded into the result instead.

    Args:
        items: Items to process
        worker: Coroutine function applied to each item
        on_settled: Called with the running count of settled items
        limit: Optional bound on concurrently running workers

    Returns:
        SettledResults with (item, result) and (item, exception) pairs in
        input order
    """
    semaphore = asyncio.Semaphore(limit) if limit else None
    settled = 0

    async def run(item: T) -> R:
        nonlocal settled
        try:
            if semaphore is None:
                return await worker(item)
            async with semaphore:
                return await worker(item)
        finally:
            settled += 1
            if on_settled is not None:
                on_settled(settled)

    outcomes = await asyncio.gather(*(run(item) for item in items), return_exceptions=True)

    results: SettledResults[T, R] = SettledResults()
    for item, outcome in zip(items, outcomes, strict=True):
        if isinstance(outcome, Exception):
            results.failed.append((item, outcome))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            results.succeeded.append((item, outcome))
    return results


class ApplyExecutor:
    """
    Execute the apply phases of one synchronizer with failure isolation.
    """

    def __init__(
        self,
        reporter: ProgressReporter | None = None,
        max_concurrent_operations: int = DEFAULT_MAX_CONCURRENT_OPERATIONS,
        collector: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize executor.

        Args:
            reporter: Progress sink (defaults to a reporter that discards events)
            max_concurrent_operations: Bound on in-flight calls within a phase
            collector: Metrics collector (defaults to the global collector)
        """
        self.reporter = reporter or NullProgressReporter()
        self.max_concurrent_operations = max_concurrent_operations
        self.collector = collector or get_global_collector()

    async def apply_phase(
        self,
        action: SyncAction,
        items: Sequence[Resource],
        call: ItemCall,
        label: Callable[[Resource], str],
        description: str,
        module_name: str = "",
    ) -> PhaseResult:
        """
        Issue one remote call per item and collect isolated failures.

        Args:
            action: Action of this phase
            items: Resources to act on
            call: Coroutine function performing the remote call for one item
            label: Builds the resource label used in failure records
            description: Phase description shown by progress reporters
            module_name: Module name for metrics

        Returns:
            PhaseResult with success count and failure records
        """
        result = PhaseResult(action=action, total=len(items))
        if not items:
            return result

        total = len(items)

        def on_settled(completed: int) -> None:
            self.reporter.report(
                ProgressEvent(phase=action, label=description, completed=completed, total=total)
            )

        settled = await settle_all(
            items, call, on_settled=on_settled, limit=self.max_concurrent_operations
        )

        result.succeeded = len(settled.succeeded)
        for item, error in settled.failed:
            failure = ApplyFailure(
                action=action,
                resource_label=label(item),
                message=str(error),
            )
            result.failures.append(failure)
            logger.warning(
                "Apply call failed",
                action=action.value,
                resource=failure.resource_label,
                error=failure.message,
            )

        for _ in range(result.succeeded):
            self.collector.count_apply(module_name, action.value, success=True)
        for _ in range(result.failed):
            self.collector.count_apply(module_name, action.value, success=False)

        logger.info(
            "Phase completed",
            action=action.value,
            description=description,
            total=result.total,
            succeeded=result.succeeded,
            failed=result.failed,
        )
        return result

    async def apply_diff(
        self,
        diff: DiffResult,
        calls: dict[SyncAction, ItemCall],
        label: Callable[[Resource], str],
        descriptions: dict[SyncAction, str],
        module_name: str = "",
    ) -> ApplyReport:
        """
        Apply a diff phase by phase in the fixed insert → update → delete order.

        Phases without a call in `calls` are skipped entirely.

        Args:
            diff: Diff captured by the synchronizer's last analyze
            calls: Remote call per action
            label: Builds resource labels for failure records
            descriptions: Progress description per action
            module_name: Module name for metrics

        Returns:
            ApplyReport with one PhaseResult per executed phase
        """
        report = ApplyReport()
        for action in APPLY_PHASES:
            call = calls.get(action)
            if call is None:
                continue
            phase = await self.apply_phase(
                action,
                diff.for_action(action),
                call,
                label,
                descriptions.get(action, action.value),
                module_name=module_name,
            )
            report.phases.append(phase)
        return report
