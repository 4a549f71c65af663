"""Result types for diffing and applying."""

from dataclasses import dataclass, field
from enum import Enum

from .operations import ResourceSet, SyncAction


@dataclass
class DiffResult:
    """
    Changes needed to make a target resource set converge to a source set.

    Attributes:
        insertions: Source resources whose identity is absent from the target
        updations: Source copies of resources whose compared fields differ
        deletions: Target resources whose identity is absent from the source
    """

    insertions: ResourceSet = field(default_factory=list)
    updations: ResourceSet = field(default_factory=list)
    deletions: ResourceSet = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when source and target already converge."""
        return not (self.insertions or self.updations or self.deletions)

    @property
    def total(self) -> int:
        """Total number of changes."""
        return len(self.insertions) + len(self.updations) + len(self.deletions)

    def for_action(self, action: SyncAction) -> ResourceSet:
        """Resources the given apply phase acts on."""
        if action == SyncAction.INSERT:
            return self.insertions
        if action == SyncAction.UPDATE:
            return self.updations
        if action == SyncAction.DELETE:
            return self.deletions
        raise ValueError(f"No diff list for action: {action}")

    def get_change_summary(self) -> str:
        """
        Get a human-readable summary of changes.

        Returns:
            str: e.g. "2 to insert, 0 to update, 1 to delete"
        """
        return (
            f"{len(self.insertions)} to insert, "
            f"{len(self.updations)} to update, "
            f"{len(self.deletions)} to delete"
        )


@dataclass(frozen=True)
class ApplyFailure:
    """
    Attributable, non-fatal failure of one remote call.

    Attributes:
        action: What was being attempted
        resource_label: Which resource it was attempted on
        message: Underlying error message
    """

    action: SyncAction
    resource_label: str
    message: str

    def __str__(self) -> str:
        return f"Failed to {self.action.value} {self.resource_label}: {self.message}"


@dataclass
class PhaseResult:
    """Outcome of one apply phase (all item calls settled)."""

    action: SyncAction
    total: int = 0
    succeeded: int = 0
    failures: list[ApplyFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


@dataclass
class ApplyReport:
    """Outcome of one synchronizer's apply phases, in execution order."""

    phases: list[PhaseResult] = field(default_factory=list)

    @property
    def failures(self) -> list[ApplyFailure]:
        return [failure for phase in self.phases for failure in phase.failures]

    @property
    def succeeded(self) -> int:
        return sum(phase.succeeded for phase in self.phases)

    def count(self, action: SyncAction) -> int:
        """Number of successful calls for one action."""
        return sum(phase.succeeded for phase in self.phases if phase.action == action)


class RunStatus(str, Enum):
    """Terminal state of a synchronization run."""

    COMPLETED = "completed"
    COMPLETED_WITH_FAILURES = "completed_with_failures"


@dataclass
class SynchronizerOutcome:
    """
    What happened to one synchronizer during a run.

    Attributes:
        module_name: Module the synchronizer belongs to
        display_name: Human-readable synchronizer label
        diff: Diff captured by analyze (None if analyze failed)
        report: Apply report (None for dry runs and failed analyses)
        failures: Analyze failure plus every isolated apply failure
    """

    module_name: str
    display_name: str
    diff: DiffResult | None = None
    report: ApplyReport | None = None
    failures: list[ApplyFailure] = field(default_factory=list)


@dataclass
class SyncRunResult:
    """Overall result of a synchronization run."""

    modules: list[str]
    dry_run: bool
    outcomes: list[SynchronizerOutcome] = field(default_factory=list)

    @property
    def failures(self) -> list[ApplyFailure]:
        return [failure for outcome in self.outcomes for failure in outcome.failures]

    @property
    def status(self) -> RunStatus:
        if self.failures:
            return RunStatus.COMPLETED_WITH_FAILURES
        return RunStatus.COMPLETED

    def planned(self, action: SyncAction) -> int:
        """Number of diffed resources for one action across all synchronizers."""
        return sum(
            len(outcome.diff.for_action(action)) for outcome in self.outcomes if outcome.diff
        )

    def applied(self, action: SyncAction) -> int:
        """Number of successfully applied calls for one action."""
        return sum(outcome.report.count(action) for outcome in self.outcomes if outcome.report)
