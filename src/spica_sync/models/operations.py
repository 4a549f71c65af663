"""Apply actions and progress events."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

# A resource is an opaque JSON document; a resource set is one fetch of them.
Resource = dict[str, Any]
ResourceSet = list[Resource]


class SyncAction(str, Enum):
    """Action taken against the target instance (or the step that failed)."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    ANALYZE = "analyze"


# Fixed order in which apply phases run
APPLY_PHASES: tuple[SyncAction, ...] = (SyncAction.INSERT, SyncAction.UPDATE, SyncAction.DELETE)


@dataclass(frozen=True)
class ProgressEvent:
    """
    Progress of one apply phase.

    Attributes:
        phase: Action the phase applies
        label: Human-readable description of the phase
        completed: Settled item calls so far
        total: Item calls in the phase
    """

    phase: SyncAction
    label: str
    completed: int
    total: int

    @property
    def percent(self) -> float:
        """Completion percentage of the phase."""
        if self.total == 0:
            return 100.0
        return 100 * self.completed / self.total
