"""Data models for Spica Sync."""

from .operations import APPLY_PHASES, ProgressEvent, Resource, ResourceSet, SyncAction
from .results import (
    ApplyFailure,
    ApplyReport,
    DiffResult,
    PhaseResult,
    RunStatus,
    SynchronizerOutcome,
    SyncRunResult,
)

__all__ = [
    # Resources
    "Resource",
    "ResourceSet",
    # Actions
    "SyncAction",
    "APPLY_PHASES",
    "ProgressEvent",
    # Results
    "DiffResult",
    "ApplyFailure",
    "PhaseResult",
    "ApplyReport",
    "RunStatus",
    "SynchronizerOutcome",
    "SyncRunResult",
]
