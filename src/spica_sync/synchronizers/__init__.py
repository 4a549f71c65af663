"""Resource synchronizers, one per Spica resource kind."""

from .base import ResourceSynchronizer, SyncContext
from .buckets import BucketDataSynchronizer, BucketSynchronizer
from .functions import (
    FunctionDependencySynchronizer,
    FunctionIndexSynchronizer,
    FunctionSynchronizer,
)
from .registry import ROOT_SYNCHRONIZERS, available_modules, parse_modules, validate_modules

__all__ = [
    "ResourceSynchronizer",
    "SyncContext",
    "FunctionSynchronizer",
    "FunctionDependencySynchronizer",
    "FunctionIndexSynchronizer",
    "BucketSynchronizer",
    "BucketDataSynchronizer",
    "ROOT_SYNCHRONIZERS",
    "available_modules",
    "parse_modules",
    "validate_modules",
]
