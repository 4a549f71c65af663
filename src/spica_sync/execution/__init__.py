"""Execution engine for applying diffs against the target instance."""

from .executor import ApplyExecutor, SettledResults, settle_all

__all__ = ["ApplyExecutor", "SettledResults", "settle_all"]
