"""Core components of Spica Sync.

This package contains the pure diff engine used by every synchronizer.
"""

from .diff_engine import DiffEngine, compute_diff, json_equal

__all__ = ["DiffEngine", "compute_diff", "json_equal"]
