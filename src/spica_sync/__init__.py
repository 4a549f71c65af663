"""Spica Sync - Synchronize module objects between two Spica instances."""

from .cli import app
from .config import SyncConfig

__version__ = "0.1.0"
__all__ = ["app", "SyncConfig"]
