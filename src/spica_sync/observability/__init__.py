"""Observability - Logging, metrics, progress and reporting."""

from .logger import LogContext, add_context, clear_context, configure_logging
from .metrics import LoggerBackend, MetricsCollector, get_global_collector
from .preview import render_preview
from .progress import NullProgressReporter, ProgressReporter, RichProgressReporter
from .reporter import ReportGenerator, SyncReport

__all__ = [
    "MetricsCollector",
    "LoggerBackend",
    "get_global_collector",
    "ProgressReporter",
    "NullProgressReporter",
    "RichProgressReporter",
    "render_preview",
    "ReportGenerator",
    "SyncReport",
    "configure_logging",
    "add_context",
    "clear_context",
    "LogContext",
]
