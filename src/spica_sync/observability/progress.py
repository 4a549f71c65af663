"""Progress reporters receiving apply-phase events.

Reporters are purely observational: the executor emits a ProgressEvent after
every settled item call and never looks at what the reporter does with it.
"""

from abc import ABC, abstractmethod
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from ..models.operations import ProgressEvent


class ProgressReporter(ABC):
    """Sink for apply progress events."""

    @abstractmethod
    def report(self, event: ProgressEvent) -> None:
        pass


class NullProgressReporter(ProgressReporter):
    """Discards progress events."""

    def report(self, event: ProgressEvent) -> None:
        return None


class RichProgressReporter(ProgressReporter):
    """
    Renders one rich progress bar per phase label.

    Usage:
        with RichProgressReporter(console) as reporter:
            await orchestrator.run(modules, reporter=reporter)
    """

    def __init__(self, console: Console) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=console,
        )
        self._tasks: dict[str, TaskID] = {}

    def __enter__(self) -> "RichProgressReporter":
        self.progress.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.progress.stop()

    def report(self, event: ProgressEvent) -> None:
        task = self._tasks.get(event.label)
        if task is None:
            task = self.progress.add_task(f"[cyan]{event.label}", total=event.total)
            self._tasks[event.label] = task

        description = f"[cyan]{event.label}"
        if event.completed >= event.total:
            description = f"[green]DONE: {event.label}"
        self.progress.update(task, completed=event.completed, description=description)
