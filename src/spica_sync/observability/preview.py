"""Dry-run preview of a synchronizer's diff."""

from rich.console import Console
from rich.markup import escape

from ..models.operations import APPLY_PHASES
from ..models.results import DiffResult


def render_preview(console: Console, display_name: str, diff: DiffResult, field: str) -> None:
    """
    Print the three diff lists of one synchronizer.

    Output:
        ----- BUCKET -----

        * Found 1 objects to insert:
        - Orders
        ...

    Args:
        console: Rich console to print to
        display_name: Synchronizer display name used as the header
        diff: Diff captured by analyze
        field: Field labelling each resource
    """
    console.print()
    console.print(f"[bold]----- {escape(display_name.upper())} -----[/bold]")
    for action in APPLY_PHASES:
        resources = diff.for_action(action)
        console.print(
            f"\n* Found [bold]{len(resources)}[/bold] objects to [bold]{action.value}[/bold]:"
        )
        for resource in resources:
            console.print(f"- {escape(str(resource.get(field)))}")
