"""Cleanup command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from pandora_pdf.core.cleanup import CleanupPlan, cleanup_directory

SAMPLE_SIZE = 5


def display_plan(plan: CleanupPlan, dry_run: bool, console: Console) -> None:
    """Display files to delete and a sample of files kept."""
    console.print()
    mode = (
        "[yellow]DRY RUN[/] (no files will be deleted)"
        if dry_run
        else "[red]LIVE[/] (files will be deleted)"
    )
    console.print(
        Panel(
            f"[dim]Directory:[/] {plan.book_dir}\n"
            f"[dim]Mode:[/] {mode}\n\n"
            f"[dim]Expected files:[/] {len(plan.expected)} (including metadata)\n"
            f"[dim]Files to keep:[/] [green]{len(plan.keep)}[/]\n"
            f"[dim]Files to delete:[/] [red]{len(plan.delete)}[/]",
            title="Cleanup Analysis",
            border_style="cyan",
        )
    )

    if plan.delete:
        console.print()
        console.print("[bold]Files not referenced by the report or manifest:[/]")
        for name, size in plan.delete:
            console.print(f"  - {name} ({round(size / 1024)} KB)")

        console.print()
        if dry_run:
            console.print("[dim]Run with[/] [cyan]--live[/] [dim]to delete these files[/]")
        else:
            console.print(f"[green]Deleted {plan.deleted} file(s)[/]")
            if plan.errors:
                console.print(f"[red]Failed to delete {plan.errors} file(s)[/]")
    else:
        console.print()
        console.print("[green]Directory is clean, nothing to delete.[/]")

    if plan.keep:
        console.print()
        console.print("[dim]Sample files being kept:[/]")
        for name in plan.keep[:SAMPLE_SIZE]:
            console.print(f"  - {name}")
        if len(plan.keep) > SAMPLE_SIZE:
            console.print(f"  ... and {len(plan.keep) - SAMPLE_SIZE} more")
    console.print()


def execute_cleanup(
    book_dir: Path,
    dry_run: bool,
    console: Console,
) -> CleanupPlan:
    """Execute the cleanup command."""
    plan = cleanup_directory(book_dir, dry_run=dry_run)
    if plan.aborted:
        console.print(f"[red]No output.json or metadata.json found in {book_dir}[/]")
        console.print("[dim]Nothing is known to be expected, cleanup aborted.[/]")
        return plan
    display_plan(plan, dry_run, console)
    return plan
