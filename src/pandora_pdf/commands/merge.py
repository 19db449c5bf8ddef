"""Merge command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pandora_pdf.config import PandoraConfig
from pandora_pdf.core.merger import MergeResult, merge_chapters
from pandora_pdf.core.storage import PROCESSED_DIR


def display_merge_results(
    results: list[MergeResult], book_dir: Path, console: Console
) -> None:
    """Display one row per chapter with page counts."""
    console.print()
    table = Table(title="Merged Chapters", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="white", max_width=40)
    table.add_column("Pages", justify="right", style="green")
    table.add_column("Missing", justify="right", style="yellow")
    table.add_column("File", style="dim")

    for result in results:
        chapter = result.chapter
        display_title = (
            chapter.title[:37] + "..." if len(chapter.title) > 40 else chapter.title
        )
        skipped = len(result.missing) + len(result.unreadable)
        if result.ok:
            file_cell = result.output_path.name
        else:
            file_cell = f"[red]{result.error}[/]"
        table.add_row(
            str(chapter.chapter_number),
            display_title,
            str(len(result.added)),
            str(skipped) if skipped else "-",
            file_cell,
        )

    console.print(table)

    merged = sum(1 for r in results if r.ok)
    partial = sum(1 for r in results if r.ok and (r.missing or r.unreadable))
    console.print()
    console.print(
        Panel(
            f"[green]Merged {merged} of {len(results)} chapter(s)[/]\n\n"
            f"[dim]Partial chapters:[/] {partial}\n"
            f"[dim]Output directory:[/] {book_dir / PROCESSED_DIR}",
            title="Merge Complete",
            border_style="green" if merged == len(results) else "yellow",
        )
    )
    console.print()


def execute_merge(
    book_dir: Path,
    console: Console,
    config: PandoraConfig | None = None,
) -> list[MergeResult]:
    """Execute the merge command."""
    config = config or PandoraConfig()
    results = merge_chapters(
        book_dir,
        preface_pattern=config.preface_pattern,
        chapter_pattern=config.chapter_pattern,
        max_title_length=config.max_title_length,
    )
    if not results:
        console.print("[yellow]No chapters found in the table of contents.[/]")
        return results
    display_merge_results(results, book_dir, console)
    return results
