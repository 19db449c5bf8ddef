"""Check command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pandora_pdf.config import PandoraConfig
from pandora_pdf.core.reconciler import reconcile
from pandora_pdf.core.storage import REPORT_FILE
from pandora_pdf.models.status import ReconciliationReport


def display_report(report: ReconciliationReport, book_dir: Path, console: Console) -> None:
    """Display a status summary and the failed pages."""
    total = report.total_pages
    border = "green" if report.failed_count == 0 else "yellow"

    console.print()
    console.print(
        Panel(
            f"[bold]Book {report.book_number or book_dir.name}[/]\n\n"
            f"[dim]Success:[/] [green]{report.success_count}[/]/{total} pages\n"
            f"[dim]Failed:[/] [red]{report.failed_count}[/]/{total} pages\n"
            f"[dim]Report:[/] {book_dir / REPORT_FILE}",
            title="Download Status",
            border_style=border,
        )
    )

    if report.failed_count == 0:
        console.print("[green]All pages are downloaded.[/]")
        console.print()
        return

    console.print()
    table = Table(title="Failed Pages", show_header=True, header_style="bold cyan")
    table.add_column("Page", justify="right", style="dim", width=5)
    table.add_column("Id", style="white")
    table.add_column("Title", style="white", max_width=50)
    table.add_column("Size", justify="right", style="yellow")

    for result in report.results:
        if result.succeeded:
            continue
        if not result.exists:
            size = "[red]missing[/]"
        elif result.size_bytes is None:
            size = "?"
        else:
            size = f"{result.size_bytes:,} B"
        table.add_row(str(result.page_num), result.id, result.title, size)

    console.print(table)
    console.print()
    console.print(
        f"[dim]Next step:[/] Run [cyan]pandora-pdf retry {book_dir}[/] "
        f"to download {report.failed_count} remaining page(s)"
    )
    console.print()


def execute_check(
    book_dir: Path,
    console: Console,
    config: PandoraConfig | None = None,
) -> ReconciliationReport:
    """Execute the check command."""
    config = config or PandoraConfig()
    report = reconcile(book_dir, min_valid_size=config.min_valid_size)
    display_report(report, book_dir, console)
    return report
