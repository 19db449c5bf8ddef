"""Download command implementation."""

import asyncio
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress
from rich.table import Table

from pandora_pdf.browser.session import open_first_book, open_session
from pandora_pdf.commands.merge import display_merge_results
from pandora_pdf.config import Credentials, PandoraConfig
from pandora_pdf.core.batch import BatchOutcome, BatchReport
from pandora_pdf.core.download import DownloadResult, download_book


@contextmanager
def page_progress(
    console: Console, description: str
) -> Iterator[Callable[[int | None], Callable[[BatchOutcome], None]]]:
    """Progress bar driven by BatchDownloader outcomes.

    Yields a function that sets the total and returns the outcome callback.
    """
    with Progress(console=console) as progress:
        task = progress.add_task(description, total=None)

        def start(total: int | None) -> Callable[[BatchOutcome], None]:
            progress.update(task, total=total)

            def on_outcome(outcome: BatchOutcome) -> None:
                progress.update(
                    task,
                    advance=1,
                    description=f"Page {outcome.descriptor.page_num}: "
                    f"{outcome.descriptor.title[:40]}",
                )

            return on_outcome

        yield start


def display_batch_report(report: BatchReport, target_dir: Path, console: Console) -> None:
    """Display counts and any pages that failed in this run."""
    failed = report.failed
    console.print()
    console.print(
        Panel(
            f"[dim]Attempted:[/] {report.attempted} page(s) "
            f"(1 sequential + {report.batches} batch(es))\n"
            f"[dim]Saved:[/] [green]{len(report.succeeded)}[/]\n"
            f"[dim]Failed:[/] [red]{len(failed)}[/]\n"
            f"[dim]Skipped:[/] [yellow]{len(report.skipped)}[/]\n"
            f"[dim]Directory:[/] {target_dir}",
            title="Download Summary",
            border_style="green" if not failed else "yellow",
        )
    )

    if report.first_failed and report.skipped:
        console.print(
            "[yellow]The first page failed, so the remaining pages were not attempted. "
            "Check the login and the reader, then run retry.[/]"
        )

    if failed:
        console.print()
        table = Table(title="Failed Pages", show_header=True, header_style="bold cyan")
        table.add_column("Page", justify="right", style="dim", width=5)
        table.add_column("Id", style="white")
        table.add_column("Error", style="red", max_width=60)
        for outcome in failed:
            table.add_row(
                str(outcome.descriptor.page_num), outcome.descriptor.id, outcome.error or ""
            )
        console.print(table)
        console.print()
        console.print(
            f"[dim]Next step:[/] Run [cyan]pandora-pdf check {target_dir}[/] and "
            f"[cyan]pandora-pdf retry {target_dir}[/]"
        )
    console.print()


async def run_download(
    config: PandoraConfig,
    credentials: Credentials,
    console: Console,
    merge: bool = True,
) -> DownloadResult:
    """Log in, read the first book's table of contents and download it."""
    async with open_session(config, credentials) as capturer:
        pages = await open_first_book(capturer)
        if not pages:
            raise ValueError("The reader returned an empty table of contents")
        console.print(f"[dim]Book:[/] {capturer.book_number} ({len(pages)} pages)")

        with page_progress(console, "Downloading pages...") as start:
            return await download_book(
                capturer,
                capturer.book_number,
                pages,
                config=config,
                merge=merge,
                on_outcome=start(len(pages)),
            )


def execute_download(
    config: PandoraConfig,
    console: Console,
    merge: bool = True,
) -> DownloadResult:
    """Execute the download command."""
    credentials = Credentials.from_env()
    result = asyncio.run(run_download(config, credentials, console, merge=merge))

    display_batch_report(result.report, result.book_dir, console)
    if result.merged:
        display_merge_results(result.merged, result.book_dir, console)
    elif result.merge_error:
        console.print(f"[red]Chapter merging failed: {result.merge_error}[/]")
        console.print(
            f"[dim]Run[/] [cyan]pandora-pdf merge {result.book_dir}[/] [dim]to try again[/]"
        )
    return result
