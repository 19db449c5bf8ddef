"""Retry command implementation."""

import asyncio
from pathlib import Path

from rich.console import Console

from pandora_pdf.browser.session import open_session
from pandora_pdf.commands.download import display_batch_report, page_progress
from pandora_pdf.config import Credentials, PandoraConfig
from pandora_pdf.core.retry import RetryOutcome, SessionFactory, retry_failed_downloads
from pandora_pdf.core.storage import book_dir_name

DOI_PREFIX = "doi/"


def _doi_book_number(doi: str) -> str:
    """doi/10.978.8815/415073/ -> 10.978.8815/415073"""
    book_number = doi[len(DOI_PREFIX):].rstrip("/")
    if len(book_number.split("/")) < 2:
        raise ValueError(f"Invalid DOI format: {doi} (expected doi/10.978.8815/415073)")
    return book_number


def _looks_like_book_id(arg: str) -> bool:
    return "." in arg and "/" not in arg and "\\" not in arg


def resolve_retry_target(
    target: str,
    doi: str | None = None,
    downloads_dir: Path = Path("downloads"),
) -> tuple[Path, str | None]:
    """Work out the book directory and book id override from CLI arguments.

    target may be a book directory, a dotted book id
    (10.978.8815.415073) or a DOI path (doi/10.978.8815/415073). A DOI,
    given as either argument, supplies the slash-form book id.
    """
    doi_arg = next(
        (a for a in (target, doi) if a and a.startswith(DOI_PREFIX)), None
    )
    other = doi if doi_arg == target else target
    book_number = _doi_book_number(doi_arg) if doi_arg else None

    if not other:
        # DOI alone
        return downloads_dir / book_dir_name(book_number), book_number

    if _looks_like_book_id(other):
        # Names the directory only; URLs use the recorded slash form
        return downloads_dir / other.replace(".", "_"), book_number

    return Path(other), book_number


def session_factory(config: PandoraConfig) -> SessionFactory:
    """Session factory that reads credentials only when a session is opened."""

    def factory(book_number: str):
        return open_session(config, Credentials.from_env(), book_number)

    return factory


async def run_retry(
    book_dir: Path,
    book_id: str | None,
    config: PandoraConfig,
    console: Console,
) -> RetryOutcome:
    with page_progress(console, "Retrying pages...") as start:
        return await retry_failed_downloads(
            book_dir,
            session_factory(config),
            book_id=book_id,
            config=config,
            on_outcome=start(None),
        )


def execute_retry(
    target: str,
    doi: str | None,
    console: Console,
    config: PandoraConfig | None = None,
) -> RetryOutcome | None:
    """Execute the retry command."""
    config = config or PandoraConfig()
    book_dir, book_id = resolve_retry_target(target, doi, config.downloads_dir)

    console.print(f"[dim]Book directory:[/] {book_dir}")
    if book_id:
        console.print(f"[dim]Book ID:[/] {book_id}")

    outcome = asyncio.run(run_retry(book_dir, book_id, config, console))

    if outcome.nothing_to_retry:
        console.print("[green]No failed downloads found! All pages are complete.[/]")
        return outcome

    display_batch_report(outcome.report, book_dir, console)
    console.print(
        f"[dim]Run[/] [cyan]pandora-pdf check {book_dir}[/] [dim]to verify the retry[/]"
    )
    return outcome
